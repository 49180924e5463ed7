"""Pytest configuration and fixtures."""

import io
from typing import AsyncGenerator

import numpy as np
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from fieldscan.main import app
from fieldscan.models import OcrLine, OcrWord, RecognizedText
from fieldscan.services.detection.detector import field_detector

# US Letter rendered at the default scale
PAGE_HEIGHT = 792.0
SCALE = 1.5
RASTER_WIDTH = int(612 * SCALE)
RASTER_HEIGHT = int(792 * SCALE)


class FakeRecognizer:
    """Text recognizer returning canned output."""

    def __init__(self, recognized: RecognizedText | None = None, error: Exception | None = None):
        self.recognized = recognized or RecognizedText()
        self.error = error
        self.calls = 0

    def __call__(self, raster: np.ndarray) -> RecognizedText:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.recognized


def blank_raster(width: int = RASTER_WIDTH, height: int = RASTER_HEIGHT) -> np.ndarray:
    """White opaque RGBA raster."""
    return np.full((height, width, 4), 255, dtype=np.uint8)


def draw_box(raster: np.ndarray, x: int, y: int, size: int) -> None:
    """Draw a 1px black square outline with its top-left corner at (x, y)."""
    raster[y, x:x + size + 1, :3] = 0
    raster[y + size, x:x + size + 1, :3] = 0
    raster[y:y + size + 1, x, :3] = 0
    raster[y:y + size + 1, x + size, :3] = 0


def draw_hline(raster: np.ndarray, x0: int, x1: int, y: int) -> None:
    """Draw a 1px black horizontal line covering columns x0..x1-1."""
    raster[y, x0:x1, :3] = 0


@pytest.fixture
def name_label() -> RecognizedText:
    """Recognizer output holding a single "NAME:" label."""
    word = OcrWord(text="NAME:", bbox=(50, 40, 90, 55))
    return RecognizedText(words=[word], lines=[OcrLine(text="NAME:", bbox=(50, 40, 90, 55))])


@pytest.fixture
def flat_form_pdf() -> bytes:
    """A one-page PDF with a printed label and underline, no interactive fields."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter)
    c.drawString(100, 505, "Date:")
    c.setLineWidth(3)
    c.line(150, 500, 350, 500)
    c.save()
    return buffer.getvalue()


@pytest.fixture
def fillable_form_pdf() -> bytes:
    """A one-page PDF with a text field, a checkbox and a radio group."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter)
    form = c.acroForm

    c.drawString(100, 705, "Full name")
    form.textfield(name="full_name", x=180, y=700, width=200, height=18)

    c.drawString(120, 652, "Subscribe")
    form.checkbox(name="subscribe", x=100, y=650, size=14)

    c.drawString(120, 602, "Red")
    form.radio(name="color", value="red", selected=False, x=100, y=600, size=14)
    c.drawString(220, 602, "Blue")
    form.radio(name="color", value="blue", selected=False, x=200, y=600, size=14)

    c.save()
    return buffer.getvalue()


@pytest.fixture
def fake_recognizer(monkeypatch, name_label) -> FakeRecognizer:
    """Replace the service recognizer with canned output."""
    recognizer = FakeRecognizer(name_label)
    monkeypatch.setattr(field_detector, "recognizer", recognizer)
    return recognizer


@pytest_asyncio.fixture
async def client(fake_recognizer) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
