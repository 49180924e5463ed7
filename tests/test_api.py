"""API endpoint tests."""

import io

import pytest
from httpx import AsyncClient
from PIL import Image

from conftest import blank_raster, draw_box


pytestmark = pytest.mark.asyncio


def png_bytes(raster) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(raster).save(buffer, format="PNG")
    return buffer.getvalue()


class TestHealth:
    """Health check endpoint tests."""

    async def test_health_check(self, client: AsyncClient):
        """Test health check returns healthy status."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_root_endpoint(self, client: AsyncClient):
        """Test root endpoint returns app info."""
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "app" in data
        assert "version" in data


class TestDetectPage:
    """Page image detection endpoint tests."""

    async def test_detect_page_image(self, client: AsyncClient):
        """A label and a checkbox come back as two fields."""
        raster = blank_raster()
        draw_box(raster, 200, 300, 10)

        response = await client.post(
            "/api/v1/detect/page",
            files={"file": ("page.png", png_bytes(raster), "image/png")},
            data={"page_height": "792", "scale": "1.5"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["page_number"] == 1
        methods = sorted(f["detection_method"] for f in data["fields"])
        assert methods == ["ocr-label", "pixel-checkbox-pattern"]

        label = next(f for f in data["fields"] if f["detection_method"] == "ocr-label")
        assert label["kind"] == "text"
        assert label["label"] == "NAME:"
        assert label["confidence"] == "high"
        assert label["rect"]["x0"] == pytest.approx(100 / 1.5)

    async def test_undecodable_image(self, client: AsyncClient):
        """Bytes that are not an image are rejected."""
        response = await client.post(
            "/api/v1/detect/page",
            files={"file": ("page.png", b"not an image", "image/png")},
            data={"page_height": "792"},
        )
        assert response.status_code == 422

    async def test_page_height_required(self, client: AsyncClient):
        """The true page height must be supplied."""
        response = await client.post(
            "/api/v1/detect/page",
            files={"file": ("page.png", png_bytes(blank_raster(50, 50)), "image/png")},
        )
        assert response.status_code == 422


class TestDetectDocument:
    """PDF detection endpoint tests."""

    async def test_detect_fillable_pdf(self, client: AsyncClient, fillable_form_pdf):
        """Declared fields are returned per page."""
        response = await client.post(
            "/api/v1/detect",
            files={"file": ("form.pdf", fillable_form_pdf, "application/pdf")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["page_count"] == 1
        names = {
            f["name"] for f in data["pages"][0]["fields"]
            if f["detection_method"] == "structured-annotation"
        }
        assert {"full_name", "subscribe", "color"} <= names

    async def test_rejects_non_pdf_content_type(self, client: AsyncClient):
        """Only PDFs are accepted."""
        response = await client.post(
            "/api/v1/detect",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400

    async def test_unreadable_pdf(self, client: AsyncClient):
        """A corrupt PDF is unprocessable."""
        response = await client.post(
            "/api/v1/detect",
            files={"file": ("broken.pdf", b"%PDF-garbage", "application/pdf")},
        )
        assert response.status_code == 422
