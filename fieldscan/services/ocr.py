"""Text recognition backed by Tesseract."""

import logging
import threading

import cv2
import numpy as np
import pytesseract

from fieldscan.core.config import Settings, get_settings
from fieldscan.core.exceptions import OcrUnavailableError
from fieldscan.models import OcrLine, OcrWord, RecognizedText

logger = logging.getLogger(__name__)


def to_grayscale(raster: np.ndarray) -> np.ndarray:
    """Convert an RGB, RGBA or grayscale raster to a single channel."""
    if raster.ndim == 2:
        return raster
    if raster.shape[2] == 4:
        return cv2.cvtColor(raster, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(raster, cv2.COLOR_RGB2GRAY)


class TesseractRecognizer:
    """Run Tesseract on a page raster and collect words and lines."""

    def __init__(self, language: str = "eng", timeout: float = 0):
        self.language = language
        self.timeout = timeout

    def recognize(self, raster: np.ndarray) -> RecognizedText:
        data = pytesseract.image_to_data(
            to_grayscale(raster),
            lang=self.language,
            timeout=self.timeout,
            output_type=pytesseract.Output.DICT,
        )
        return self.parse(data)

    @staticmethod
    def parse(data: dict[str, list]) -> RecognizedText:
        """
        Build words and lines from ``image_to_data`` output.

        Lines are keyed by ``(block_num, par_num, line_num)``; their text is the
        words joined by spaces and their box is the union of the word boxes.
        """
        words = []
        lines: dict[tuple[int, int, int], list[OcrWord]] = {}

        for i, raw in enumerate(data.get("text", [])):
            text = (raw or "").strip()
            if not text:
                continue

            x, y = int(data["left"][i]), int(data["top"][i])
            w, h = int(data["width"][i]), int(data["height"][i])
            key = (
                int(data["block_num"][i]),
                int(data["par_num"][i]),
                int(data["line_num"][i]),
            )
            word = OcrWord(text=text, bbox=(x, y, x + w, y + h), line=key)
            words.append(word)
            lines.setdefault(key, []).append(word)

        ocr_lines = []
        for line_words in lines.values():
            ocr_lines.append(OcrLine(
                text=" ".join(w.text for w in line_words),
                bbox=(
                    min(w.bbox[0] for w in line_words),
                    min(w.bbox[1] for w in line_words),
                    max(w.bbox[2] for w in line_words),
                    max(w.bbox[3] for w in line_words),
                ),
            ))

        return RecognizedText(words=words, lines=ocr_lines)


class OcrEngine:
    """
    Process-wide handle on the text recognizer.

    The engine is started at most once. Concurrent first callers are
    serialized by a lock, and a failed start is remembered so later callers
    fail fast instead of probing the binary again.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._recognizer: TesseractRecognizer | None = None
        self._start_error: OcrUnavailableError | None = None

    @property
    def started(self) -> bool:
        return self._recognizer is not None

    def start(self) -> TesseractRecognizer:
        """Initialize Tesseract if needed and return the recognizer."""
        with self._lock:
            if self._recognizer is not None:
                return self._recognizer
            if self._start_error is not None:
                raise self._start_error

            if self.settings.tesseract_cmd:
                pytesseract.pytesseract.tesseract_cmd = self.settings.tesseract_cmd

            try:
                version = pytesseract.get_tesseract_version()
            except Exception as e:
                self._start_error = OcrUnavailableError(
                    "Tesseract is not available. Install Tesseract OCR and ensure "
                    "it is in PATH or set TESSERACT_CMD."
                )
                logger.error("Text recognizer failed to start: %s", e)
                raise self._start_error from e

            logger.info("Text recognizer started (tesseract %s)", version)
            self._recognizer = TesseractRecognizer(
                language=self.settings.ocr_language,
                timeout=self.settings.ocr_timeout_seconds,
            )
            return self._recognizer

    def recognize(self, raster: np.ndarray) -> RecognizedText:
        """Recognize words and lines, starting the engine on first use."""
        return self.start().recognize(raster)

    def close(self) -> None:
        """Tear down the recognizer. A later call starts it afresh."""
        with self._lock:
            if self._recognizer is not None:
                logger.info("Text recognizer stopped")
            self._recognizer = None
            self._start_error = None

    def __enter__(self) -> "OcrEngine":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# Singleton instance
ocr_engine = OcrEngine()
