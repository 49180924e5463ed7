"""
Label and blank-line detection on recognized text.

Two signals are read from the text recognizer output:
1. Words or short phrases matching a catalog of common form labels
   ("NAME:", "DATE OF BIRTH", ...). A field is placed to the right of the label.
2. Lines containing a run of underscores ("Phone: ________"). A field spans
   the whole line.
"""

import logging
import re
from collections.abc import Callable

import numpy as np

from fieldscan.core.config import Settings, get_settings
from fieldscan.models import (
    ConfidenceTier,
    DetectionMethod,
    FieldKind,
    FieldRecord,
    OcrLine,
    OcrWord,
    RecognizedText,
    Rect,
)
from fieldscan.services.geometry import point_to_document_space, to_document_space

logger = logging.getLogger(__name__)

Recognizer = Callable[[np.ndarray], RecognizedText]


class LabelDetector:
    """Find form fields from recognized words and lines."""

    name = "ocr"

    # Common form field labels, anchored and allowing a trailing colon
    LABEL_PATTERNS = [
        re.compile(p, re.IGNORECASE)
        for p in (
            r"^(NAME|FIRST\s*NAME|LAST\s*NAME|FULL\s*NAME)[\s:]*$",
            r"^(ADDRESS|STREET|ADDR)[\s:]*$",
            r"^(CITY)[\s:]*$",
            r"^(STATE|ST)[\s:]*$",
            r"^(ZIP|ZIP\s*CODE|POSTAL\s*CODE)[\s:]*$",
            r"^(PHONE|TELEPHONE|TEL|PHONE\s*NUMBER)[\s:]*$",
            r"^(EMAIL|E-MAIL)[\s:]*$",
            r"^(DATE|DATE\s*OF\s*BIRTH|DOB|BIRTH\s*DATE)[\s:]*$",
            r"^(SIGNATURE|SIGN)[\s:]*$",
            r"^(RELATIONSHIP)[\s:]*$",
            r"^(EMERGENCY\s*CONTACT)[\s:]*$",
            r"^(BOROUGH)[\s:]*$",
            r"^(CENTER|REC\s*CENTER)[\s:]*$",
        )
    ]

    MAX_LABEL_WORDS = 3

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.underscore_pattern = re.compile(
            r"_{%d,}" % self.settings.blank_line_min_underscores
        )

    def detect(
        self,
        raster: np.ndarray,
        page_height: float,
        scale: float,
        recognize: Recognizer,
        page_number: int = 1,
    ) -> list[FieldRecord]:
        """
        Run text recognition on a page and analyze the result.

        Recognition failures are logged and yield an empty list.
        """
        context = {"page": page_number, "detector": self.name}
        try:
            recognized = recognize(raster)
        except Exception:
            logger.warning("Text recognition failed", exc_info=True, extra=context)
            return []

        logger.debug(
            "Recognized %d words, %d lines",
            len(recognized.words),
            len(recognized.lines),
            extra={**context, "stage": "recognize"},
        )
        return self.analyze(recognized, page_height, scale)

    def analyze(
        self,
        recognized: RecognizedText,
        page_height: float,
        scale: float,
    ) -> list[FieldRecord]:
        """Find label and blank-line fields in recognizer output."""
        fields = self._detect_labels(recognized.words, page_height, scale)
        fields.extend(self._detect_blank_lines(recognized.lines, page_height, scale))
        return fields

    def match_label(self, text: str) -> bool:
        """Check text against the label catalog."""
        text = text.strip()
        return any(pattern.match(text) for pattern in self.LABEL_PATTERNS)

    def _detect_labels(
        self,
        words: list[OcrWord],
        page_height: float,
        scale: float,
    ) -> list[FieldRecord]:
        """Place a field to the right of every matched label."""
        fields = []
        i = 0

        while i < len(words):
            matched = 0
            # Prefer the longest window so "DATE OF BIRTH" beats "DATE"
            for size in range(min(self.MAX_LABEL_WORDS, len(words) - i), 0, -1):
                window_words = words[i:i + size]
                # A label never spans two recognized lines
                if len({w.line for w in window_words}) > 1:
                    continue
                window = " ".join(w.text.strip() for w in window_words)
                if self.match_label(window):
                    matched = size
                    break

            if not matched:
                i += 1
                continue

            label_words = words[i:i + matched]
            label_text = " ".join(w.text.strip() for w in label_words)
            last_bbox = label_words[-1].bbox

            field_x, field_top = point_to_document_space(
                last_bbox[2] + self.settings.label_offset_px,
                last_bbox[3],
                page_height,
                scale,
            )

            fields.append(FieldRecord(
                kind=FieldKind.TEXT,
                rect=Rect(
                    field_x,
                    field_top - self.settings.label_field_height,
                    field_x + self.settings.label_field_width,
                    field_top,
                ),
                confidence=ConfidenceTier.HIGH,
                detection_method=DetectionMethod.OCR_LABEL,
                label=label_text,
            ))
            i += matched

        return fields

    def _detect_blank_lines(
        self,
        lines: list[OcrLine],
        page_height: float,
        scale: float,
    ) -> list[FieldRecord]:
        """Turn every line containing an underscore run into a field."""
        fields = []

        for line in lines:
            match = self.underscore_pattern.search(line.text)
            if not match:
                continue

            x0, _, x1, y1 = line.bbox
            # Only the horizontal extent is taken from the line box
            span = to_document_space((x0, y1, x1, y1), page_height, scale)
            label_text = line.text[:match.start()].strip().rstrip(":").strip()

            fields.append(FieldRecord(
                kind=FieldKind.TEXT,
                rect=Rect(
                    span.x0,
                    span.y1 - self.settings.blank_line_field_height,
                    span.x1,
                    span.y1,
                ),
                confidence=ConfidenceTier.MEDIUM,
                detection_method=DetectionMethod.OCR_BLANK_LINE,
                label=label_text or None,
            ))

        return fields
