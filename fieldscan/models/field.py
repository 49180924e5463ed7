"""Field record model shared by every detector and the fusion stage."""

import enum
import uuid
from dataclasses import dataclass, field
from typing import Any


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


class FieldKind(str, enum.Enum):
    """Field kind enumeration."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DROPDOWN = "dropdown"
    SIGNATURE = "signature"


class ConfidenceTier(str, enum.Enum):
    """Confidence tier used to arbitrate between conflicting detections."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    ConfidenceTier.LOW: 1,
    ConfidenceTier.MEDIUM: 2,
    ConfidenceTier.HIGH: 3,
}


class DetectionMethod(str, enum.Enum):
    """Provenance tag of a field record."""

    STRUCTURED_ANNOTATION = "structured-annotation"
    OCR_LABEL = "ocr-label"
    OCR_BLANK_LINE = "ocr-blank-line"
    PIXEL_HORIZONTAL_LINE = "pixel-horizontal-line"
    PIXEL_CHECKBOX_PATTERN = "pixel-checkbox-pattern"


@dataclass
class Rect:
    """Axis-aligned rectangle in document coordinates (bottom-left origin)."""

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_points(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        """Build a rectangle from two corners in any order."""
        return cls(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def intersects(self, other: "Rect") -> bool:
        """Return True when the intersection has a non-zero area."""
        return (
            self.x0 < other.x1
            and other.x0 < self.x1
            and self.y0 < other.y1
            and other.y0 < self.y1
        )

    def union(self, other: "Rect") -> "Rect":
        return Rect(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )

    def to_dict(self) -> dict[str, float]:
        return {"x0": self.x0, "y0": self.y0, "x1": self.x1, "y1": self.y1}


@dataclass
class FieldRecord:
    """A candidate form field on one page."""

    kind: FieldKind
    rect: Rect
    confidence: ConfidenceTier
    detection_method: DetectionMethod
    id: str = field(default_factory=generate_uuid)

    # Numeric score, only set by the pixel checkbox detector
    score: float | None = None

    label: str | None = None
    group_name: str | None = None

    # Attributes relayed from structured annotations
    name: str | None = None
    value: Any = None
    options: list[str] = field(default_factory=list)
    required: bool = False
    read_only: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "rect": self.rect.to_dict(),
            "confidence": self.confidence.value,
            "score": self.score,
            "detection_method": self.detection_method.value,
            "label": self.label,
            "group_name": self.group_name,
            "name": self.name,
            "value": self.value,
            "options": list(self.options),
            "required": self.required,
            "read_only": self.read_only,
        }


@dataclass
class OcrWord:
    """A recognized word with its bounding box in raster pixels.

    ``line`` identifies the recognized line the word belongs to, when known.
    """

    text: str
    bbox: tuple[float, float, float, float]
    line: tuple[int, ...] | None = None


@dataclass
class OcrLine:
    """A recognized line with its bounding box in raster pixels."""

    text: str
    bbox: tuple[float, float, float, float]


@dataclass
class RecognizedText:
    """Text recognizer output for one page."""

    words: list[OcrWord] = field(default_factory=list)
    lines: list[OcrLine] = field(default_factory=list)


@dataclass
class StructuredField:
    """Interactive field metadata declared by the document itself.

    ``type`` is a PDF field-type code (``Tx``, ``Btn``, ``Ch``, ``Sig``) for
    entries read from page widgets, or a registry type name (``text``,
    ``checkbox``, ``radiobutton``, ``combobox``, ``listbox``, ``signature``)
    for entries read from the document-level field registry.
    """

    type: str
    rect: Rect | None
    name: str = ""
    value: Any = None
    options: list[str] = field(default_factory=list)
    required: bool = False
    read_only: bool = False
    check_box: bool = False
    radio_button: bool = False
    page: int | None = None


@dataclass
class PageInput:
    """Everything the detectors need to scan one page."""

    page_number: int
    raster: Any
    page_height: float
    scale: float
    structured_fields: list[StructuredField] = field(default_factory=list)
    field_registry: dict[str, list[StructuredField]] = field(default_factory=dict)
    page_count: int = 1


@dataclass
class PageDetectionResult:
    """Fused field list for one page, with per-detector diagnostics."""

    page_number: int
    fields: list[FieldRecord]
    detection_time_ms: float
    total_candidates: int
    filtered_candidates: int
    detector_counts: dict[str, int] = field(default_factory=dict)
    detector_errors: dict[str, str] = field(default_factory=dict)


@dataclass
class DocumentDetectionResult:
    """Result of field detection over a whole document."""

    pages: list[PageDetectionResult]
    detection_time_ms: float

    @property
    def fields(self) -> list[FieldRecord]:
        return [f for page in self.pages for f in page.fields]
