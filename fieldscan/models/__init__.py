"""Field models package."""

from fieldscan.models.field import (
    ConfidenceTier,
    DetectionMethod,
    DocumentDetectionResult,
    FieldKind,
    FieldRecord,
    OcrLine,
    OcrWord,
    PageDetectionResult,
    PageInput,
    RecognizedText,
    Rect,
    StructuredField,
    generate_uuid,
)

__all__ = [
    "ConfidenceTier",
    "DetectionMethod",
    "DocumentDetectionResult",
    "FieldKind",
    "FieldRecord",
    "OcrLine",
    "OcrWord",
    "PageDetectionResult",
    "PageInput",
    "RecognizedText",
    "Rect",
    "StructuredField",
    "generate_uuid",
]
