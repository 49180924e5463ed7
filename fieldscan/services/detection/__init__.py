"""Form field detection package."""

from fieldscan.services.detection.detector import FieldDetector, field_detector

__all__ = [
    "FieldDetector",
    "field_detector",
]
