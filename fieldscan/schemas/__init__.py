"""API schemas package."""

from fieldscan.schemas.schemas import (
    DocumentDetectionResponse,
    FieldRecordResponse,
    PageDetectionResponse,
    RectSchema,
)

__all__ = [
    "DocumentDetectionResponse",
    "FieldRecordResponse",
    "PageDetectionResponse",
    "RectSchema",
]
