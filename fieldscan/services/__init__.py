"""Services package."""

from fieldscan.services.document import document_service
from fieldscan.services.ocr import ocr_engine

__all__ = [
    "document_service",
    "ocr_engine",
]
