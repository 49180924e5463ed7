"""Core module package."""

from fieldscan.core.config import Settings, get_settings
from fieldscan.core.exceptions import (
    DocumentLoadError,
    FieldScanError,
    OcrUnavailableError,
    RasterUnavailableError,
)
from fieldscan.core.logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "DocumentLoadError",
    "FieldScanError",
    "OcrUnavailableError",
    "RasterUnavailableError",
]
