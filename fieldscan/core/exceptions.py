"""Error types raised by the detection services."""


class FieldScanError(Exception):
    """Base class for all field scan errors."""


class RasterUnavailableError(FieldScanError):
    """The page raster is missing or cannot be analyzed."""


class DocumentLoadError(FieldScanError):
    """The uploaded document could not be opened."""


class OcrUnavailableError(FieldScanError):
    """The text recognition engine is missing or failed to start."""
