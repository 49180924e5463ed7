"""Conversion between raster pixel space and document space.

Raster space has its origin at the top-left corner with y growing downward;
document space has its origin at the bottom-left corner with y growing
upward. Every detector converts through these functions.
"""

from fieldscan.models import Rect


def _check_scale(scale: float) -> None:
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")


def to_document_space(
    raster_rect: tuple[float, float, float, float],
    page_height: float,
    scale: float,
) -> Rect:
    """Convert a raster rectangle ``(x1, y1, x2, y2)`` to document space."""
    _check_scale(scale)
    x1, y1, x2, y2 = raster_rect
    return Rect.from_points(
        x1 / scale,
        page_height - y2 / scale,
        x2 / scale,
        page_height - y1 / scale,
    )


def to_raster_space(
    rect: Rect,
    page_height: float,
    scale: float,
) -> tuple[float, float, float, float]:
    """Convert a document rectangle back to raster ``(x1, y1, x2, y2)``."""
    _check_scale(scale)
    return (
        rect.x0 * scale,
        (page_height - rect.y1) * scale,
        rect.x1 * scale,
        (page_height - rect.y0) * scale,
    )


def point_to_document_space(
    x: float,
    y: float,
    page_height: float,
    scale: float,
) -> tuple[float, float]:
    """Convert a single raster point to document space."""
    _check_scale(scale)
    return x / scale, page_height - y / scale
