"""Coordinate conversion tests."""

import pytest

from fieldscan.models import Rect
from fieldscan.services.geometry import (
    point_to_document_space,
    to_document_space,
    to_raster_space,
)


class TestGeometry:
    """Raster <-> document space conversion tests."""

    def test_flips_vertical_axis(self):
        """Raster top maps to document top, measured from the bottom."""
        rect = to_document_space((150, 300, 450, 330), 792, 1.5)
        assert rect.x0 == pytest.approx(100)
        assert rect.x1 == pytest.approx(300)
        assert rect.y0 == pytest.approx(792 - 220)
        assert rect.y1 == pytest.approx(792 - 200)

    def test_result_is_normalized(self):
        """Swapped corners still give x0 <= x1 and y0 <= y1."""
        rect = to_document_space((450, 330, 150, 300), 792, 1.5)
        assert rect.x0 <= rect.x1
        assert rect.y0 <= rect.y1

    @pytest.mark.parametrize("scale", [0.5, 1.0, 1.5, 2.0, 3.7])
    def test_round_trip(self, scale):
        """Document -> raster -> document returns the original rectangle."""
        original = Rect(72.25, 100.5, 288.0, 118.5)
        back = to_document_space(to_raster_space(original, 792, scale), 792, scale)
        assert back.x0 == pytest.approx(original.x0)
        assert back.y0 == pytest.approx(original.y0)
        assert back.x1 == pytest.approx(original.x1)
        assert back.y1 == pytest.approx(original.y1)

    def test_point_conversion(self):
        """A single raster point converts consistently with rectangles."""
        x, y = point_to_document_space(100, 55, 792, 1.5)
        assert x == pytest.approx(100 / 1.5)
        assert y == pytest.approx(792 - 55 / 1.5)

    @pytest.mark.parametrize("scale", [0, -1.5])
    def test_rejects_non_positive_scale(self, scale):
        """Scale must be positive."""
        with pytest.raises(ValueError):
            to_document_space((0, 0, 10, 10), 792, scale)


class TestRect:
    """Rectangle helper tests."""

    def test_intersects(self):
        """Overlapping rectangles intersect."""
        assert Rect(0, 0, 10, 10).intersects(Rect(5, 5, 15, 15))

    def test_touching_edges_do_not_intersect(self):
        """Shared edges are not an intersection."""
        assert not Rect(0, 0, 10, 10).intersects(Rect(10, 0, 20, 10))

    def test_union(self):
        """Union covers both rectangles."""
        assert Rect(0, 0, 10, 10).union(Rect(20, 5, 30, 15)) == Rect(0, 0, 30, 15)
