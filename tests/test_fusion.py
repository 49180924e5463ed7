"""Fusion pipeline tests."""

import pytest

from fieldscan.models import ConfidenceTier, DetectionMethod, FieldKind, FieldRecord, Rect
from fieldscan.services.detection.fusion import FieldFusion


def record(
    rect,
    kind=FieldKind.TEXT,
    confidence=ConfidenceTier.MEDIUM,
    method=DetectionMethod.PIXEL_HORIZONTAL_LINE,
    **kwargs,
):
    return FieldRecord(
        kind=kind,
        rect=rect,
        confidence=confidence,
        detection_method=method,
        **kwargs,
    )


class TestSameBaselineMerge:
    """Same-baseline merge tests."""

    def setup_method(self):
        self.fusion = FieldFusion()

    def test_merges_text_on_same_baseline(self):
        """Records at y=100 and y=101 merge into one spanning both."""
        first = record(Rect(50, 100, 150, 118), label="Name")
        second = record(Rect(200, 101, 300, 119))

        merged = self.fusion.merge_same_baseline([first, second])

        assert len(merged) == 1
        assert merged[0].rect.x0 == 50
        assert merged[0].rect.x1 == 300
        assert merged[0].id == first.id
        assert merged[0].label == "Name"

    def test_distant_baselines_not_merged(self):
        """Records more than the tolerance apart stay separate."""
        merged = self.fusion.merge_same_baseline([
            record(Rect(50, 100, 150, 118)),
            record(Rect(200, 110, 300, 128)),
        ])
        assert len(merged) == 2

    def test_different_kinds_not_merged(self):
        """A checkbox never absorbs a text record."""
        merged = self.fusion.merge_same_baseline([
            record(Rect(50, 100, 150, 118)),
            record(Rect(200, 100, 212, 112), kind=FieldKind.CHECKBOX),
        ])
        assert len(merged) == 2

    def test_boxes_in_a_row_stay_separate(self):
        """Side-by-side checkboxes are distinct fields."""
        boxes = [
            record(
                Rect(x, 100, x + 10, 110),
                kind=FieldKind.CHECKBOX,
                method=DetectionMethod.PIXEL_CHECKBOX_PATTERN,
                score=1.0,
            )
            for x in (50, 100, 150)
        ]
        assert self.fusion.merge_same_baseline(boxes) == boxes

    def test_document_fields_not_merged(self):
        """Fields declared by the document keep their own geometry."""
        declared = [
            record(
                Rect(x, 700, x + 100, 718),
                confidence=ConfidenceTier.HIGH,
                method=DetectionMethod.STRUCTURED_ANNOTATION,
            )
            for x in (50, 200)
        ]
        assert self.fusion.merge_same_baseline(declared) == declared

    def test_input_not_mutated(self):
        """Merging builds a new record for the survivor."""
        first = record(Rect(50, 100, 150, 118))
        self.fusion.merge_same_baseline([first, record(Rect(200, 100, 300, 118))])
        assert first.rect == Rect(50, 100, 150, 118)


class TestOverlapResolution:
    """Overlap resolution tests."""

    def setup_method(self):
        self.fusion = FieldFusion()

    def test_higher_confidence_wins(self):
        """Of two overlapping records only the high-confidence one survives."""
        low = record(Rect(50, 100, 250, 118), confidence=ConfidenceTier.LOW)
        high = record(Rect(60, 105, 260, 123), confidence=ConfidenceTier.HIGH)

        assert self.fusion.resolve_overlaps([low, high]) == [high]

    def test_score_breaks_ties_within_tier(self):
        """Within a tier the higher numeric score wins."""
        weak = record(
            Rect(100, 100, 110, 110),
            kind=FieldKind.CHECKBOX,
            confidence=ConfidenceTier.MEDIUM,
            score=0.85,
        )
        strong = record(
            Rect(105, 105, 115, 115),
            kind=FieldKind.CHECKBOX,
            confidence=ConfidenceTier.MEDIUM,
            score=0.88,
        )
        assert self.fusion.resolve_overlaps([weak, strong]) == [strong]

    def test_detection_order_breaks_full_ties(self):
        """Equal confidence keeps the record detected first."""
        first = record(Rect(50, 100, 250, 118))
        second = record(Rect(60, 100, 260, 118))
        assert self.fusion.resolve_overlaps([first, second]) == [first]

    def test_document_field_beats_pixel_checkbox(self):
        """A declared checkbox outranks a perfect pixel match on the same spot."""
        declared = record(
            Rect(100, 650, 114, 664),
            kind=FieldKind.CHECKBOX,
            confidence=ConfidenceTier.HIGH,
            method=DetectionMethod.STRUCTURED_ANNOTATION,
        )
        pixel = record(
            Rect(100, 650, 114, 664),
            kind=FieldKind.CHECKBOX,
            confidence=ConfidenceTier.HIGH,
            method=DetectionMethod.PIXEL_CHECKBOX_PATTERN,
            score=1.0,
        )
        assert self.fusion.resolve_overlaps([declared, pixel]) == [declared]

    def test_disjoint_records_all_kept(self):
        """Records that do not intersect are all kept."""
        records = [record(Rect(50, y, 250, y + 18)) for y in (100, 200, 300)]
        assert len(self.fusion.resolve_overlaps(records)) == 3


class TestSizeFilter:
    """Size filtering tests."""

    def setup_method(self):
        self.fusion = FieldFusion()

    @pytest.mark.parametrize("width,kept", [(60, False), (15, True), (5, False), (40, False)])
    def test_checkbox_bounds(self, width, kept):
        """Checkbox sides must lie strictly between 5 and 40."""
        box = record(Rect(100, 100, 100 + width, 115), kind=FieldKind.CHECKBOX)
        assert self.fusion.has_plausible_size(box) is kept

    @pytest.mark.parametrize(
        "width,height,kept",
        [(200, 18, True), (15, 18, False), (600, 18, False), (200, 60, False), (200, 4, False)],
    )
    def test_text_bounds(self, width, height, kept):
        """Text fields need a plausible width and height."""
        text = record(Rect(0, 0, width, height))
        assert self.fusion.has_plausible_size(text) is kept

    def test_degenerate_rect_dropped(self):
        """Zero-area records never survive, whatever their kind."""
        signature = record(Rect(0, 0, 0, 20), kind=FieldKind.SIGNATURE)
        assert self.fusion.filter_by_size([signature]) == []

    def test_unbounded_kinds_kept(self):
        """Kinds without specific bounds only need a positive area."""
        dropdown = record(Rect(0, 0, 800, 300), kind=FieldKind.DROPDOWN)
        assert self.fusion.filter_by_size([dropdown]) == [dropdown]


class TestFuse:
    """Whole pipeline tests."""

    def test_deterministic(self):
        """The same input always gives the same output in the same order."""
        fusion = FieldFusion()
        candidates = [
            record(Rect(50, 100, 150, 118)),
            record(Rect(200, 101, 300, 119)),
            record(Rect(60, 300, 260, 318), confidence=ConfidenceTier.HIGH),
            record(Rect(100, 500, 112, 512), kind=FieldKind.CHECKBOX, score=0.9),
            record(Rect(100, 600, 160, 660), kind=FieldKind.CHECKBOX, score=0.9),
        ]

        first = fusion.fuse(candidates)
        second = fusion.fuse(candidates)

        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
        assert len(first) == 3
