"""Reconcile the output of all detectors into one field list."""

import logging
from dataclasses import replace

from fieldscan.core.config import Settings, get_settings
from fieldscan.models import DetectionMethod, FieldKind, FieldRecord

logger = logging.getLogger(__name__)


class FieldFusion:
    """
    Merge, deduplicate and filter field candidates for one page.

    Stages, in order:
    1. Same-baseline merge of records of the same kind
    2. Overlap resolution keeping the most trusted record per region
    3. Size filtering with kind-specific bounds
    """

    # Boxes side by side are distinct fields, so only text runs are merged
    MERGEABLE_KINDS = {FieldKind.TEXT}

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def fuse(self, candidates: list[FieldRecord], page_number: int = 1) -> list[FieldRecord]:
        context = {"page": page_number, "detector": "fusion"}

        merged = self.merge_same_baseline(candidates)
        logger.debug(
            "Merged %d candidates into %d",
            len(candidates),
            len(merged),
            extra={**context, "stage": "merge"},
        )

        resolved = self.resolve_overlaps(merged)
        logger.debug(
            "Overlap resolution kept %d",
            len(resolved),
            extra={**context, "stage": "overlap"},
        )

        filtered = self.filter_by_size(resolved)
        logger.debug(
            "Size filter kept %d",
            len(filtered),
            extra={**context, "stage": "filter"},
        )
        return filtered

    def merge_same_baseline(self, candidates: list[FieldRecord]) -> list[FieldRecord]:
        """
        Union records of the same kind lying on the same baseline.

        The first record of each group survives with its own attributes and
        its rectangle widened to the group's horizontal extent. Records declared
        by the document are relayed untouched.
        """
        tolerance = self.settings.merge_tolerance
        merged = []
        used = set()

        for i, record in enumerate(candidates):
            if i in used:
                continue
            used.add(i)

            if not self._mergeable(record):
                merged.append(record)
                continue

            rect = record.rect
            for j in range(i + 1, len(candidates)):
                if j in used:
                    continue
                other = candidates[j]
                if (
                    self._mergeable(other)
                    and other.kind == record.kind
                    and abs(other.rect.y0 - record.rect.y0) < tolerance
                ):
                    rect = replace(
                        rect,
                        x0=min(rect.x0, other.rect.x0),
                        x1=max(rect.x1, other.rect.x1),
                    )
                    used.add(j)

            merged.append(record if rect is record.rect else replace(record, rect=rect))

        return merged

    def _mergeable(self, record: FieldRecord) -> bool:
        return (
            record.kind in self.MERGEABLE_KINDS
            and record.detection_method != DetectionMethod.STRUCTURED_ANNOTATION
        )

    def resolve_overlaps(self, candidates: list[FieldRecord]) -> list[FieldRecord]:
        """Keep at most one record per region, preferring higher confidence."""
        # Unscored records are certain within their tier; sorted() is stable,
        # so equal confidence keeps detection order
        ordered = sorted(
            candidates,
            key=lambda r: (r.confidence.rank, r.score if r.score is not None else 1.0),
            reverse=True,
        )

        kept = []
        for record in ordered:
            if not any(record.rect.intersects(existing.rect) for existing in kept):
                kept.append(record)
        return kept

    def filter_by_size(self, candidates: list[FieldRecord]) -> list[FieldRecord]:
        """Drop records whose dimensions are implausible for their kind."""
        return [r for r in candidates if self.has_plausible_size(r)]

    def has_plausible_size(self, record: FieldRecord) -> bool:
        s = self.settings
        width, height = record.rect.width, record.rect.height

        if width <= 0 or height <= 0:
            return False

        if record.kind == FieldKind.TEXT:
            return (
                s.text_min_width < width < s.text_max_width
                and s.text_min_height < height < s.text_max_height
            )

        if record.kind in (FieldKind.CHECKBOX, FieldKind.RADIO):
            return (
                s.box_min_size < width < s.box_max_size
                and s.box_min_size < height < s.box_max_size
            )

        return True
