"""
Pixel-pattern detection on the rendered page raster.

Works without any text recognition. Looks for:
- Long horizontal dark runs (write-on-line text inputs)
- Small closed squares with a dark border and light interior (checkboxes)
"""

import logging

import numpy as np

from fieldscan.core.config import Settings, get_settings
from fieldscan.models import (
    ConfidenceTier,
    DetectionMethod,
    FieldKind,
    FieldRecord,
    Rect,
)
from fieldscan.services.geometry import point_to_document_space, to_document_space

logger = logging.getLogger(__name__)


def as_rgb(raster: np.ndarray) -> np.ndarray:
    """Return an ``H x W x 3`` view of an RGB, RGBA or grayscale raster."""
    if raster.ndim == 2:
        return np.repeat(raster[:, :, np.newaxis], 3, axis=2)
    if raster.ndim == 3 and raster.shape[2] >= 3:
        return raster[:, :, :3]
    raise ValueError(f"Unsupported raster shape {raster.shape}")


class _Sampler:
    """Read boolean masks at arbitrary (possibly out-of-bounds) coordinates."""

    def __init__(self, height: int, width: int, margin: int):
        self.height = height
        self.width = width
        self.margin = margin

    def pad(self, mask: np.ndarray) -> np.ndarray:
        return np.pad(mask, self.margin, constant_values=False)

    def in_bounds(self, px: np.ndarray, py: np.ndarray) -> np.ndarray:
        return (px >= 0) & (px < self.width) & (py >= 0) & (py < self.height)

    def read(self, padded: np.ndarray, px: np.ndarray, py: np.ndarray) -> np.ndarray:
        return padded[py + self.margin, px + self.margin]


class PixelPatternDetector:
    """Find underline and checkbox candidates directly in pixel data."""

    name = "pixels"

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def detect(
        self,
        raster: np.ndarray,
        page_height: float,
        scale: float,
        page_number: int = 1,
    ) -> list[FieldRecord]:
        """Run both pixel strategies on one page."""
        rgb = as_rgb(raster)
        context = {"page": page_number, "detector": self.name}

        fields = self.detect_lines(rgb, page_height, scale)
        logger.debug(
            "Found %d horizontal line candidates",
            len(fields),
            extra={**context, "stage": "lines"},
        )

        if self.settings.checkbox_detection_enabled:
            checkboxes = self.detect_checkboxes(rgb, page_height, scale)
            logger.debug(
                "Found %d checkbox candidates",
                len(checkboxes),
                extra={**context, "stage": "checkboxes"},
            )
            fields.extend(checkboxes)

        return fields

    # ------------------------------------------------------------------
    # Horizontal lines
    # ------------------------------------------------------------------

    def detect_lines(
        self,
        rgb: np.ndarray,
        page_height: float,
        scale: float,
    ) -> list[FieldRecord]:
        """
        Detect horizontal dark runs that look like text input underlines.

        A run tolerates gaps of up to ``line_max_gap_px`` light pixels. It is
        kept when it is long enough and dense enough, and when its width in
        document units is plausible for an input field.
        """
        s = self.settings
        dark = np.all(rgb < s.line_dark_threshold, axis=2)
        min_dark = s.line_min_length_px * s.line_min_dark_ratio

        fields = []
        for y in np.flatnonzero(dark.sum(axis=1) > min_dark):
            xs = np.flatnonzero(dark[y])
            breaks = np.flatnonzero(np.diff(xs) > s.line_max_gap_px + 1)
            starts = np.concatenate(([0], breaks + 1))
            ends = np.concatenate((breaks, [len(xs) - 1]))

            for start, end in zip(starts, ends):
                x_start = int(xs[start])
                x_end = int(xs[end]) + 1
                length = x_end - x_start
                ratio = (end - start + 1) / length

                if length <= s.line_min_length_px or ratio <= s.line_min_dark_ratio:
                    continue

                pdf_x0, pdf_top = point_to_document_space(x_start, y, page_height, scale)
                pdf_x1, _ = point_to_document_space(x_end, y, page_height, scale)
                pdf_width = pdf_x1 - pdf_x0

                # Shorter runs are noise, longer ones are rules or borders
                if not s.line_min_width < pdf_width < s.line_max_width:
                    continue

                fields.append(FieldRecord(
                    kind=FieldKind.TEXT,
                    rect=Rect(pdf_x0, pdf_top - s.line_field_height, pdf_x1, pdf_top),
                    confidence=ConfidenceTier.MEDIUM,
                    detection_method=DetectionMethod.PIXEL_HORIZONTAL_LINE,
                ))

        return fields

    # ------------------------------------------------------------------
    # Checkboxes
    # ------------------------------------------------------------------

    def detect_checkboxes(
        self,
        rgb: np.ndarray,
        page_height: float,
        scale: float,
    ) -> list[FieldRecord]:
        """
        Detect empty squares at canonical checkbox sizes.

        Every candidate origin on a sparse grid is scored by five equally
        weighted checks; only near-perfect scores are accepted, which keeps
        false positives from text glyphs and table grids down.
        """
        s = self.settings
        height, width = rgb.shape[:2]
        margin = max(s.checkbox_sizes, default=0) + s.checkbox_isolation_buffer + 1
        sampler = _Sampler(height, width, margin)

        masks = {
            "dark": sampler.pad(np.all(rgb < s.checkbox_dark_threshold, axis=2)),
            "light": sampler.pad(np.all(rgb > s.checkbox_light_threshold, axis=2)),
            "outer_light": sampler.pad(rgb[:, :, 0] > s.checkbox_isolation_light_threshold),
            "border_dark": sampler.pad(rgb[:, :, 0] < s.checkbox_dark_threshold),
        }

        fields = []
        checked = set()

        for size in s.checkbox_sizes:
            step = max(1, size // 2)
            xs = np.arange(size, width - size, step)
            ys = np.arange(size, height - size, step)
            if xs.size == 0 or ys.size == 0:
                continue

            origin_x, origin_y = np.meshgrid(xs, ys)
            scores = self._score_origins(origin_x, origin_y, size, masks, sampler)

            # argwhere walks row-major, i.e. top to bottom, left to right
            for row, col in np.argwhere(scores > s.checkbox_score_threshold):
                x = int(origin_x[row, col])
                y = int(origin_y[row, col])
                key = (x // s.checkbox_dedup_cell_px, y // s.checkbox_dedup_cell_px)
                if key in checked:
                    continue
                checked.add(key)

                score = float(scores[row, col])
                fields.append(FieldRecord(
                    kind=FieldKind.CHECKBOX,
                    rect=to_document_space((x, y, x + size, y + size), page_height, scale),
                    confidence=(
                        ConfidenceTier.HIGH
                        if score >= s.checkbox_high_score
                        else ConfidenceTier.MEDIUM
                    ),
                    detection_method=DetectionMethod.PIXEL_CHECKBOX_PATTERN,
                    score=score,
                ))

        return self.remove_overlapping(fields)

    def _score_origins(
        self,
        origin_x: np.ndarray,
        origin_y: np.ndarray,
        size: int,
        masks: dict[str, np.ndarray],
        sampler: _Sampler,
    ) -> np.ndarray:
        """Compute the composite checkbox score for a grid of origins."""
        s = self.settings

        def points(offsets):
            for dx, dy in offsets:
                px = np.floor(origin_x + dx).astype(int)
                py = np.floor(origin_y + dy).astype(int)
                yield px, py

        def count(mask, offsets):
            total = np.zeros(origin_x.shape, dtype=int)
            for px, py in points(offsets):
                total += sampler.read(mask, px, py)
            return total

        half, third = size / 2, size / 3

        # 1. Corners and edge midpoints are dark
        edges = [
            (0, 0), (size, 0), (0, size), (size, size),
            (half, 0), (half, size), (0, half), (size, half),
        ]
        edge_check = count(masks["dark"], edges) >= s.checkbox_min_dark_edges

        # 2. Interior is light (empty box)
        centers = [(half, half), (third, third), (2 * third, 2 * third)]
        center_check = count(masks["light"], centers) >= s.checkbox_min_light_center

        # 3. Size plausibility holds by construction: only canonical sizes are tried

        # 4. Isolated: just outside the corners is light
        b = s.checkbox_isolation_buffer
        outer = [(-b, -b), (size + b, -b), (-b, size + b), (size + b, size + b)]
        isolation = count(masks["outer_light"], outer) / len(outer)
        isolation_check = isolation > s.checkbox_isolation_min_ratio

        # 5. Closed perimeter
        perimeter = []
        for i in range(0, size, max(1, size // 8)):
            perimeter.extend([(i, 0), (i, size), (0, i), (size, i)])
        dark_count = np.zeros(origin_x.shape, dtype=int)
        sampled = np.zeros(origin_x.shape, dtype=int)
        for px, py in points(perimeter):
            inside = sampler.in_bounds(px, py)
            sampled += inside
            dark_count += sampler.read(masks["border_dark"], px, py) & inside
        ratio = np.divide(
            dark_count, sampled,
            out=np.zeros(origin_x.shape, dtype=float),
            where=sampled > 0,
        )
        perimeter_check = ratio > s.checkbox_perimeter_min_ratio

        passed = (
            edge_check.astype(int)
            + center_check.astype(int)
            + 1
            + isolation_check.astype(int)
            + perimeter_check.astype(int)
        )
        return passed / 5

    @staticmethod
    def remove_overlapping(fields: list[FieldRecord]) -> list[FieldRecord]:
        """Keep only the highest scoring checkbox of each overlapping cluster."""
        kept = []
        for candidate in sorted(fields, key=lambda f: f.score or 0.0, reverse=True):
            if not any(candidate.rect.intersects(existing.rect) for existing in kept):
                kept.append(candidate)
        return kept
