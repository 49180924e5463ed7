"""
Field detection service for locating form fields on document pages.

Three independent detectors look at different representations of a page:
1. Structured annotations declared by the document itself
2. Recognized text (labels and underscore blank lines)
3. Raw pixels (underlines and checkbox squares)

Their candidates are fused into one clean list per page.
"""

import asyncio
import logging
import time
from collections.abc import Callable

import numpy as np

from fieldscan.core.config import Settings, get_settings
from fieldscan.core.exceptions import RasterUnavailableError
from fieldscan.models import (
    DocumentDetectionResult,
    FieldRecord,
    PageDetectionResult,
    PageInput,
)
from fieldscan.services.detection.annotations import AnnotationDetector
from fieldscan.services.detection.fusion import FieldFusion
from fieldscan.services.detection.ocr_labels import LabelDetector, Recognizer
from fieldscan.services.detection.pixels import PixelPatternDetector
from fieldscan.services.document import document_service
from fieldscan.services.ocr import ocr_engine

logger = logging.getLogger(__name__)


class FieldDetector:
    """
    Hybrid field detector driving all detectors and the fusion stage.

    Each page is scanned independently. Within a page the detectors run
    concurrently in worker threads; a detector that fails contributes no
    candidates and the others still go through fusion.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        recognizer: Recognizer | None = None,
    ):
        self.settings = settings or get_settings()
        self.recognizer = recognizer or ocr_engine.recognize

        self.annotations = AnnotationDetector()
        self.labels = LabelDetector(self.settings)
        self.pixels = PixelPatternDetector(self.settings)
        self.fusion = FieldFusion(self.settings)

    async def detect_page(self, page: PageInput) -> PageDetectionResult:
        """
        Detect form fields on a single page.

        Args:
            page: Rendered page and its structured metadata

        Returns:
            PageDetectionResult with the fused field list

        Raises:
            RasterUnavailableError: If the raster or its geometry is unusable
        """
        self._check_raster(page)
        start_time = time.time()
        context = {"page": page.page_number}

        results = await asyncio.gather(
            self._run(
                self.annotations.name,
                page,
                self.annotations.detect,
                page.structured_fields,
                page.field_registry,
                page.page_number - 1,
                page.page_count,
            ),
            self._run(
                self.labels.name,
                page,
                self.labels.detect,
                page.raster,
                page.page_height,
                page.scale,
                self.recognizer,
                page.page_number,
            ),
            self._run(
                self.pixels.name,
                page,
                self.pixels.detect,
                page.raster,
                page.page_height,
                page.scale,
                page.page_number,
            ),
        )

        # Annotations first so document-declared fields win ties in fusion
        candidates: list[FieldRecord] = []
        detector_counts = {}
        detector_errors = {}
        for name, fields, error in results:
            candidates.extend(fields)
            detector_counts[name] = len(fields)
            if error is not None:
                detector_errors[name] = error

        fused = self.fusion.fuse(candidates, page.page_number)
        detection_time_ms = (time.time() - start_time) * 1000

        logger.info(
            "Detected %d fields from %d candidates in %.1f ms",
            len(fused),
            len(candidates),
            detection_time_ms,
            extra={**context, "detector": "driver", "stage": "done"},
        )

        return PageDetectionResult(
            page_number=page.page_number,
            fields=fused,
            detection_time_ms=detection_time_ms,
            total_candidates=len(candidates),
            filtered_candidates=len(fused),
            detector_counts=detector_counts,
            detector_errors=detector_errors,
        )

    async def detect_document(
        self,
        data: bytes,
        scale: float | None = None,
    ) -> DocumentDetectionResult:
        """
        Detect form fields on every page of a PDF.

        Pages are rendered one at a time and detected concurrently, with at
        most ``max_concurrent_pages`` in flight.

        Raises:
            DocumentLoadError: If the PDF cannot be read
        """
        start_time = time.time()
        scale = scale or self.settings.render_scale
        semaphore = asyncio.Semaphore(self.settings.max_concurrent_pages)

        async def detect(page: PageInput) -> PageDetectionResult:
            try:
                return await self.detect_page(page)
            finally:
                semaphore.release()

        doc = document_service.open(data)
        try:
            registry = document_service.get_field_registry(data)
            tasks = []
            try:
                for page in document_service.page_inputs(doc, registry, scale):
                    await semaphore.acquire()
                    tasks.append(asyncio.create_task(detect(page)))
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            pages = await asyncio.gather(*tasks)
        finally:
            doc.close()

        return DocumentDetectionResult(
            pages=list(pages),
            detection_time_ms=(time.time() - start_time) * 1000,
        )

    async def _run(
        self,
        name: str,
        page: PageInput,
        detect: Callable[..., list[FieldRecord]],
        *args,
    ) -> tuple[str, list[FieldRecord], str | None]:
        """Run one detector in a worker thread, turning failure into no output."""
        try:
            fields = await asyncio.to_thread(detect, *args)
        except Exception as e:
            logger.warning(
                "Detector failed: %s",
                e,
                exc_info=True,
                extra={"page": page.page_number, "detector": name},
            )
            return name, [], f"{type(e).__name__}: {e}"
        return name, fields, None

    @staticmethod
    def _check_raster(page: PageInput) -> None:
        raster = page.raster
        if raster is None:
            raise RasterUnavailableError(f"Page {page.page_number} has no raster")
        if not isinstance(raster, np.ndarray) or raster.ndim not in (2, 3) or raster.size == 0:
            raise RasterUnavailableError(f"Page {page.page_number} raster is unusable")
        if raster.dtype != np.uint8:
            raise RasterUnavailableError(
                f"Page {page.page_number} raster has dtype {raster.dtype}, expected uint8"
            )
        if raster.ndim == 3 and raster.shape[2] not in (3, 4):
            raise RasterUnavailableError(
                f"Page {page.page_number} raster has {raster.shape[2]} channels"
            )
        if page.page_height <= 0 or page.scale <= 0:
            raise RasterUnavailableError(
                f"Page {page.page_number} has invalid height or scale"
            )


# Singleton instance
field_detector = FieldDetector()
