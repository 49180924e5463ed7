"""Pydantic schemas for API responses."""

from typing import Any

from pydantic import BaseModel

from fieldscan.models import (
    ConfidenceTier,
    DetectionMethod,
    DocumentDetectionResult,
    FieldKind,
    FieldRecord,
    PageDetectionResult,
)


# --- Base schemas ---


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = {"from_attributes": True}


# --- Field schemas ---


class RectSchema(BaseSchema):
    """Field rectangle in document space, origin at the bottom-left."""

    x0: float
    y0: float
    x1: float
    y1: float


class FieldRecordResponse(BaseSchema):
    """Schema for one detected field."""

    id: str
    kind: FieldKind
    rect: RectSchema
    confidence: ConfidenceTier
    score: float | None = None
    detection_method: DetectionMethod
    label: str | None = None
    group_name: str | None = None

    # Only set for fields declared by the document
    name: str | None = None
    value: Any = None
    options: list[str] = []
    required: bool = False
    read_only: bool = False

    @classmethod
    def from_record(cls, record: FieldRecord) -> "FieldRecordResponse":
        return cls.model_validate(record.to_dict())


# --- Detection schemas ---


class PageDetectionResponse(BaseModel):
    """Schema for the fields detected on one page."""

    page_number: int
    fields: list[FieldRecordResponse]
    detection_time_ms: float
    total_candidates: int
    filtered_candidates: int
    detector_counts: dict[str, int] = {}
    detector_errors: dict[str, str] = {}

    @classmethod
    def from_result(cls, result: PageDetectionResult) -> "PageDetectionResponse":
        return cls(
            page_number=result.page_number,
            fields=[FieldRecordResponse.from_record(f) for f in result.fields],
            detection_time_ms=result.detection_time_ms,
            total_candidates=result.total_candidates,
            filtered_candidates=result.filtered_candidates,
            detector_counts=result.detector_counts,
            detector_errors=result.detector_errors,
        )


class DocumentDetectionResponse(BaseModel):
    """Schema for field detection over a whole document."""

    page_count: int
    pages: list[PageDetectionResponse]
    detection_time_ms: float

    @classmethod
    def from_result(cls, result: DocumentDetectionResult) -> "DocumentDetectionResponse":
        return cls(
            page_count=len(result.pages),
            pages=[PageDetectionResponse.from_result(p) for p in result.pages],
            detection_time_ms=result.detection_time_ms,
        )
