"""Field detection API routes."""

import io

import numpy as np
from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from PIL import Image, UnidentifiedImageError

from fieldscan.core.config import get_settings
from fieldscan.core.exceptions import DocumentLoadError, RasterUnavailableError
from fieldscan.models import PageInput
from fieldscan.schemas import DocumentDetectionResponse, PageDetectionResponse
from fieldscan.services.detection.detector import field_detector

router = APIRouter(prefix="/detect", tags=["detection"])

settings = get_settings()


@router.post("", response_model=DocumentDetectionResponse)
async def detect_document_fields(
    file: UploadFile = File(...),
    scale: float | None = Query(None, gt=0),
):
    """
    Detect form fields on every page of an uploaded PDF.

    Combines:
    - Interactive fields declared by the document
    - Label and blank-line recognition on the rendered page
    - Underline and checkbox patterns in the page pixels
    """
    allowed_types = ["application/pdf"]
    if file.content_type not in allowed_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed types: {allowed_types}",
        )

    content = await file.read()
    try:
        result = await field_detector.detect_document(content, scale=scale)
    except (DocumentLoadError, RasterUnavailableError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return DocumentDetectionResponse.from_result(result)


@router.post("/page", response_model=PageDetectionResponse)
async def detect_page_fields(
    file: UploadFile = File(...),
    page_height: float = Form(..., gt=0),
    scale: float = Form(settings.render_scale, gt=0),
    page_number: int = Form(1, ge=1),
):
    """
    Detect form fields on a single rendered page image.

    The image carries no structured metadata, so only the text and pixel
    detectors contribute.
    """
    content = await file.read()
    try:
        with Image.open(io.BytesIO(content)) as image:
            raster = np.asarray(image.convert("RGBA"))
    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Could not decode page image: {e}",
        )

    page = PageInput(
        page_number=page_number,
        raster=raster,
        page_height=page_height,
        scale=scale,
    )
    try:
        result = await field_detector.detect_page(page)
    except RasterUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return PageDetectionResponse.from_result(result)
