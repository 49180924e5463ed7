"""API routes package."""

from fastapi import APIRouter

from fieldscan.api.detection import router as detection_router

api_router = APIRouter()

api_router.include_router(detection_router)
