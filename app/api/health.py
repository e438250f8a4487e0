"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.utils.config import get_settings
from domains.raw_conversion.service import RawFileConversionService, get_conversion_service

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    watch_services: int
    watching: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(service: RawFileConversionService = Depends(get_conversion_service)):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Every watch service is still watching
    """
    settings = get_settings()
    total = len(service.watch_services)
    watching = sum(1 for watch_service in service.watch_services if watch_service.is_running)

    return HealthResponse(
        status="healthy" if watching == total else "degraded",
        timestamp=datetime.now(),
        watch_services=total,
        watching=watching,
        version=settings.api_version
    )
