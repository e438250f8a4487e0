"""
Conversion status endpoints.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from app.models.schemas import ConversionStatusResponse
from domains.raw_conversion.errors import ConversionTimeoutError
from domains.raw_conversion.service import RawFileConversionService, get_conversion_service

router = APIRouter()


@router.get("/status", response_model=ConversionStatusResponse)
async def conversion_status(service: RawFileConversionService = Depends(get_conversion_service)):
    """
    Conversion progress of all providers.

    Returns:
        Raw, converted and pending file counts per provider
    """
    providers = service.conversion_status()

    return ConversionStatusResponse(
        unconverted_files_exist=any(p.pending_files > 0 for p in providers),
        providers=providers,
        timestamp=datetime.now(),
    )


@router.post("/wait", response_model=ConversionStatusResponse)
def wait_for_conversion(
    timeout: Optional[float] = None,
    service: RawFileConversionService = Depends(get_conversion_service),
):
    """
    Block until every raw file has been converted.

    Args:
        timeout: Seconds to wait before giving up, defaults to the configured conversion timeout

    Returns:
        Conversion status once everything is converted
    """
    if timeout is None:
        timeout = service.settings.conversion_timeout
    logger.info(f"Waiting up to {timeout}s for raw files to be converted")

    try:
        service.wait_for_all_raw_files_to_be_converted(timeout=timeout)
    except ConversionTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))

    return ConversionStatusResponse(
        unconverted_files_exist=False,
        providers=service.conversion_status(),
        timestamp=datetime.now(),
    )
