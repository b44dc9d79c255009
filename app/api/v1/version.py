"""
Version and metadata endpoint
"""
from fastapi import APIRouter
from app.core.config import settings
from app.constants import SERVICE_NAME

router = APIRouter()


@router.get("/version")
async def get_version():
    """
    Get application version and metadata

    Returns:
        Service name, version, environment and the configured actual amount source
    """
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
        "actual_amount_source": settings.ACTUAL_AMOUNT_SOURCE,
    }
