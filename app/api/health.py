"""
Health check and status endpoints
"""
from fastapi import APIRouter
from datetime import datetime, timezone
from app.config import get_settings
from app import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Get system status"""
    settings = get_settings()
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "store_backend": settings.store_backend,
        "tenant_namespace": settings.tenant_namespace,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
