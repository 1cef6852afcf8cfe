"""
Health Check Routes
Service health monitoring endpoints
Source: https://microservices.io/patterns/observability/health-check-api.html
Verified: 2026-10-16
"""

from typing import Any

from fastapi import APIRouter

from buckeye_edi.core.config import get_sftp_settings
from buckeye_edi.db.connection import check_db_connection

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "buckeye-edi",
    }


@router.get("/health/detailed")
async def detailed_health_check() -> dict[str, Any]:
    """Health check with database and gateway configuration status."""
    db_healthy = await check_db_connection()
    return {
        "status": "healthy" if db_healthy else "unhealthy",
        "service": "buckeye-edi",
        "checks": {
            "database": "healthy" if db_healthy else "unhealthy",
            "tmhp_sftp": "configured" if get_sftp_settings().is_configured else "not_configured",
        },
    }
