"""
FastAPI Main Application
Entry point for the EDI billing API
Source: https://fastapi.tiangolo.com/
Verified: 2026-10-16
"""

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buckeye_edi import __version__
from buckeye_edi.api.config import settings
from buckeye_edi.api.routes import claims, edi, eligibility, health
from buckeye_edi.core.config import get_edi_settings
from buckeye_edi.db.connection import close_db_connection
from buckeye_edi.utils.logging import get_logger, setup_logging

setup_logging(
    level=settings.LOG_LEVEL,
    log_file=settings.LOG_FILE,
    json_logs=settings.is_production,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]  # noqa: ARG001
    """Application lifespan manager."""
    edi_settings = get_edi_settings()
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")
    logger.info(f"X12 usage indicator: {edi_settings.USAGE_INDICATOR.value}")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title="Buckeye EDI API",
    description="X12 837P/270/835 billing for outpatient therapy clinics",
    version=__version__,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    openapi_url="/openapi.json" if not settings.is_production else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

app.include_router(health.router)
app.include_router(claims.router)
app.include_router(eligibility.router)
app.include_router(edi.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Buckeye EDI API",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if not settings.is_production else "disabled",
    }


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
