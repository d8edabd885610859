"""FastAPI application entry point — middleware and router registration.

Configures logging, the scheduled publication loop, exception handlers,
security/CORS middleware and mounts the v1 API under /api/v1.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app.api.v1 import api_router
from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.middleware.error_handler import register_exception_handlers
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.services.scheduling_service import run_scheduler
from app.services.storage_service import storage_service
from app.utils.logging import setup_logging


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    logger.info("Starting {} {} ({})", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)

    scheduler: asyncio.Task | None = None
    if settings.SCHEDULER_ENABLED:
        scheduler = asyncio.create_task(run_scheduler())

    yield

    if scheduler is not None:
        scheduler.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler
    logger.info("Shutdown complete")


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Last added is outermost: CORS, then security headers, then request logging
app.add_middleware(AxiomLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=["Authorization", "Content-Disposition"],
    max_age=settings.CORS_MAX_AGE,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "ok"}


app.include_router(api_router, prefix="/api/v1")

# Local storage mode serves uploaded files directly
if storage_service.is_local:
    app.mount("/uploads", StaticFiles(directory=storage_service.uploads_dir, check_dir=False), name="uploads")
