"""Public Router — unauthenticated liveness, status and version endpoints."""

from fastapi import APIRouter

from app.config import settings
from app.utils.dates import utcnow

router: APIRouter = APIRouter()

API_VERSION: str = "v1"


@router.get("/health")
async def public_health() -> dict:
    return {"status": "UP", "timestamp": utcnow().isoformat()}


@router.get("/status")
async def public_status() -> dict:
    return {
        "application": settings.APP_NAME,
        "status": "running",
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
    }


@router.get("/version")
async def public_version() -> dict:
    return {"version": settings.APP_VERSION, "build": settings.APP_BUILD, "api": API_VERSION}
