"""Health service — component checks and runtime metrics for the admin API."""

import os
import shutil
import time
from pathlib import Path
from typing import Any

import psutil
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.district import District
from app.models.download import Download
from app.models.media import MediaGallery, MediaItem
from app.models.member import Member
from app.models.news import NewsArticle
from app.models.player import Player
from app.models.tournament import Tournament
from app.models.user import User
from app.repositories.base import BaseRepository
from app.schemas.admin import ComponentHealth, QuickHealthResponse, SystemHealthResponse
from app.services.storage_service import storage_service
from app.utils.cache import cache
from app.utils.dates import utcnow

UP: str = "UP"
DOWN: str = "DOWN"
WARNING: str = "WARNING"

DISK_WARNING_PERCENT: float = 90.0

_STARTED_AT: float = time.monotonic()

_COUNTED_ENTITIES: dict[str, BaseRepository] = {
    name: BaseRepository(model)
    for name, model in (
        ("users", User),
        ("members", Member),
        ("players", Player),
        ("tournaments", Tournament),
        ("districts", District),
        ("news_articles", NewsArticle),
        ("media_galleries", MediaGallery),
        ("media_items", MediaItem),
        ("downloads", Download),
    )
}


def overall_status(components: dict[str, ComponentHealth]) -> str:
    """DOWN beats WARNING beats UP."""
    statuses = {c.status for c in components.values()}
    if DOWN in statuses:
        return DOWN
    if WARNING in statuses:
        return WARNING
    return UP


class HealthService:
    """Service producing system health reports."""

    async def check_database(self, db: AsyncSession) -> ComponentHealth:
        try:
            await db.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error("Database health check failed: {}", exc)
            return ComponentHealth(status=DOWN, details={"error": str(exc)})
        return ComponentHealth(status=UP, details={"backend": db.bind.dialect.name if db.bind else "unknown"})

    async def check_cache(self) -> ComponentHealth:
        try:
            alive = await cache.ping()
        except Exception as exc:
            logger.error("Cache health check failed: {}", exc)
            return ComponentHealth(status=DOWN, details={"error": str(exc)})
        return ComponentHealth(status=UP if alive else DOWN, details={"backend": cache.backend.name})

    def check_storage(self) -> ComponentHealth:
        """Disk usage of the volume holding the uploads directory."""
        path: Path = storage_service.uploads_dir
        while not path.exists() and path != path.parent:
            path = path.parent
        try:
            usage = shutil.disk_usage(path)
        except OSError as exc:
            return ComponentHealth(status=DOWN, details={"error": str(exc)})

        used_percent = round(usage.used / usage.total * 100, 2) if usage.total else 0.0
        details: dict[str, Any] = {
            "mode": "local" if storage_service.is_local else "s3",
            "total_bytes": usage.total,
            "free_bytes": usage.free,
            "used_percent": used_percent,
        }
        return ComponentHealth(status=WARNING if used_percent > DISK_WARNING_PERCENT else UP, details=details)

    def check_services(self) -> ComponentHealth:
        return ComponentHealth(
            status=UP,
            details={
                "scheduler_enabled": settings.SCHEDULER_ENABLED,
                "audit_enabled": settings.AUDIT_ENABLED,
                "email_configured": settings.smtp_configured,
            },
        )

    async def metrics(self, db: AsyncSession) -> dict[str, Any]:
        counts = {name: await repo.count(db) for name, repo in _COUNTED_ENTITIES.items()}
        process = psutil.Process(os.getpid())
        memory = process.memory_info()
        return {
            "memory_rss_mb": round(memory.rss / 1024 / 1024, 2),
            "memory_percent": round(process.memory_percent(), 2),
            "cpu_percent": process.cpu_percent(interval=None),
            "cpu_count": os.cpu_count(),
            "uptime_seconds": int(time.monotonic() - _STARTED_AT),
            "record_counts": counts,
            "total_records": sum(counts.values()),
        }

    async def system_health(self, db: AsyncSession) -> SystemHealthResponse:
        components = {
            "database": await self.check_database(db),
            "cache": await self.check_cache(),
            "storage": self.check_storage(),
            "services": self.check_services(),
        }
        metrics: dict[str, Any] = {}
        if components["database"].status == UP:
            metrics = await self.metrics(db)
        return SystemHealthResponse(
            status=overall_status(components),
            components=components,
            metrics=metrics,
            timestamp=utcnow(),
        )

    async def quick_health(self, db: AsyncSession) -> QuickHealthResponse:
        database = await self.check_database(db)
        return QuickHealthResponse(status=database.status, timestamp=utcnow())


# Singleton instance
health_service: HealthService = HealthService()
