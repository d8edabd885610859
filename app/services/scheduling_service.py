"""Scheduling service — timed publication of news articles.

Articles carry a ``scheduled_publication_date``; a background loop started
in the app lifespan publishes the due ones every SCHEDULER_INTERVAL_SECONDS.
"""

import asyncio
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session
from app.models.audit_log import AuditAction
from app.models.news import NewsArticle
from app.repositories.news_repository import news_article_repository
from app.schemas.admin import BulkEntityType, ScheduledPublication, SchedulePublicationRequest
from app.services.audit_service import audit_service
from app.utils.cache import cache
from app.utils.dates import ensure_utc, utcnow
from app.utils.exceptions import BadRequestError, NotFoundError


def _scheduled(article: NewsArticle) -> ScheduledPublication:
    return ScheduledPublication(
        entity_id=article.id,
        title=article.title,
        scheduled_date=ensure_utc(article.scheduled_publication_date),
    )


def _require_news(entity_type: BulkEntityType | str) -> None:
    if BulkEntityType(entity_type) is not BulkEntityType.NEWS_ARTICLE:
        raise BadRequestError("Scheduled publication is only supported for news articles")


class SchedulingService:
    """Service handling scheduled publication."""

    async def _article_or_404(self, db: AsyncSession, article_id: UUID) -> NewsArticle:
        article: NewsArticle | None = await news_article_repository.get_by_id(db, article_id)
        if article is None:
            raise NotFoundError("News article not found")
        return article

    async def schedule(self, db: AsyncSession, data: SchedulePublicationRequest) -> ScheduledPublication:
        """Schedule an article; it is unpublished until the date arrives.

        Raises:
            BadRequestError: Date not in the future or unsupported entity type
            NotFoundError: Unknown article
        """
        scheduled_date = ensure_utc(data.scheduled_date)
        if scheduled_date <= utcnow():
            raise BadRequestError("Scheduled date must be in the future")
        _require_news(data.entity_type)

        article = await self._article_or_404(db, data.entity_id)
        article.scheduled_publication_date = scheduled_date
        article.is_published = False
        await db.flush()
        await cache.evict("news", "featured")
        logger.info("Scheduled article {} for {}", article.id, scheduled_date.isoformat())
        return _scheduled(article)

    async def cancel(self, db: AsyncSession, entity_type: BulkEntityType | str, entity_id: UUID) -> None:
        _require_news(entity_type)
        article = await self._article_or_404(db, entity_id)
        article.scheduled_publication_date = None
        await db.flush()
        logger.info("Cancelled scheduled publication of article {}", article.id)

    async def list_scheduled(self, db: AsyncSession) -> list[ScheduledPublication]:
        return [_scheduled(a) for a in await news_article_repository.get_scheduled(db)]

    async def count_scheduled(self, db: AsyncSession) -> int:
        return await news_article_repository.count_scheduled(db)

    async def scheduled_between(self, db: AsyncSession, start: datetime, end: datetime) -> list[ScheduledPublication]:
        start, end = ensure_utc(start), ensure_utc(end)
        if start > end:
            raise BadRequestError("Start date must be on or before end date")
        return [_scheduled(a) for a in await news_article_repository.get_scheduled_between(db, start, end)]

    async def process_due(self, db: AsyncSession) -> int:
        """Publish every article whose scheduled date has passed.

        Each article runs in its own savepoint; a failing one is rolled
        back, recorded as a FAILURE row and skipped. Returns the number
        published.
        """
        published = 0
        for article in await news_article_repository.get_due(db, utcnow()):
            article_id, title = article.id, article.title
            try:
                async with db.begin_nested():
                    article.publish()
                    article.scheduled_publication_date = None
                    await audit_service.audit(
                        db,
                        AuditAction.UPDATE,
                        username="system",
                        entity_type="NewsArticle",
                        entity_id=article_id,
                        description=f"Scheduled publication of '{title}'",
                    )
                published += 1
            except Exception as exc:
                logger.error("Failed to publish scheduled article {}: {}", article_id, exc)
                await audit_service.log_failure(
                    db,
                    AuditAction.UPDATE,
                    exc,
                    username="system",
                    entity_type="NewsArticle",
                    entity_id=article_id,
                    description=f"Failed to publish scheduled article '{title}'",
                )

        if published:
            await cache.evict("news", "featured")
            logger.info("Published {} scheduled article(s)", published)
        return published


async def run_scheduler(interval: int | None = None) -> None:
    """Publication loop; runs until cancelled, one session per pass."""
    interval = interval or settings.SCHEDULER_INTERVAL_SECONDS
    logger.info("Scheduled publication loop started (every {}s)", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            async with async_session() as db:
                await scheduling_service.process_due(db)
                await db.commit()
        except Exception as exc:
            logger.exception("Scheduled publication pass failed: {}", exc)


# Singleton instance
scheduling_service: SchedulingService = SchedulingService()
