"""News repository — article listing, search and scheduled publication queries."""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import NewsArticle, NewsCategory
from app.repositories.base import BaseRepository


class NewsArticleRepository(BaseRepository[NewsArticle]):
    """Repository handling database queries for news articles."""

    def __init__(self) -> None:
        super().__init__(NewsArticle)

    def published_query(self) -> Select:
        """Published articles, newest first."""
        return (
            select(NewsArticle)
            .where(NewsArticle.is_published == True)
            .order_by(NewsArticle.published_at.desc(), NewsArticle.created_at.desc())
        )

    def category_query(self, category_id: UUID) -> Select:
        return self.published_query().where(NewsArticle.category_id == category_id)

    async def get_featured(self, db: AsyncSession, limit: int = 10) -> Sequence[NewsArticle]:
        query = self.published_query().where(NewsArticle.is_featured == True).limit(limit)
        return (await db.execute(query)).scalars().all()

    async def get_by_slug(self, db: AsyncSession, slug: str) -> NewsArticle | None:
        return (await db.execute(select(NewsArticle).where(NewsArticle.slug == slug))).scalar_one_or_none()

    async def slug_exists(self, db: AsyncSession, slug: str, exclude_id: UUID | None = None) -> bool:
        return await self.exists(db, {"slug": slug}, exclude_id=exclude_id)

    async def search(self, db: AsyncSession, term: str) -> Sequence[NewsArticle]:
        pattern = f"%{term.lower()}%"
        query = self.published_query().where(
            or_(
                func.lower(NewsArticle.title).like(pattern),
                func.lower(func.coalesce(NewsArticle.summary, "")).like(pattern),
                func.lower(NewsArticle.content).like(pattern),
            )
        )
        return (await db.execute(query)).scalars().all()

    async def get_published_since(self, db: AsyncSession, since: datetime) -> Sequence[NewsArticle]:
        query = self.published_query().where(NewsArticle.published_at >= since)
        return (await db.execute(query)).scalars().all()

    # ------------------------------------------------------------------
    # Scheduled publication
    # ------------------------------------------------------------------

    def scheduled_query(self) -> Select:
        return (
            select(NewsArticle)
            .where(
                NewsArticle.scheduled_publication_date.is_not(None),
                NewsArticle.is_published == False,
            )
            .order_by(NewsArticle.scheduled_publication_date)
        )

    async def get_scheduled(self, db: AsyncSession) -> Sequence[NewsArticle]:
        return (await db.execute(self.scheduled_query())).scalars().all()

    async def count_scheduled(self, db: AsyncSession) -> int:
        query = select(func.count()).select_from(self.scheduled_query().order_by(None).subquery())
        return (await db.execute(query)).scalar() or 0

    async def get_scheduled_between(self, db: AsyncSession, start: datetime, end: datetime) -> Sequence[NewsArticle]:
        query = self.scheduled_query().where(
            NewsArticle.scheduled_publication_date >= start,
            NewsArticle.scheduled_publication_date <= end,
        )
        return (await db.execute(query)).scalars().all()

    async def get_due(self, db: AsyncSession, now: datetime) -> Sequence[NewsArticle]:
        query = self.scheduled_query().where(NewsArticle.scheduled_publication_date <= now)
        return (await db.execute(query)).scalars().all()


class NewsCategoryRepository(BaseRepository[NewsCategory]):
    """Repository handling database queries for news categories."""

    def __init__(self) -> None:
        super().__init__(NewsCategory)

    async def get_active(self, db: AsyncSession) -> Sequence[NewsCategory]:
        return await self.get_all(db, {"is_active": True}, order_by=NewsCategory.name)

    async def get_by_slug(self, db: AsyncSession, slug: str) -> NewsCategory | None:
        return (await db.execute(select(NewsCategory).where(NewsCategory.slug == slug))).scalar_one_or_none()


# Singleton instances
news_article_repository: NewsArticleRepository = NewsArticleRepository()
news_category_repository: NewsCategoryRepository = NewsCategoryRepository()
