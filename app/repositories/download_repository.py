"""Download repository — public listing, category and popularity queries."""

from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.download import Download
from app.repositories.base import BaseRepository


class DownloadRepository(BaseRepository[Download]):
    """Repository handling database queries for the downloads table."""

    def __init__(self) -> None:
        super().__init__(Download)

    def public_query(self) -> Select:
        return (
            select(Download)
            .where(Download.is_public == True, Download.is_active == True)
            .order_by(Download.created_at.desc())
        )

    async def get_public(self, db: AsyncSession) -> Sequence[Download]:
        return (await db.execute(self.public_query())).scalars().all()

    def category_query(self, category: str) -> Select:
        return self.public_query().where(func.lower(Download.category) == category.lower())

    async def get_by_category(self, db: AsyncSession, category: str) -> Sequence[Download]:
        return (await db.execute(self.category_query(category))).scalars().all()

    async def search(self, db: AsyncSession, title: str) -> Sequence[Download]:
        query = self.public_query().where(func.lower(Download.title).like(f"%{title.lower()}%"))
        return (await db.execute(query)).scalars().all()

    async def get_popular(self, db: AsyncSession, limit: int = 10) -> Sequence[Download]:
        query = (
            select(Download)
            .where(Download.is_public == True, Download.is_active == True)
            .order_by(Download.download_count.desc(), Download.title)
            .limit(limit)
        )
        return (await db.execute(query)).scalars().all()


# Singleton instance
download_repository: DownloadRepository = DownloadRepository()
