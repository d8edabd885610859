"""Media repository — gallery and media item queries."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.media import GalleryType, MediaGallery, MediaItem, MediaType
from app.repositories.base import BaseRepository


class MediaGalleryRepository(BaseRepository[MediaGallery]):
    """Repository handling database queries for media galleries."""

    def __init__(self) -> None:
        super().__init__(MediaGallery)

    def public_query(self) -> Select:
        return (
            select(MediaGallery)
            .where(MediaGallery.is_public == True)
            .order_by(MediaGallery.created_at.desc())
        )

    async def get_by_type(self, db: AsyncSession, gallery_type: str) -> Sequence[MediaGallery]:
        query = self.public_query().where(MediaGallery.gallery_type == gallery_type)
        return (await db.execute(query)).scalars().all()

    async def get_featured(self, db: AsyncSession) -> Sequence[MediaGallery]:
        query = self.public_query().where(MediaGallery.is_featured == True)
        return (await db.execute(query)).scalars().all()

    async def search(self, db: AsyncSession, title: str) -> Sequence[MediaGallery]:
        query = self.public_query().where(func.lower(MediaGallery.title).like(f"%{title.lower()}%"))
        return (await db.execute(query)).scalars().all()

    async def count_public(self, db: AsyncSession, gallery_type: GalleryType | None = None) -> int:
        filters = {"is_public": True}
        if gallery_type is not None:
            filters["gallery_type"] = gallery_type.value
        return await self.count(db, filters)


class MediaItemRepository(BaseRepository[MediaItem]):
    """Repository handling database queries for media items."""

    def __init__(self) -> None:
        super().__init__(MediaItem)

    async def get_for_gallery(self, db: AsyncSession, gallery_id: UUID) -> Sequence[MediaItem]:
        query = (
            select(MediaItem)
            .where(MediaItem.gallery_id == gallery_id, MediaItem.is_active == True)
            .order_by(MediaItem.sort_order, MediaItem.created_at)
        )
        return (await db.execute(query)).scalars().all()

    async def get_by_type(self, db: AsyncSession, media_type: str) -> Sequence[MediaItem]:
        query = (
            select(MediaItem)
            .where(MediaItem.media_type == media_type, MediaItem.is_active == True)
            .order_by(MediaItem.created_at.desc())
        )
        return (await db.execute(query)).scalars().all()

    async def count_active(self, db: AsyncSession, media_type: MediaType) -> int:
        return await self.count(db, {"media_type": media_type.value, "is_active": True})


# Singleton instances
media_gallery_repository: MediaGalleryRepository = MediaGalleryRepository()
media_item_repository: MediaItemRepository = MediaItemRepository()
