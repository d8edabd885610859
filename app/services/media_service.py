"""Media service — photo/video galleries and their items."""

from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.media import GalleryType, MediaGallery, MediaItem, MediaType
from app.repositories.media_repository import media_gallery_repository, media_item_repository
from app.schemas.media import (
    GalleryCreate,
    GalleryDetailResponse,
    GalleryResponse,
    GalleryUpdate,
    MediaItemCreate,
    MediaItemResponse,
    MediaItemUpdate,
    MediaStatistics,
)
from app.services.storage_service import storage_service
from app.utils.exceptions import NotFoundError
from app.utils.pagination import Page


def _galleries(galleries) -> list[GalleryResponse]:
    return [GalleryResponse.model_validate(g) for g in galleries]


def _items(items) -> list[MediaItemResponse]:
    return [MediaItemResponse.model_validate(i) for i in items]


class MediaService:
    """Service handling gallery and media item business logic."""

    async def _gallery_or_404(self, db: AsyncSession, gallery_id: UUID) -> MediaGallery:
        gallery: MediaGallery | None = await media_gallery_repository.get_by_id(db, gallery_id)
        if gallery is None:
            raise NotFoundError("Gallery not found")
        return gallery

    async def _item_or_404(self, db: AsyncSession, item_id: UUID) -> MediaItem:
        item: MediaItem | None = await media_item_repository.get_by_id(db, item_id)
        if item is None or not item.is_active:
            raise NotFoundError("Media item not found")
        return item

    # --- Galleries ----------------------------------------------------------

    async def list_galleries(self, db: AsyncSession, page: int, size: int) -> Page[GalleryResponse]:
        galleries, total = await media_gallery_repository.get_page(db, media_gallery_repository.public_query(), page, size)
        return Page[GalleryResponse].build(_galleries(galleries), total, page, size)

    async def galleries_by_type(self, db: AsyncSession, gallery_type: GalleryType) -> list[GalleryResponse]:
        return _galleries(await media_gallery_repository.get_by_type(db, gallery_type.value))

    async def featured_galleries(self, db: AsyncSession) -> list[GalleryResponse]:
        return _galleries(await media_gallery_repository.get_featured(db))

    async def search_galleries(self, db: AsyncSession, title: str) -> list[GalleryResponse]:
        return _galleries(await media_gallery_repository.search(db, title))

    async def get_gallery(self, db: AsyncSession, gallery_id: UUID) -> GalleryDetailResponse:
        """Gallery with its active items ordered by sort_order."""
        gallery = await self._gallery_or_404(db, gallery_id)
        items = await media_item_repository.get_for_gallery(db, gallery.id)
        return GalleryDetailResponse(**GalleryResponse.model_validate(gallery).model_dump(), items=_items(items))

    async def create_gallery(self, db: AsyncSession, data: GalleryCreate) -> GalleryResponse:
        gallery = MediaGallery(**data.model_dump(), items=[])
        db.add(gallery)
        await db.flush()
        return GalleryResponse.model_validate(gallery)

    async def update_gallery(self, db: AsyncSession, gallery_id: UUID, data: GalleryUpdate) -> GalleryResponse:
        gallery = await self._gallery_or_404(db, gallery_id)
        gallery = await media_gallery_repository.update(db, gallery, data.model_dump(exclude_unset=True))
        return GalleryResponse.model_validate(gallery)

    async def delete_gallery(self, db: AsyncSession, gallery_id: UUID) -> None:
        """Hard delete; items are removed by the foreign key cascade."""
        gallery = await self._gallery_or_404(db, gallery_id)
        await media_gallery_repository.delete(db, gallery)
        logger.info("Deleted gallery {}", gallery_id)

    # --- Items --------------------------------------------------------------

    async def list_items(self, db: AsyncSession, gallery_id: UUID) -> list[MediaItemResponse]:
        await self._gallery_or_404(db, gallery_id)
        return _items(await media_item_repository.get_for_gallery(db, gallery_id))

    async def items_by_type(self, db: AsyncSession, media_type: MediaType) -> list[MediaItemResponse]:
        return _items(await media_item_repository.get_by_type(db, media_type.value))

    async def get_item(self, db: AsyncSession, item_id: UUID) -> MediaItemResponse:
        return MediaItemResponse.model_validate(await self._item_or_404(db, item_id))

    async def create_item(self, db: AsyncSession, data: MediaItemCreate) -> MediaItemResponse:
        """Create an item, moving its uploaded file out of temp storage.

        Raises:
            NotFoundError: Unknown gallery
        """
        await self._gallery_or_404(db, data.gallery_id)
        fields = data.model_dump()
        fields["file_url"] = storage_service.finalize_upload(data.file_url)
        if data.thumbnail_url:
            fields["thumbnail_url"] = storage_service.finalize_upload(data.thumbnail_url)
        item = await media_item_repository.create(db, fields)
        return MediaItemResponse.model_validate(item)

    async def update_item(self, db: AsyncSession, item_id: UUID, data: MediaItemUpdate) -> MediaItemResponse:
        item = await self._item_or_404(db, item_id)
        item = await media_item_repository.update(db, item, data.model_dump(exclude_unset=True))
        return MediaItemResponse.model_validate(item)

    async def delete_item(self, db: AsyncSession, item_id: UUID) -> None:
        """Deactivate an item (soft delete)."""
        item = await self._item_or_404(db, item_id)
        item.is_active = False
        await db.flush()

    async def statistics(self, db: AsyncSession) -> MediaStatistics:
        return MediaStatistics(
            total_galleries=await media_gallery_repository.count_public(db),
            photo_galleries=await media_gallery_repository.count_public(db, GalleryType.PHOTO),
            video_galleries=await media_gallery_repository.count_public(db, GalleryType.VIDEO),
            total_images=await media_item_repository.count_active(db, MediaType.IMAGE),
            total_videos=await media_item_repository.count_active(db, MediaType.VIDEO),
        )


# Singleton instance
media_service: MediaService = MediaService()
