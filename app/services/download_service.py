"""Download service — public documents, categories and download tracking."""

from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.download import Download
from app.repositories.download_repository import download_repository
from app.schemas.download import DownloadCreate, DownloadResponse, DownloadUpdate
from app.services.storage_service import storage_service
from app.utils.exceptions import NotFoundError
from app.utils.pagination import Page

POPULAR_LIMIT: int = 10


def _to_responses(downloads) -> list[DownloadResponse]:
    return [DownloadResponse.model_validate(d) for d in downloads]


class DownloadService:
    """Service handling downloadable document business logic."""

    async def _get_or_404(self, db: AsyncSession, download_id: UUID) -> Download:
        download: Download | None = await download_repository.get_by_id(db, download_id)
        if download is None or not download.is_active:
            raise NotFoundError("Download not found")
        return download

    async def list_public(self, db: AsyncSession) -> list[DownloadResponse]:
        return _to_responses(await download_repository.get_public(db))

    async def by_category_paginated(
        self, db: AsyncSession, category: str, page: int, size: int
    ) -> Page[DownloadResponse]:
        downloads, total = await download_repository.get_page(db, download_repository.category_query(category), page, size)
        return Page[DownloadResponse].build(_to_responses(downloads), total, page, size)

    async def by_category(self, db: AsyncSession, category: str) -> list[DownloadResponse]:
        return _to_responses(await download_repository.get_by_category(db, category))

    async def search(self, db: AsyncSession, title: str) -> list[DownloadResponse]:
        return _to_responses(await download_repository.search(db, title))

    async def popular(self, db: AsyncSession) -> list[DownloadResponse]:
        return _to_responses(await download_repository.get_popular(db, POPULAR_LIMIT))

    async def get_download(self, db: AsyncSession, download_id: UUID) -> DownloadResponse:
        return DownloadResponse.model_validate(await self._get_or_404(db, download_id))

    async def create_download(self, db: AsyncSession, data: DownloadCreate) -> DownloadResponse:
        fields = data.model_dump()
        fields["file_url"] = storage_service.finalize_upload(data.file_url)
        if not fields.get("file_name"):
            fields["file_name"] = data.file_url.rsplit("/", 1)[-1]
        download = await download_repository.create(db, fields)
        logger.info("Created download {} ({})", download.title, download.id)
        return DownloadResponse.model_validate(download)

    async def update_download(self, db: AsyncSession, download_id: UUID, data: DownloadUpdate) -> DownloadResponse:
        download = await self._get_or_404(db, download_id)
        download = await download_repository.update(db, download, data.model_dump(exclude_unset=True))
        return DownloadResponse.model_validate(download)

    async def delete_download(self, db: AsyncSession, download_id: UUID) -> None:
        """Deactivate a download (soft delete)."""
        download = await self._get_or_404(db, download_id)
        download.is_active = False
        await db.flush()

    async def track(self, db: AsyncSession, download_id: UUID) -> DownloadResponse:
        """Count one download and return the updated record."""
        download = await self._get_or_404(db, download_id)
        download.download_count = (download.download_count or 0) + 1
        await db.flush()
        return DownloadResponse.model_validate(download)


# Singleton instance
download_service: DownloadService = DownloadService()
