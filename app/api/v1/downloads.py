"""Download Router — public documents and forms."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.download import DownloadCreate, DownloadResponse, DownloadUpdate
from app.services.download_service import download_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.FILE_DOWNLOAD))]


@router.get("", response_model=list[DownloadResponse])
async def list_downloads(db: DbSession, current_user: Reader) -> list[DownloadResponse]:
    return await download_service.list_public(db)


@router.get("/category/{category}", response_model=Page[DownloadResponse])
async def downloads_by_category(
    category: str, db: DbSession, params: Pagination, current_user: Reader
) -> Page[DownloadResponse]:
    return await download_service.by_category_paginated(db, category, params.page, params.size)


@router.get("/category/{category}/list", response_model=list[DownloadResponse])
async def downloads_by_category_list(category: str, db: DbSession, current_user: Reader) -> list[DownloadResponse]:
    return await download_service.by_category(db, category)


@router.get("/search", response_model=list[DownloadResponse])
async def search_downloads(
    db: DbSession, current_user: Reader, title: Annotated[str, Query(min_length=1)]
) -> list[DownloadResponse]:
    return await download_service.search(db, title)


@router.get("/popular", response_model=list[DownloadResponse])
async def popular_downloads(db: DbSession, current_user: Reader) -> list[DownloadResponse]:
    return await download_service.popular(db)


@router.get("/{download_id}", response_model=DownloadResponse)
async def get_download(download_id: UUID, db: DbSession, current_user: Reader) -> DownloadResponse:
    return await download_service.get_download(db, download_id)


@router.post("", response_model=DownloadResponse, status_code=201)
async def create_download(
    data: DownloadCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.FILE_UPLOAD))],
) -> DownloadResponse:
    result: DownloadResponse = await download_service.create_download(db, data)
    await db.commit()
    return result


@router.put("/{download_id}", response_model=DownloadResponse)
async def update_download(
    download_id: UUID,
    data: DownloadUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.FILE_MANAGE))],
) -> DownloadResponse:
    result: DownloadResponse = await download_service.update_download(db, download_id, data)
    await db.commit()
    return result


@router.delete("/{download_id}", status_code=204)
async def delete_download(
    download_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.FILE_DELETE))],
) -> None:
    await download_service.delete_download(db, download_id)
    await db.commit()


@router.post("/{download_id}/track", response_model=DownloadResponse)
async def track_download(download_id: UUID, db: DbSession, current_user: Reader) -> DownloadResponse:
    """Count one download and return the updated record."""
    result: DownloadResponse = await download_service.track(db, download_id)
    await db.commit()
    return result
