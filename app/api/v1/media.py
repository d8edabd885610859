"""Media Router — galleries and media items."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.media import GalleryType, MediaType
from app.models.user import User
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
from app.services.media_service import media_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.MEDIA_READ))]
Creator = Annotated[User, Depends(require_permission(Permission.MEDIA_CREATE))]
Updater = Annotated[User, Depends(require_permission(Permission.MEDIA_UPDATE))]
Deleter = Annotated[User, Depends(require_permission(Permission.MEDIA_DELETE))]


@router.get("/statistics", response_model=MediaStatistics)
async def media_statistics(db: DbSession, current_user: Reader) -> MediaStatistics:
    return await media_service.statistics(db)


# === Galleries ===

@router.get("/galleries", response_model=Page[GalleryResponse])
async def list_galleries(db: DbSession, params: Pagination, current_user: Reader) -> Page[GalleryResponse]:
    return await media_service.list_galleries(db, params.page, params.size)


@router.get("/galleries/type/{gallery_type}", response_model=list[GalleryResponse])
async def galleries_by_type(gallery_type: GalleryType, db: DbSession, current_user: Reader) -> list[GalleryResponse]:
    return await media_service.galleries_by_type(db, gallery_type)


@router.get("/galleries/featured", response_model=list[GalleryResponse])
async def featured_galleries(db: DbSession, current_user: Reader) -> list[GalleryResponse]:
    return await media_service.featured_galleries(db)


@router.get("/galleries/search", response_model=list[GalleryResponse])
async def search_galleries(
    db: DbSession, current_user: Reader, title: Annotated[str, Query(min_length=1)]
) -> list[GalleryResponse]:
    return await media_service.search_galleries(db, title)


@router.get("/galleries/{gallery_id}", response_model=GalleryDetailResponse)
async def get_gallery(gallery_id: UUID, db: DbSession, current_user: Reader) -> GalleryDetailResponse:
    return await media_service.get_gallery(db, gallery_id)


@router.get("/galleries/{gallery_id}/items", response_model=list[MediaItemResponse])
async def list_gallery_items(gallery_id: UUID, db: DbSession, current_user: Reader) -> list[MediaItemResponse]:
    return await media_service.list_items(db, gallery_id)


@router.post("/galleries", response_model=GalleryResponse, status_code=201)
async def create_gallery(data: GalleryCreate, db: DbSession, current_user: Creator) -> GalleryResponse:
    result: GalleryResponse = await media_service.create_gallery(db, data)
    await db.commit()
    return result


@router.put("/galleries/{gallery_id}", response_model=GalleryResponse)
async def update_gallery(
    gallery_id: UUID, data: GalleryUpdate, db: DbSession, current_user: Updater
) -> GalleryResponse:
    result: GalleryResponse = await media_service.update_gallery(db, gallery_id, data)
    await db.commit()
    return result


@router.delete("/galleries/{gallery_id}", status_code=204)
async def delete_gallery(gallery_id: UUID, db: DbSession, current_user: Deleter) -> None:
    """Delete a gallery together with its items."""
    await media_service.delete_gallery(db, gallery_id)
    await db.commit()


# === Items ===

@router.get("/items/type/{media_type}", response_model=list[MediaItemResponse])
async def items_by_type(media_type: MediaType, db: DbSession, current_user: Reader) -> list[MediaItemResponse]:
    return await media_service.items_by_type(db, media_type)


@router.get("/items/{item_id}", response_model=MediaItemResponse)
async def get_item(item_id: UUID, db: DbSession, current_user: Reader) -> MediaItemResponse:
    return await media_service.get_item(db, item_id)


@router.post("/items", response_model=MediaItemResponse, status_code=201)
async def create_item(data: MediaItemCreate, db: DbSession, current_user: Creator) -> MediaItemResponse:
    result: MediaItemResponse = await media_service.create_item(db, data)
    await db.commit()
    return result


@router.put("/items/{item_id}", response_model=MediaItemResponse)
async def update_item(item_id: UUID, data: MediaItemUpdate, db: DbSession, current_user: Updater) -> MediaItemResponse:
    result: MediaItemResponse = await media_service.update_item(db, item_id, data)
    await db.commit()
    return result


@router.delete("/items/{item_id}", status_code=204)
async def delete_item(item_id: UUID, db: DbSession, current_user: Deleter) -> None:
    await media_service.delete_item(db, item_id)
    await db.commit()
