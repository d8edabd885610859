"""Media gallery and media item Pydantic schema definitions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.media import GalleryType, MediaType
from app.schemas.common import NonNegativeInt, RequestSchema, Title200, Url


# === Galleries ===

class GalleryCreate(RequestSchema):
    title: Title200
    description: str | None = None
    gallery_type: GalleryType = GalleryType.PHOTO
    cover_image_url: Url | None = None
    is_featured: bool = False
    is_public: bool = True


class GalleryUpdate(RequestSchema):
    title: Title200 | None = None
    description: str | None = None
    gallery_type: GalleryType | None = None
    cover_image_url: Url | None = None
    is_featured: bool | None = None
    is_public: bool | None = None


class GalleryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    gallery_type: str
    cover_image_url: str | None
    is_featured: bool
    is_public: bool
    created_at: datetime
    updated_at: datetime


# === Items ===

class MediaItemCreate(RequestSchema):
    """Media item creation request schema.

    ``file_url`` may point at an upload still under ``temp/``; it is moved
    to its permanent key when the item is created.
    """

    gallery_id: UUID
    title: Title200 | None = None
    description: str | None = None
    file_url: Url = Field(min_length=1)
    thumbnail_url: Url | None = None
    media_type: MediaType = MediaType.IMAGE
    file_size: NonNegativeInt | None = None
    mime_type: str | None = Field(default=None, max_length=100)
    sort_order: int = 0


class MediaItemUpdate(RequestSchema):
    title: Title200 | None = None
    description: str | None = None
    thumbnail_url: Url | None = None
    media_type: MediaType | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class MediaItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gallery_id: UUID
    title: str | None
    description: str | None
    file_url: str
    thumbnail_url: str | None
    media_type: str
    file_size: int | None
    mime_type: str | None
    sort_order: int
    is_active: bool
    created_at: datetime


class GalleryDetailResponse(GalleryResponse):
    items: list[MediaItemResponse] = []


class MediaStatistics(BaseModel):
    total_galleries: int
    photo_galleries: int
    video_galleries: int
    total_images: int
    total_videos: int
