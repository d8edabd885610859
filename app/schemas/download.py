"""Downloadable document Pydantic schema definitions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import NonNegativeInt, RequestSchema, Title200, Url


class DownloadCreate(RequestSchema):
    title: Title200
    description: str | None = None
    file_url: Url = Field(min_length=1)
    file_name: str | None = Field(default=None, max_length=255)
    file_size: NonNegativeInt | None = None
    mime_type: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=50)
    is_public: bool = True


class DownloadUpdate(RequestSchema):
    title: Title200 | None = None
    description: str | None = None
    file_name: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=50)
    is_public: bool | None = None
    is_active: bool | None = None


class DownloadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    file_url: str
    file_name: str | None
    file_size: int | None
    mime_type: str | None
    category: str | None
    download_count: int
    is_public: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
