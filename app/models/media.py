"""Media ORM models — galleries and their photo/video items."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime


class GalleryType(str, Enum):
    PHOTO = "PHOTO"
    VIDEO = "VIDEO"
    MIXED = "MIXED"


class MediaType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"


class MediaGallery(Base):
    """Media gallery — a titled collection of media items.

    Attributes:
        id: Unique identifier
        title: Gallery title
        description: Free text description
        gallery_type: PHOTO / VIDEO / MIXED
        cover_image_url: Cover image URL
        is_featured: Highlighted on the public site
        is_public: Listed publicly
    """

    __tablename__ = "media_galleries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    gallery_type: Mapped[str] = mapped_column(String(10), default=GalleryType.PHOTO.value)
    cover_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Items are removed with the gallery
    items = relationship(
        "MediaItem",
        back_populates="gallery",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MediaItem.sort_order",
    )


class MediaItem(Base):
    """Single photo, video or audio file within a gallery."""

    __tablename__ = "media_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    gallery_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("media_galleries.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    media_type: Mapped[str] = mapped_column(String(10), default=MediaType.IMAGE.value)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    gallery = relationship("MediaGallery", back_populates="items")
