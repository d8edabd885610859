"""News ORM models — categories and articles.

Articles are drafts until published. An article may carry a
``scheduled_publication_date``; the scheduler publishes it once due.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime


class NewsCategory(Base):
    """News category.

    Attributes:
        id: Unique identifier
        name: Display name
        description: Free text description
        slug: URL slug, unique
        is_active: Soft-delete flag
    """

    __tablename__ = "news_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    articles = relationship("NewsArticle", back_populates="category", passive_deletes=True)


class NewsArticle(Base):
    """News article.

    Attributes:
        id: Unique identifier
        title: Headline (max 300)
        slug: URL slug, unique (max 300)
        summary: Short teaser
        content: Article body
        featured_image_url: Header image URL
        author: Byline
        published_at: First publication timestamp
        scheduled_publication_date: Pending automatic publication time
        is_published: Visible to readers
        is_featured: Highlighted on the home page
        view_count: Number of reads by slug
        language: "en" or "te"
        category_id: Category (nullable)
    """

    __tablename__ = "news_articles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    featured_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    author: Mapped[str | None] = mapped_column(String(100), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    scheduled_publication_date: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    language: Mapped[str] = mapped_column(String(5), default="en")
    category_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("news_categories.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    category = relationship("NewsCategory", back_populates="articles")

    def publish(self) -> None:
        self.is_published = True
        if self.published_at is None:
            self.published_at = datetime.now(timezone.utc)

    def unpublish(self) -> None:
        self.is_published = False
