"""News article and category Pydantic schema definitions."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, StringConstraints

from app.schemas.common import Name100, RequestSchema, Title300, Url

Slug = Annotated[
    str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1, max_length=300, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
]
Language = Literal["en", "te"]


# === Categories ===

class NewsCategoryCreate(RequestSchema):
    name: Name100
    description: str | None = None
    slug: Annotated[Slug, StringConstraints(max_length=100)] | None = None
    is_active: bool = True


class NewsCategoryUpdate(RequestSchema):
    name: Name100 | None = None
    description: str | None = None
    slug: Annotated[Slug, StringConstraints(max_length=100)] | None = None
    is_active: bool | None = None


class NewsCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    slug: str
    is_active: bool
    created_at: datetime


# === Articles ===

class NewsArticleCreate(RequestSchema):
    """News article creation request schema.

    Attributes:
        title: Headline (max 300)
        slug: URL slug; derived from the title when omitted
        summary: Teaser text
        content: Article body (required)
        featured_image_url: Lead image
        author: Byline
        is_published: Publish immediately (sets published_at)
        is_featured: Highlight on the home page
        language: "en" or "te"
        category_id: Owning category
    """

    title: Title300
    slug: Slug | None = None
    summary: str | None = None
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    featured_image_url: Url | None = None
    author: Name100 | None = None
    is_published: bool = False
    is_featured: bool = False
    language: Language = "en"
    category_id: UUID | None = None


class NewsArticleUpdate(RequestSchema):
    title: Title300 | None = None
    slug: Slug | None = None
    summary: str | None = None
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] | None = None
    featured_image_url: Url | None = None
    author: Name100 | None = None
    is_featured: bool | None = None
    language: Language | None = None
    category_id: UUID | None = None


class NewsArticleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    summary: str | None
    content: str
    featured_image_url: str | None
    author: str | None
    published_at: datetime | None
    scheduled_publication_date: datetime | None
    is_published: bool
    is_featured: bool
    view_count: int
    language: str
    category_id: UUID | None
    created_at: datetime
    updated_at: datetime
