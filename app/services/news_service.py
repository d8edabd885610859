"""News service — articles, categories, slugs and publication state."""

import re
import unicodedata
from datetime import datetime, timedelta, timezone
from uuid import UUID

from loguru import logger
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import NewsArticle, NewsCategory
from app.repositories.news_repository import news_article_repository, news_category_repository
from app.schemas.news import (
    NewsArticleCreate,
    NewsArticleResponse,
    NewsArticleUpdate,
    NewsCategoryCreate,
    NewsCategoryResponse,
    NewsCategoryUpdate,
)
from app.utils.cache import cache
from app.utils.exceptions import DuplicateError, NotFoundError
from app.utils.pagination import Page

CACHE_NAME: str = "news"
SLUG_MAX_LENGTH: int = 300

_ARTICLE_LIST = TypeAdapter(list[NewsArticleResponse])


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lowercase ASCII slug: "Finals 2024: Results!" -> "finals-2024-results"."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "article"


def _to_responses(articles) -> list[NewsArticleResponse]:
    return [NewsArticleResponse.model_validate(a) for a in articles]


class NewsService:
    """Service handling news article and category business logic."""

    async def _get_or_404(self, db: AsyncSession, article_id: UUID) -> NewsArticle:
        article: NewsArticle | None = await news_article_repository.get_by_id(db, article_id)
        if article is None:
            raise NotFoundError("News article not found")
        return article

    async def _ensure_category(self, db: AsyncSession, category_id: UUID | None) -> None:
        if category_id is not None and await news_category_repository.get_by_id(db, category_id) is None:
            raise NotFoundError("News category not found")

    async def _unique_slug(self, db: AsyncSession, title: str, exclude_id: UUID | None = None) -> str:
        """Slug derived from the title, suffixed -2, -3, ... until unused."""
        base = slugify(title)
        slug, n = base, 1
        while await news_article_repository.slug_exists(db, slug, exclude_id=exclude_id):
            n += 1
            suffix = f"-{n}"
            slug = base[: SLUG_MAX_LENGTH - len(suffix)] + suffix
        return slug

    async def _evict(self) -> None:
        await cache.evict(CACHE_NAME, "featured")

    # --- Article reads ------------------------------------------------------

    async def list_published(self, db: AsyncSession, page: int, size: int) -> Page[NewsArticleResponse]:
        articles, total = await news_article_repository.get_page(db, news_article_repository.published_query(), page, size)
        return Page[NewsArticleResponse].build(_to_responses(articles), total, page, size)

    async def list_by_category(
        self, db: AsyncSession, category_id: UUID, page: int, size: int
    ) -> Page[NewsArticleResponse]:
        await self._ensure_category(db, category_id)
        query = news_article_repository.category_query(category_id)
        articles, total = await news_article_repository.get_page(db, query, page, size)
        return Page[NewsArticleResponse].build(_to_responses(articles), total, page, size)

    async def featured(self, db: AsyncSession) -> list[NewsArticleResponse]:
        async def load() -> list[NewsArticleResponse]:
            return _to_responses(await news_article_repository.get_featured(db))

        return await cache.get_or_load(CACHE_NAME, "featured", _ARTICLE_LIST, load)

    async def get_article(self, db: AsyncSession, article_id: UUID, include_drafts: bool = False) -> NewsArticleResponse:
        """Drafts are reported as missing unless ``include_drafts`` is set."""
        article = await self._get_or_404(db, article_id)
        if not article.is_published and not include_drafts:
            raise NotFoundError("News article not found")
        return NewsArticleResponse.model_validate(article)

    async def get_by_slug(self, db: AsyncSession, slug: str) -> NewsArticleResponse:
        """Fetch a published article by slug and count the view."""
        article = await news_article_repository.get_by_slug(db, slug)
        if article is None or not article.is_published:
            raise NotFoundError("News article not found")
        article.view_count = (article.view_count or 0) + 1
        await db.flush()
        return NewsArticleResponse.model_validate(article)

    async def search(self, db: AsyncSession, term: str) -> list[NewsArticleResponse]:
        return _to_responses(await news_article_repository.search(db, term))

    async def recent(self, db: AsyncSession, days: int = 7) -> list[NewsArticleResponse]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        return _to_responses(await news_article_repository.get_published_since(db, since))

    # --- Article writes -----------------------------------------------------

    async def create_article(self, db: AsyncSession, data: NewsArticleCreate) -> NewsArticleResponse:
        """Create an article.

        Raises:
            DuplicateError: Explicit slug already taken
            NotFoundError: Unknown category
        """
        await self._ensure_category(db, data.category_id)
        if data.slug:
            if await news_article_repository.slug_exists(db, data.slug):
                raise DuplicateError("Article slug already exists")
            slug = data.slug
        else:
            slug = await self._unique_slug(db, data.title)

        article = NewsArticle(**data.model_dump(exclude={"slug", "is_published"}), slug=slug)
        if data.is_published:
            article.publish()
        db.add(article)
        await db.flush()
        await self._evict()
        logger.info("Created news article {} ({})", article.slug, article.id)
        return NewsArticleResponse.model_validate(article)

    async def update_article(self, db: AsyncSession, article_id: UUID, data: NewsArticleUpdate) -> NewsArticleResponse:
        article = await self._get_or_404(db, article_id)
        update_data = data.model_dump(exclude_unset=True)
        if "category_id" in update_data:
            await self._ensure_category(db, update_data["category_id"])
        slug = update_data.get("slug")
        if slug is not None and await news_article_repository.slug_exists(db, slug, exclude_id=article.id):
            raise DuplicateError("Article slug already exists")
        if "slug" in update_data and slug is None:
            update_data.pop("slug")
        article = await news_article_repository.update(db, article, update_data)
        await self._evict()
        return NewsArticleResponse.model_validate(article)

    async def delete_article(self, db: AsyncSession, article_id: UUID) -> None:
        article = await self._get_or_404(db, article_id)
        await news_article_repository.delete(db, article)
        await self._evict()

    async def publish(self, db: AsyncSession, article_id: UUID) -> NewsArticleResponse:
        """Publish now; any pending schedule is dropped."""
        article = await self._get_or_404(db, article_id)
        article.publish()
        article.scheduled_publication_date = None
        await db.flush()
        await self._evict()
        return NewsArticleResponse.model_validate(article)

    async def unpublish(self, db: AsyncSession, article_id: UUID) -> NewsArticleResponse:
        article = await self._get_or_404(db, article_id)
        article.unpublish()
        await db.flush()
        await self._evict()
        return NewsArticleResponse.model_validate(article)

    # --- Categories ---------------------------------------------------------

    async def _category_or_404(self, db: AsyncSession, category_id: UUID) -> NewsCategory:
        category: NewsCategory | None = await news_category_repository.get_by_id(db, category_id)
        if category is None:
            raise NotFoundError("News category not found")
        return category

    async def list_categories(self, db: AsyncSession) -> list[NewsCategoryResponse]:
        return [NewsCategoryResponse.model_validate(c) for c in await news_category_repository.get_active(db)]

    async def get_category_by_slug(self, db: AsyncSession, slug: str) -> NewsCategoryResponse:
        category = await news_category_repository.get_by_slug(db, slug)
        if category is None or not category.is_active:
            raise NotFoundError("News category not found")
        return NewsCategoryResponse.model_validate(category)

    async def create_category(self, db: AsyncSession, data: NewsCategoryCreate) -> NewsCategoryResponse:
        slug = data.slug or slugify(data.name, max_length=100)
        if await news_category_repository.exists(db, {"slug": slug}):
            raise DuplicateError("Category slug already exists")
        category = await news_category_repository.create(db, {**data.model_dump(exclude={"slug"}), "slug": slug})
        return NewsCategoryResponse.model_validate(category)

    async def update_category(
        self, db: AsyncSession, category_id: UUID, data: NewsCategoryUpdate
    ) -> NewsCategoryResponse:
        category = await self._category_or_404(db, category_id)
        update_data = data.model_dump(exclude_unset=True)
        slug = update_data.get("slug")
        if slug is not None and await news_category_repository.exists(db, {"slug": slug}, exclude_id=category.id):
            raise DuplicateError("Category slug already exists")
        if "slug" in update_data and slug is None:
            update_data.pop("slug")
        category = await news_category_repository.update(db, category, update_data)
        return NewsCategoryResponse.model_validate(category)

    async def delete_category(self, db: AsyncSession, category_id: UUID) -> None:
        """Deactivate a category (soft delete); its articles keep the link."""
        category = await self._category_or_404(db, category_id)
        category.is_active = False
        await db.flush()


# Singleton instance
news_service: NewsService = NewsService()
