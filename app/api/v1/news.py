"""News Router — articles and categories."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.news import (
    NewsArticleCreate,
    NewsArticleResponse,
    NewsArticleUpdate,
    NewsCategoryCreate,
    NewsCategoryResponse,
    NewsCategoryUpdate,
)
from app.services.authorization_service import authorization_service
from app.services.news_service import news_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.NEWS_READ))]
Creator = Annotated[User, Depends(require_permission(Permission.NEWS_CREATE))]
Updater = Annotated[User, Depends(require_permission(Permission.NEWS_UPDATE))]
Deleter = Annotated[User, Depends(require_permission(Permission.NEWS_DELETE))]
Publisher = Annotated[User, Depends(require_permission(Permission.NEWS_PUBLISH))]


# === Articles ===

@router.get("/articles", response_model=Page[NewsArticleResponse])
async def list_articles(db: DbSession, params: Pagination, current_user: Reader) -> Page[NewsArticleResponse]:
    """Published articles, newest first."""
    return await news_service.list_published(db, params.page, params.size)


@router.get("/articles/category/{category_id}", response_model=Page[NewsArticleResponse])
async def list_articles_by_category(
    category_id: UUID, db: DbSession, params: Pagination, current_user: Reader
) -> Page[NewsArticleResponse]:
    return await news_service.list_by_category(db, category_id, params.page, params.size)


@router.get("/articles/featured", response_model=list[NewsArticleResponse])
async def featured_articles(db: DbSession, current_user: Reader) -> list[NewsArticleResponse]:
    return await news_service.featured(db)


@router.get("/articles/slug/{slug}", response_model=NewsArticleResponse)
async def get_article_by_slug(slug: str, db: DbSession, current_user: Reader) -> NewsArticleResponse:
    result: NewsArticleResponse = await news_service.get_by_slug(db, slug)
    # view_count was incremented
    await db.commit()
    return result


@router.get("/articles/search", response_model=list[NewsArticleResponse])
async def search_articles(
    db: DbSession, current_user: Reader, q: Annotated[str, Query(min_length=1)]
) -> list[NewsArticleResponse]:
    return await news_service.search(db, q)


@router.get("/articles/recent", response_model=list[NewsArticleResponse])
async def recent_articles(
    db: DbSession, current_user: Reader, days: Annotated[int, Query(ge=1, le=365)] = 7
) -> list[NewsArticleResponse]:
    return await news_service.recent(db, days)


@router.get("/articles/{article_id}", response_model=NewsArticleResponse)
async def get_article(article_id: UUID, db: DbSession, current_user: Reader) -> NewsArticleResponse:
    """Editors (NEWS_UPDATE) also see unpublished drafts."""
    include_drafts = authorization_service.has_permission(current_user, Permission.NEWS_UPDATE)
    return await news_service.get_article(db, article_id, include_drafts=include_drafts)


@router.post("/articles", response_model=NewsArticleResponse, status_code=201)
async def create_article(data: NewsArticleCreate, db: DbSession, current_user: Creator) -> NewsArticleResponse:
    result: NewsArticleResponse = await news_service.create_article(db, data)
    await db.commit()
    return result


@router.put("/articles/{article_id}", response_model=NewsArticleResponse)
async def update_article(
    article_id: UUID, data: NewsArticleUpdate, db: DbSession, current_user: Updater
) -> NewsArticleResponse:
    result: NewsArticleResponse = await news_service.update_article(db, article_id, data)
    await db.commit()
    return result


@router.delete("/articles/{article_id}", status_code=204)
async def delete_article(article_id: UUID, db: DbSession, current_user: Deleter) -> None:
    await news_service.delete_article(db, article_id)
    await db.commit()


@router.post("/articles/{article_id}/publish", response_model=NewsArticleResponse)
async def publish_article(article_id: UUID, db: DbSession, current_user: Publisher) -> NewsArticleResponse:
    result: NewsArticleResponse = await news_service.publish(db, article_id)
    await db.commit()
    return result


@router.post("/articles/{article_id}/unpublish", response_model=NewsArticleResponse)
async def unpublish_article(article_id: UUID, db: DbSession, current_user: Publisher) -> NewsArticleResponse:
    result: NewsArticleResponse = await news_service.unpublish(db, article_id)
    await db.commit()
    return result


# === Categories ===

@router.get("/categories", response_model=list[NewsCategoryResponse])
async def list_categories(db: DbSession, current_user: Reader) -> list[NewsCategoryResponse]:
    return await news_service.list_categories(db)


@router.get("/categories/slug/{slug}", response_model=NewsCategoryResponse)
async def get_category_by_slug(slug: str, db: DbSession, current_user: Reader) -> NewsCategoryResponse:
    return await news_service.get_category_by_slug(db, slug)


@router.post("/categories", response_model=NewsCategoryResponse, status_code=201)
async def create_category(data: NewsCategoryCreate, db: DbSession, current_user: Creator) -> NewsCategoryResponse:
    result: NewsCategoryResponse = await news_service.create_category(db, data)
    await db.commit()
    return result


@router.put("/categories/{category_id}", response_model=NewsCategoryResponse)
async def update_category(
    category_id: UUID, data: NewsCategoryUpdate, db: DbSession, current_user: Updater
) -> NewsCategoryResponse:
    result: NewsCategoryResponse = await news_service.update_category(db, category_id, data)
    await db.commit()
    return result


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: UUID, db: DbSession, current_user: Deleter) -> None:
    await news_service.delete_category(db, category_id)
    await db.commit()
