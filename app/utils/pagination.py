"""Pagination utility module.

Provides the ``PageParams`` dependency, a generic paginate function, and a
``Page`` response model for consistent pagination across list endpoints.
"""

import math
from typing import Annotated, Any, Generic, Sequence, TypeVar

from fastapi import Depends, Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

MAX_PAGE_SIZE: int = 100


class Page(BaseModel, Generic[T]):
    """Pagination result model.

    Attributes:
        items: Items for the current page
        total: Total count across all pages
        page: Current page number, 1-based
        size: Items per page
        pages: Total number of pages, ceil(total / size)
    """

    items: list[T]
    total: int
    page: int
    size: int
    pages: int

    @classmethod
    def build(cls, items: list[Any], total: int, page: int, size: int) -> "Page[Any]":
        pages: int = math.ceil(total / size) if size else 0
        return cls(items=items, total=total, page=page, size=size, pages=pages)


class PageParams(BaseModel):
    """Page number and size parsed from the query string."""

    page: int = 1
    size: int = 20


def _page_params(
    page: Annotated[int, Query(ge=1, description="Page number, 1-based")] = 1,
    size: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")] = 20,
) -> PageParams:
    return PageParams(page=page, size=size)


# Reusable dependency — ``params: Pagination``
Pagination = Annotated[PageParams, Depends(_page_params)]


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    size: int = 20,
) -> tuple[Sequence[Any], int]:
    """Execute a paginated SQLAlchemy query, returning items and total count.

    Runs two queries: one for the total count (via subquery) and one for
    the actual page of results with OFFSET/LIMIT.

    Args:
        db: Async database session
        query: Base query to paginate
        page: Page number, 1-indexed
        size: Items per page

    Returns:
        tuple[Sequence[Any], int]: Paginated items and total count
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    offset: int = (page - 1) * size
    result = await db.execute(query.offset(offset).limit(size))
    items: Sequence[Any] = result.scalars().unique().all()

    return items, total
