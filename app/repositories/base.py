"""Base CRUD repository — parent class for all domain repositories.

Provides generic Create, Read, Update, Delete operations. Repositories only
flush; committing is left to the router that owns the request.

Usage:
    class MemberRepository(BaseRepository[Member]):
        def __init__(self) -> None:
            super().__init__(Member)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base
from app.utils.pagination import paginate

# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic CRUD repository providing common database operations.

    Attributes:
        model: The SQLAlchemy model class
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
        options: Sequence[Any] = (),
    ) -> ModelType | None:
        """Retrieve a single record by its UUID.

        Args:
            db: Async database session
            record_id: UUID of the record to retrieve
            options: Loader options, e.g. ``selectinload(Player.statistics)``

        Returns:
            ModelType | None: Found record or None
        """
        query: Select = select(self.model).where(self.model.id == record_id)
        if options:
            query = query.options(*options)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        db: AsyncSession,
        filters: dict[str, Any] | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelType]:
        """Retrieve all records matching the given equality filters.

        Args:
            db: Async database session
            filters: Column filters {'column_name': value}; None values are skipped
            order_by: Column (or tuple of columns) to order by

        Returns:
            Sequence[ModelType]: Matching records
        """
        query: Select = self._filtered(filters)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, tuple) else query.order_by(order_by)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_page(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        size: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """Retrieve one page of a query together with the total count."""
        return await paginate(db, query, page, size)

    async def count(self, db: AsyncSession, filters: dict[str, Any] | None = None) -> int:
        query: Select = select(func.count()).select_from(self.model)
        for column_name, value in (filters or {}).items():
            if hasattr(self.model, column_name) and value is not None:
                query = query.where(getattr(self.model, column_name) == value)
        return (await db.execute(query)).scalar() or 0

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """Create a new record.

        Client-side column defaults are populated on the instance by the
        flush, so no refresh round trip is needed.
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        db_obj: ModelType,
        update_data: dict[str, Any],
    ) -> ModelType:
        """Apply the given fields to a loaded record and flush.

        ``update_data`` usually comes from ``model_dump(exclude_unset=True)``,
        so explicit None values are applied as well.
        """
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        await db.flush()
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        db_obj: ModelType,
    ) -> None:
        await db.delete(db_obj)
        await db.flush()

    async def exists(
        self,
        db: AsyncSession,
        filters: dict[str, Any],
        exclude_id: UUID | None = None,
    ) -> bool:
        """Check whether a record matching the filters exists.

        Args:
            db: Async database session
            filters: Filter criteria
            exclude_id: Ignore this record (used for uniqueness checks on update)
        """
        query: Select = select(func.count()).select_from(self.model)
        for column_name, value in filters.items():
            if hasattr(self.model, column_name):
                query = query.where(getattr(self.model, column_name) == value)
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)

        count: int = (await db.execute(query)).scalar() or 0
        return count > 0

    def _filtered(self, filters: dict[str, Any] | None) -> Select:
        query: Select = select(self.model)
        if filters:
            for column_name, value in filters.items():
                if hasattr(self.model, column_name) and value is not None:
                    query = query.where(getattr(self.model, column_name) == value)
        return query
