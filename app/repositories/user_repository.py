"""User repository — user CRUD and role statistics queries."""

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository handling database queries for the users table."""

    def __init__(self) -> None:
        super().__init__(User)

    def list_query(self, is_active: bool | None = None) -> Select:
        query: Select = select(User)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        return query.order_by(User.username)

    async def username_taken(self, db: AsyncSession, username: str, exclude_id=None) -> bool:
        return await self.exists(db, {"username": username}, exclude_id=exclude_id)

    async def email_taken(self, db: AsyncSession, email: str, exclude_id=None) -> bool:
        query: Select = select(func.count()).select_from(User).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        return ((await db.execute(query)).scalar() or 0) > 0

    async def count_by_role(self, db: AsyncSession) -> dict[str, int]:
        """Number of active users holding each role."""
        query = (
            select(UserRole.role, func.count(UserRole.id))
            .join(User, User.id == UserRole.user_id)
            .where(User.is_active == True)
            .group_by(UserRole.role)
        )
        rows = (await db.execute(query)).all()
        return {role: count for role, count in rows}


# Singleton instance
user_repository: UserRepository = UserRepository()
