"""Member repository — ordering, tenure and search queries for members."""

from datetime import date
from typing import Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member
from app.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Repository handling database queries for the members table."""

    def __init__(self) -> None:
        super().__init__(Member)

    def active_query(self) -> Select:
        """Active members ordered by hierarchy level, then name."""
        return (
            select(Member)
            .where(Member.is_active == True)
            .order_by(Member.hierarchy_level, Member.name)
        )

    async def get_active(self, db: AsyncSession) -> Sequence[Member]:
        return (await db.execute(self.active_query())).scalars().all()

    async def get_prominent(self, db: AsyncSession) -> Sequence[Member]:
        query = self.active_query().where(Member.is_prominent == True)
        return (await db.execute(query)).scalars().all()

    def _serving_clause(self, on: date):
        return (
            or_(Member.tenure_start_date.is_(None), Member.tenure_start_date <= on),
            or_(Member.tenure_end_date.is_(None), Member.tenure_end_date >= on),
        )

    async def get_currently_serving(self, db: AsyncSession, on: date) -> Sequence[Member]:
        query = self.active_query().where(*self._serving_clause(on))
        return (await db.execute(query)).scalars().all()

    async def get_top_level(self, db: AsyncSession) -> Sequence[Member]:
        """Active members at the minimum hierarchy level present."""
        min_level = (
            select(func.min(Member.hierarchy_level))
            .where(Member.is_active == True)
            .scalar_subquery()
        )
        query = self.active_query().where(Member.hierarchy_level == min_level)
        return (await db.execute(query)).scalars().all()

    async def search(self, db: AsyncSession, term: str) -> Sequence[Member]:
        pattern = f"%{term.lower()}%"
        query = self.active_query().where(
            or_(func.lower(Member.name).like(pattern), func.lower(Member.position).like(pattern))
        )
        return (await db.execute(query)).scalars().all()

    async def get_tenure_ending_between(self, db: AsyncSession, start: date, end: date) -> Sequence[Member]:
        query = (
            select(Member)
            .where(
                Member.is_active == True,
                Member.tenure_end_date.is_not(None),
                Member.tenure_end_date >= start,
                Member.tenure_end_date <= end,
            )
            .order_by(Member.tenure_end_date)
        )
        return (await db.execute(query)).scalars().all()

    async def count_currently_serving(self, db: AsyncSession, on: date) -> int:
        query = (
            select(func.count())
            .select_from(Member)
            .where(Member.is_active == True, *self._serving_clause(on))
        )
        return (await db.execute(query)).scalar() or 0


# Singleton instance
member_repository: MemberRepository = MemberRepository()
