"""Tournament repository — tournaments and registration queries."""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.tournament import (
    ACTIVE_REGISTRATION_STATUSES,
    Tournament,
    TournamentRegistration,
    TournamentStatus,
)
from app.repositories.base import BaseRepository


class TournamentRepository(BaseRepository[Tournament]):
    """Repository handling database queries for the tournaments table."""

    def __init__(self) -> None:
        super().__init__(Tournament)

    def list_query(self) -> Select:
        return select(Tournament).order_by(Tournament.start_date.desc(), Tournament.name)

    async def _fetch(self, db: AsyncSession, query: Select) -> Sequence[Tournament]:
        return (await db.execute(query)).scalars().all()

    async def list_all(self, db: AsyncSession) -> Sequence[Tournament]:
        return await self._fetch(db, self.list_query())

    async def get_upcoming(self, db: AsyncSession, after: date) -> Sequence[Tournament]:
        query = (
            select(Tournament)
            .where(Tournament.start_date > after, Tournament.status != TournamentStatus.CANCELLED.value)
            .order_by(Tournament.start_date)
        )
        return await self._fetch(db, query)

    async def get_by_status(self, db: AsyncSession, status: str) -> Sequence[Tournament]:
        query = select(Tournament).where(Tournament.status == status).order_by(Tournament.start_date.desc())
        return await self._fetch(db, query)

    async def get_featured(self, db: AsyncSession) -> Sequence[Tournament]:
        query = (
            select(Tournament)
            .where(Tournament.is_featured == True, Tournament.status != TournamentStatus.CANCELLED.value)
            .order_by(Tournament.start_date.desc())
        )
        return await self._fetch(db, query)

    async def get_by_district(self, db: AsyncSession, district_id: UUID) -> Sequence[Tournament]:
        query = self.list_query().where(Tournament.district_id == district_id)
        return await self._fetch(db, query)

    async def get_in_range(self, db: AsyncSession, start: date, end: date) -> Sequence[Tournament]:
        """Tournaments overlapping the [start, end] date range."""
        query = (
            select(Tournament)
            .where(Tournament.start_date <= end, Tournament.end_date >= start)
            .order_by(Tournament.start_date)
        )
        return await self._fetch(db, query)

    async def search(self, db: AsyncSession, term: str) -> Sequence[Tournament]:
        pattern = f"%{term.lower()}%"
        query = self.list_query().where(
            func.lower(Tournament.name).like(pattern) | func.lower(func.coalesce(Tournament.venue, "")).like(pattern)
        )
        return await self._fetch(db, query)

    async def count_active_registrations(self, db: AsyncSession, tournament_id: UUID) -> int:
        query = (
            select(func.count())
            .select_from(TournamentRegistration)
            .where(
                TournamentRegistration.tournament_id == tournament_id,
                TournamentRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES),
            )
        )
        return (await db.execute(query)).scalar() or 0

    async def registration_counts(self, db: AsyncSession, tournament_ids: list[UUID]) -> dict[UUID, int]:
        """Active registration count per tournament, for list responses."""
        if not tournament_ids:
            return {}
        query = (
            select(TournamentRegistration.tournament_id, func.count(TournamentRegistration.id))
            .where(
                TournamentRegistration.tournament_id.in_(tournament_ids),
                TournamentRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES),
            )
            .group_by(TournamentRegistration.tournament_id)
        )
        return {tid: count for tid, count in (await db.execute(query)).all()}


class RegistrationRepository(BaseRepository[TournamentRegistration]):
    """Repository handling database queries for tournament registrations."""

    def __init__(self) -> None:
        super().__init__(TournamentRegistration)

    async def get_for_tournament(
        self,
        db: AsyncSession,
        tournament_id: UUID,
        active_only: bool = False,
    ) -> Sequence[TournamentRegistration]:
        query = (
            select(TournamentRegistration)
            .options(selectinload(TournamentRegistration.player))
            .where(TournamentRegistration.tournament_id == tournament_id)
            .order_by(TournamentRegistration.registration_date)
        )
        if active_only:
            query = query.where(TournamentRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES))
        return (await db.execute(query)).scalars().all()

    async def get_one(
        self,
        db: AsyncSession,
        tournament_id: UUID,
        registration_id: UUID,
    ) -> TournamentRegistration | None:
        query = (
            select(TournamentRegistration)
            .options(selectinload(TournamentRegistration.player))
            .where(
                TournamentRegistration.id == registration_id,
                TournamentRegistration.tournament_id == tournament_id,
            )
        )
        return (await db.execute(query)).scalar_one_or_none()


# Singleton instances
tournament_repository: TournamentRepository = TournamentRepository()
registration_repository: RegistrationRepository = RegistrationRepository()
