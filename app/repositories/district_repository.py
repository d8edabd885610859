"""District repository — lookups, search and per-district statistics."""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.district import District
from app.models.player import Player
from app.models.tournament import Tournament
from app.repositories.base import BaseRepository

# Columns accepted by the ``sort_by`` query parameter
SORTABLE_COLUMNS: dict[str, Any] = {
    "name": District.name,
    "code": District.code,
    "population": District.population,
    "area_sq_km": District.area_sq_km,
    "created_at": District.created_at,
}


class DistrictRepository(BaseRepository[District]):
    """Repository handling database queries for the districts table."""

    def __init__(self) -> None:
        super().__init__(District)

    async def get_active(self, db: AsyncSession) -> Sequence[District]:
        return await self.get_all(db, {"is_active": True}, order_by=District.name)

    def sorted_query(self, sort_by: str = "name", sort_dir: str = "asc") -> Select:
        column = SORTABLE_COLUMNS.get(sort_by, District.name)
        order = column.desc() if sort_dir.lower() == "desc" else column.asc()
        return select(District).where(District.is_active == True).order_by(order)

    async def get_by_code(self, db: AsyncSession, code: str) -> District | None:
        result = await db.execute(select(District).where(District.code == code.upper()))
        return result.scalar_one_or_none()

    async def search(self, db: AsyncSession, name: str) -> Sequence[District]:
        query = (
            select(District)
            .where(District.is_active == True, District.name.ilike(f"%{name}%"))
            .order_by(District.name)
        )
        return (await db.execute(query)).scalars().all()

    async def get_with_counts(self, db: AsyncSession) -> list[tuple[District, int, int]]:
        """Active districts with their player and tournament counts."""
        player_counts = (
            select(Player.district_id, func.count(Player.id).label("cnt"))
            .where(Player.is_active == True)
            .group_by(Player.district_id)
            .subquery()
        )
        tournament_counts = (
            select(Tournament.district_id, func.count(Tournament.id).label("cnt"))
            .group_by(Tournament.district_id)
            .subquery()
        )
        query = (
            select(
                District,
                func.coalesce(player_counts.c.cnt, 0),
                func.coalesce(tournament_counts.c.cnt, 0),
            )
            .outerjoin(player_counts, player_counts.c.district_id == District.id)
            .outerjoin(tournament_counts, tournament_counts.c.district_id == District.id)
            .where(District.is_active == True)
            .order_by(District.name)
        )
        rows = (await db.execute(query)).all()
        return [(district, int(players), int(tournaments)) for district, players, tournaments in rows]

    async def get_players(self, db: AsyncSession, district_id: UUID) -> Sequence[Player]:
        query = (
            select(Player)
            .options(selectinload(Player.statistics))
            .where(Player.district_id == district_id, Player.is_active == True)
            .order_by(Player.name)
        )
        return (await db.execute(query)).scalars().all()

    async def get_tournaments(self, db: AsyncSession, district_id: UUID) -> Sequence[Tournament]:
        query = (
            select(Tournament)
            .where(Tournament.district_id == district_id)
            .order_by(Tournament.start_date.desc())
        )
        return (await db.execute(query)).scalars().all()


# Singleton instance
district_repository: DistrictRepository = DistrictRepository()
