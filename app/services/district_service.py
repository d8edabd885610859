"""District service — district CRUD, lookups and per-district statistics.

Active district lists and single districts are cached under the
``districts`` namespace and evicted on every write.
"""

from uuid import UUID

from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.district import District
from app.repositories.district_repository import district_repository
from app.repositories.player_repository import player_repository
from app.repositories.tournament_repository import tournament_repository
from app.schemas.district import (
    DistrictCreate,
    DistrictOverview,
    DistrictResponse,
    DistrictUpdate,
    DistrictWithStatistics,
)
from app.schemas.player import PlayerResponse
from app.schemas.tournament import TournamentResponse
from app.utils.cache import cache
from app.utils.exceptions import DuplicateError, NotFoundError
from app.utils.pagination import Page

CACHE_NAME: str = "districts"
_DISTRICT = TypeAdapter(DistrictResponse)
_DISTRICT_LIST = TypeAdapter(list[DistrictResponse])


class DistrictService:
    """Service handling district business logic."""

    async def _get_or_404(self, db: AsyncSession, district_id: UUID) -> District:
        district: District | None = await district_repository.get_by_id(db, district_id)
        if district is None:
            raise NotFoundError("District not found")
        return district

    async def _evict(self, district_id: UUID) -> None:
        await cache.evict(CACHE_NAME, "all-active", str(district_id))

    async def list_active(self, db: AsyncSession) -> list[DistrictResponse]:
        async def load() -> list[DistrictResponse]:
            districts = await district_repository.get_active(db)
            return [DistrictResponse.model_validate(d) for d in districts]

        return await cache.get_or_load(CACHE_NAME, "all-active", _DISTRICT_LIST, load)

    async def list_paginated(
        self, db: AsyncSession, page: int, size: int, sort_by: str = "name", sort_dir: str = "asc"
    ) -> Page[DistrictResponse]:
        query = district_repository.sorted_query(sort_by, sort_dir)
        districts, total = await district_repository.get_page(db, query, page, size)
        return Page[DistrictResponse].build([DistrictResponse.model_validate(d) for d in districts], total, page, size)

    async def get_district(self, db: AsyncSession, district_id: UUID) -> DistrictResponse:
        async def load() -> DistrictResponse:
            return DistrictResponse.model_validate(await self._get_or_404(db, district_id))

        return await cache.get_or_load(CACHE_NAME, str(district_id), _DISTRICT, load)

    async def get_by_code(self, db: AsyncSession, code: str) -> DistrictResponse:
        district = await district_repository.get_by_code(db, code)
        if district is None:
            raise NotFoundError("District not found")
        return DistrictResponse.model_validate(district)

    async def search(self, db: AsyncSession, name: str) -> list[DistrictResponse]:
        return [DistrictResponse.model_validate(d) for d in await district_repository.search(db, name)]

    async def with_statistics(self, db: AsyncSession) -> list[DistrictWithStatistics]:
        rows = await district_repository.get_with_counts(db)
        return [
            DistrictWithStatistics.model_validate(district).model_copy(
                update={"players_count": players, "tournaments_count": tournaments}
            )
            for district, players, tournaments in rows
        ]

    async def get_players(self, db: AsyncSession, district_id: UUID) -> list[PlayerResponse]:
        await self._get_or_404(db, district_id)
        players = await district_repository.get_players(db, district_id)
        return [PlayerResponse.model_validate(p) for p in players]

    async def get_tournaments(self, db: AsyncSession, district_id: UUID) -> list[TournamentResponse]:
        await self._get_or_404(db, district_id)
        tournaments = await district_repository.get_tournaments(db, district_id)
        return [TournamentResponse.model_validate(t) for t in tournaments]

    async def overview(self, db: AsyncSession) -> DistrictOverview:
        return DistrictOverview(
            total_districts=await district_repository.count(db, {"is_active": True}),
            total_players=await player_repository.count(db, {"is_active": True}),
            total_tournaments=await tournament_repository.count(db),
        )

    async def create_district(self, db: AsyncSession, data: DistrictCreate) -> DistrictResponse:
        """Create a district.

        Raises:
            DuplicateError: District code already in use
        """
        if await district_repository.get_by_code(db, data.code) is not None:
            raise DuplicateError("District code already exists")
        district = await district_repository.create(db, data.model_dump())
        await self._evict(district.id)
        return DistrictResponse.model_validate(district)

    async def update_district(self, db: AsyncSession, district_id: UUID, data: DistrictUpdate) -> DistrictResponse:
        district = await self._get_or_404(db, district_id)
        update_data = data.model_dump(exclude_unset=True)
        code = update_data.get("code")
        if code is not None and await district_repository.exists(db, {"code": code}, exclude_id=district.id):
            raise DuplicateError("District code already exists")
        district = await district_repository.update(db, district, update_data)
        await self._evict(district.id)
        return DistrictResponse.model_validate(district)

    async def delete_district(self, db: AsyncSession, district_id: UUID) -> None:
        """Deactivate a district (soft delete)."""
        district = await self._get_or_404(db, district_id)
        district.is_active = False
        await db.flush()
        await self._evict(district.id)


# Singleton instance
district_service: DistrictService = DistrictService()
