"""Player repository — players, statistics and achievements queries."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.district import District
from app.models.player import Achievement, Player, PlayerStatistics
from app.repositories.base import BaseRepository

# Eager loads used wherever a full player profile is returned
PLAYER_DETAIL_OPTIONS = (
    selectinload(Player.statistics),
    selectinload(Player.achievements),
)


class PlayerRepository(BaseRepository[Player]):
    """Repository handling database queries for players and their statistics."""

    def __init__(self) -> None:
        super().__init__(Player)

    def active_query(self) -> Select:
        return (
            select(Player)
            .options(selectinload(Player.statistics))
            .where(Player.is_active == True)
            .order_by(Player.name)
        )

    async def get_detail(self, db: AsyncSession, player_id: UUID) -> Player | None:
        """Player with statistics and achievements, reloaded even if already in the session."""
        query = (
            select(Player)
            .options(*PLAYER_DETAIL_OPTIONS)
            .where(Player.id == player_id)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(query)).scalar_one_or_none()

    async def list_active(self, db: AsyncSession) -> Sequence[Player]:
        return (await db.execute(self.active_query())).scalars().all()

    async def filter(
        self,
        db: AsyncSession,
        category: str | None = None,
        gender: str | None = None,
        district_id: UUID | None = None,
        is_prominent: bool | None = None,
    ) -> Sequence[Player]:
        query = self.active_query()
        if category is not None:
            query = query.where(Player.category == category)
        if gender is not None:
            query = query.where(Player.gender == gender)
        if district_id is not None:
            query = query.where(Player.district_id == district_id)
        if is_prominent is not None:
            query = query.where(Player.is_prominent == is_prominent)
        return (await db.execute(query)).scalars().all()

    async def search(self, db: AsyncSession, term: str) -> Sequence[Player]:
        query = self.active_query().where(func.lower(Player.name).like(f"%{term.lower()}%"))
        return (await db.execute(query)).scalars().all()

    def _ranked(self, order_by, limit: int) -> Select:
        return (
            select(Player)
            .join(PlayerStatistics, PlayerStatistics.player_id == Player.id)
            .options(selectinload(Player.statistics))
            .where(Player.is_active == True)
            .order_by(*order_by)
            .limit(limit)
        )

    async def top_ranked(self, db: AsyncSession, limit: int) -> Sequence[Player]:
        query = self._ranked(
            (PlayerStatistics.current_ranking.asc(), Player.name), limit
        ).where(PlayerStatistics.current_ranking.is_not(None))
        return (await db.execute(query)).scalars().all()

    async def top_tournament_winners(self, db: AsyncSession, limit: int) -> Sequence[Player]:
        query = self._ranked(
            (PlayerStatistics.tournaments_won.desc(), Player.name), limit
        ).where(PlayerStatistics.tournaments_won > 0)
        return (await db.execute(query)).scalars().all()

    async def top_win_percentage(self, db: AsyncSession, limit: int) -> Sequence[Player]:
        query = self._ranked(
            (PlayerStatistics.win_percentage.desc(), Player.name), limit
        ).where(PlayerStatistics.matches_played > 0)
        return (await db.execute(query)).scalars().all()

    async def ranking_candidates(self, db: AsyncSession) -> Sequence[PlayerStatistics]:
        """Statistics of active players in ranking order."""
        query = (
            select(PlayerStatistics)
            .join(Player, Player.id == PlayerStatistics.player_id)
            .where(Player.is_active == True)
            .order_by(
                PlayerStatistics.total_points.desc(),
                PlayerStatistics.win_percentage.desc(),
                PlayerStatistics.tournaments_won.desc(),
            )
        )
        return (await db.execute(query)).scalars().all()

    async def count_by_category(self, db: AsyncSession) -> dict[str, int]:
        query = (
            select(Player.category, func.count(Player.id))
            .where(Player.is_active == True)
            .group_by(Player.category)
        )
        return {category or "UNSPECIFIED": count for category, count in (await db.execute(query)).all()}

    async def count_by_district(self, db: AsyncSession) -> dict[str, int]:
        query = (
            select(District.name, func.count(Player.id))
            .join(District, District.id == Player.district_id)
            .where(Player.is_active == True)
            .group_by(District.name)
        )
        return {name: count for name, count in (await db.execute(query)).all()}

    async def get_statistics(self, db: AsyncSession, player_id: UUID) -> PlayerStatistics | None:
        result = await db.execute(select(PlayerStatistics).where(PlayerStatistics.player_id == player_id))
        return result.scalar_one_or_none()


class AchievementRepository(BaseRepository[Achievement]):
    """Repository handling database queries for achievements."""

    def __init__(self) -> None:
        super().__init__(Achievement)

    def player_query(self, player_id: UUID) -> Select:
        return (
            select(Achievement)
            .where(Achievement.player_id == player_id)
            .order_by(Achievement.achievement_date.desc(), Achievement.created_at.desc())
        )

    async def get_for_player(self, db: AsyncSession, player_id: UUID) -> Sequence[Achievement]:
        return (await db.execute(self.player_query(player_id))).scalars().all()


# Singleton instances
player_repository: PlayerRepository = PlayerRepository()
achievement_repository: AchievementRepository = AchievementRepository()
