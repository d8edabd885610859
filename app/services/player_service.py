"""Player service — profiles, achievements, statistics and rankings.

Cache namespaces:
    players   — ``<id>`` (full profile) and ``prominent``
    rankings  — ``top-<limit>``, cleared whenever statistics change
"""

from typing import Sequence
from uuid import UUID

from loguru import logger
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.player import Achievement, Player, PlayerStatistics
from app.repositories.district_repository import district_repository
from app.repositories.player_repository import achievement_repository, player_repository
from app.repositories.tournament_repository import tournament_repository
from app.schemas.player import (
    AchievementCreate,
    AchievementResponse,
    AchievementUpdate,
    PlayerCreate,
    PlayerDetailResponse,
    PlayerResponse,
    PlayerSummary,
    PlayerUpdate,
    RankingResult,
    StatisticsResponse,
    StatisticsUpdate,
)
from app.utils.cache import cache
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.pagination import Page

CACHE_NAME: str = "players"
RANKINGS_CACHE: str = "rankings"

_PLAYER_DETAIL = TypeAdapter(PlayerDetailResponse)
_PLAYER_LIST = TypeAdapter(list[PlayerResponse])


def _to_responses(players: Sequence[Player]) -> list[PlayerResponse]:
    return [PlayerResponse.model_validate(p) for p in players]


class PlayerService:
    """Service handling player business logic."""

    async def _get_or_404(self, db: AsyncSession, player_id: UUID) -> Player:
        player: Player | None = await player_repository.get_detail(db, player_id)
        if player is None:
            raise NotFoundError("Player not found")
        return player

    async def _ensure_district(self, db: AsyncSession, district_id: UUID | None) -> None:
        if district_id is not None and await district_repository.get_by_id(db, district_id) is None:
            raise NotFoundError("District not found")

    async def _evict(self, player_id: UUID, rankings: bool = False) -> None:
        await cache.evict(CACHE_NAME, str(player_id), "prominent")
        if rankings:
            await cache.clear(RANKINGS_CACHE)

    # --- Reads --------------------------------------------------------------

    async def list_active(self, db: AsyncSession) -> list[PlayerResponse]:
        return _to_responses(await player_repository.list_active(db))

    async def list_paginated(self, db: AsyncSession, page: int, size: int) -> Page[PlayerResponse]:
        players, total = await player_repository.get_page(db, player_repository.active_query(), page, size)
        return Page[PlayerResponse].build(_to_responses(players), total, page, size)

    async def get_player(self, db: AsyncSession, player_id: UUID) -> PlayerDetailResponse:
        async def load() -> PlayerDetailResponse:
            return PlayerDetailResponse.model_validate(await self._get_or_404(db, player_id))

        return await cache.get_or_load(CACHE_NAME, str(player_id), _PLAYER_DETAIL, load)

    async def list_prominent(self, db: AsyncSession) -> list[PlayerResponse]:
        async def load() -> list[PlayerResponse]:
            return _to_responses(await player_repository.filter(db, is_prominent=True))

        return await cache.get_or_load(CACHE_NAME, "prominent", _PLAYER_LIST, load)

    async def filter(
        self,
        db: AsyncSession,
        category: str | None = None,
        gender: str | None = None,
        district_id: UUID | None = None,
        is_prominent: bool | None = None,
    ) -> list[PlayerResponse]:
        players = await player_repository.filter(db, category, gender, district_id, is_prominent)
        return _to_responses(players)

    async def search(self, db: AsyncSession, term: str) -> list[PlayerResponse]:
        return _to_responses(await player_repository.search(db, term))

    async def top_ranked(self, db: AsyncSession, limit: int = 10) -> list[PlayerResponse]:
        async def load() -> list[PlayerResponse]:
            return _to_responses(await player_repository.top_ranked(db, limit))

        return await cache.get_or_load(RANKINGS_CACHE, f"top-{limit}", _PLAYER_LIST, load)

    async def top_tournament_winners(self, db: AsyncSession, limit: int = 10) -> list[PlayerResponse]:
        return _to_responses(await player_repository.top_tournament_winners(db, limit))

    async def top_win_percentage(self, db: AsyncSession, limit: int = 10) -> list[PlayerResponse]:
        return _to_responses(await player_repository.top_win_percentage(db, limit))

    async def summary(self, db: AsyncSession) -> PlayerSummary:
        return PlayerSummary(
            total_players=await player_repository.count(db, {"is_active": True}),
            prominent_players=await player_repository.count(db, {"is_active": True, "is_prominent": True}),
            by_category=await player_repository.count_by_category(db),
            by_district=await player_repository.count_by_district(db),
        )

    # --- Writes -------------------------------------------------------------

    async def create_player(self, db: AsyncSession, data: PlayerCreate) -> PlayerDetailResponse:
        """Create a player together with an empty statistics row.

        Raises:
            NotFoundError: Unknown district
        """
        await self._ensure_district(db, data.district_id)
        player = Player(**data.model_dump(), statistics=PlayerStatistics(), achievements=[])
        db.add(player)
        await db.flush()
        await self._evict(player.id)
        logger.info("Created player {} ({})", player.name, player.id)
        return PlayerDetailResponse.model_validate(player)

    async def update_player(self, db: AsyncSession, player_id: UUID, data: PlayerUpdate) -> PlayerDetailResponse:
        player = await self._get_or_404(db, player_id)
        update_data = data.model_dump(exclude_unset=True)
        if "district_id" in update_data:
            await self._ensure_district(db, update_data["district_id"])
        player = await player_repository.update(db, player, update_data)
        await self._evict(player.id, rankings=True)
        return PlayerDetailResponse.model_validate(player)

    async def delete_player(self, db: AsyncSession, player_id: UUID) -> None:
        """Deactivate a player (soft delete)."""
        player = await self._get_or_404(db, player_id)
        player.is_active = False
        await db.flush()
        await self._evict(player.id, rankings=True)

    # --- Achievements -------------------------------------------------------

    async def _player_achievement(self, db: AsyncSession, player_id: UUID, achievement_id: UUID) -> Achievement:
        achievement: Achievement | None = await achievement_repository.get_by_id(db, achievement_id)
        if achievement is None or achievement.player_id != player_id:
            raise NotFoundError("Achievement not found")
        return achievement

    async def _ensure_tournament(self, db: AsyncSession, tournament_id: UUID | None) -> None:
        if tournament_id is not None and await tournament_repository.get_by_id(db, tournament_id) is None:
            raise NotFoundError("Tournament not found")

    async def list_achievements(self, db: AsyncSession, player_id: UUID) -> list[AchievementResponse]:
        await self._get_or_404(db, player_id)
        achievements = await achievement_repository.get_for_player(db, player_id)
        return [AchievementResponse.model_validate(a) for a in achievements]

    async def list_achievements_paginated(
        self, db: AsyncSession, player_id: UUID, page: int, size: int
    ) -> Page[AchievementResponse]:
        await self._get_or_404(db, player_id)
        query = achievement_repository.player_query(player_id)
        achievements, total = await achievement_repository.get_page(db, query, page, size)
        return Page[AchievementResponse].build(
            [AchievementResponse.model_validate(a) for a in achievements], total, page, size
        )

    async def add_achievement(self, db: AsyncSession, player_id: UUID, data: AchievementCreate) -> AchievementResponse:
        await self._get_or_404(db, player_id)
        await self._ensure_tournament(db, data.tournament_id)
        achievement = await achievement_repository.create(db, {**data.model_dump(), "player_id": player_id})
        await self._evict(player_id)
        return AchievementResponse.model_validate(achievement)

    async def update_achievement(
        self, db: AsyncSession, player_id: UUID, achievement_id: UUID, data: AchievementUpdate
    ) -> AchievementResponse:
        achievement = await self._player_achievement(db, player_id, achievement_id)
        update_data = data.model_dump(exclude_unset=True)
        if "tournament_id" in update_data:
            await self._ensure_tournament(db, update_data["tournament_id"])
        achievement = await achievement_repository.update(db, achievement, update_data)
        await self._evict(player_id)
        return AchievementResponse.model_validate(achievement)

    async def delete_achievement(self, db: AsyncSession, player_id: UUID, achievement_id: UUID) -> None:
        achievement = await self._player_achievement(db, player_id, achievement_id)
        await achievement_repository.delete(db, achievement)
        await self._evict(player_id)

    # --- Statistics ---------------------------------------------------------

    async def update_statistics(
        self, db: AsyncSession, player_id: UUID, data: StatisticsUpdate
    ) -> StatisticsResponse:
        """Partially update statistics, creating the row when missing.

        Raises:
            BadRequestError: Resulting matches_won exceeds matches_played
        """
        player = await self._get_or_404(db, player_id)
        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "current_ranking"}
        stats = player.statistics

        won = update_data.get("matches_won", stats.matches_won if stats else 0)
        played = update_data.get("matches_played", stats.matches_played if stats else 0)
        if (won or 0) > (played or 0):
            raise BadRequestError("matches_won cannot exceed matches_played")

        if stats is None:
            stats = PlayerStatistics()
            player.statistics = stats

        ranking_given = "current_ranking" in update_data
        ranking = update_data.pop("current_ranking", None)
        for field, value in update_data.items():
            setattr(stats, field, value)
        if ranking_given:
            stats.set_ranking(ranking)

        stats.touch()
        await db.flush()
        await self._evict(player_id, rankings=True)
        return StatisticsResponse.model_validate(stats)

    async def calculate_rankings(self, db: AsyncSession) -> RankingResult:
        """Rank active players by points, then win percentage, then tournaments won."""
        candidates = await player_repository.ranking_candidates(db)
        for position, stats in enumerate(candidates, start=1):
            stats.set_ranking(position)
            stats.touch()
        await db.flush()
        await cache.clear(RANKINGS_CACHE)
        await cache.clear(CACHE_NAME)
        logger.info("Recalculated rankings for {} players", len(candidates))
        return RankingResult(ranked_players=len(candidates))


# Singleton instance
player_service: PlayerService = PlayerService()
