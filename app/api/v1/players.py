"""Player Router — profiles, achievements, statistics and rankings."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.player import Gender, PlayerCategory
from app.models.user import User
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
from app.services.player_service import player_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.PLAYER_READ))]
StatisticsManager = Annotated[User, Depends(require_permission(Permission.PLAYER_MANAGE_STATISTICS))]
AchievementManager = Annotated[User, Depends(require_permission(Permission.PLAYER_MANAGE_ACHIEVEMENTS))]
Limit = Annotated[int, Query(ge=1, le=100)]


@router.get("", response_model=list[PlayerResponse])
async def list_players(db: DbSession, current_user: Reader) -> list[PlayerResponse]:
    return await player_service.list_active(db)


@router.get("/paginated", response_model=Page[PlayerResponse])
async def list_players_paginated(db: DbSession, params: Pagination, current_user: Reader) -> Page[PlayerResponse]:
    return await player_service.list_paginated(db, params.page, params.size)


@router.get("/prominent", response_model=list[PlayerResponse])
async def prominent_players(db: DbSession, current_user: Reader) -> list[PlayerResponse]:
    return await player_service.list_prominent(db)


@router.get("/category/{category}", response_model=list[PlayerResponse])
async def players_by_category(category: PlayerCategory, db: DbSession, current_user: Reader) -> list[PlayerResponse]:
    return await player_service.filter(db, category=category.value)


@router.get("/district/{district_id}", response_model=list[PlayerResponse])
async def players_by_district(district_id: UUID, db: DbSession, current_user: Reader) -> list[PlayerResponse]:
    return await player_service.filter(db, district_id=district_id)


@router.get("/search", response_model=list[PlayerResponse])
async def search_players(
    db: DbSession, current_user: Reader, q: Annotated[str, Query(min_length=1)]
) -> list[PlayerResponse]:
    return await player_service.search(db, q)


@router.get("/filter", response_model=list[PlayerResponse])
async def filter_players(
    db: DbSession,
    current_user: Reader,
    category: PlayerCategory | None = None,
    gender: Gender | None = None,
    district_id: UUID | None = None,
    is_prominent: bool | None = None,
) -> list[PlayerResponse]:
    """Active players matching every given criterion."""
    return await player_service.filter(
        db,
        category=category.value if category else None,
        gender=gender.value if gender else None,
        district_id=district_id,
        is_prominent=is_prominent,
    )


@router.get("/rankings/top", response_model=list[PlayerResponse])
async def top_ranked_players(db: DbSession, current_user: Reader, limit: Limit = 10) -> list[PlayerResponse]:
    return await player_service.top_ranked(db, limit)


@router.post("/rankings/calculate", response_model=RankingResult)
async def calculate_rankings(db: DbSession, current_user: StatisticsManager) -> RankingResult:
    result: RankingResult = await player_service.calculate_rankings(db)
    await db.commit()
    return result


@router.get("/statistics/tournament-winners", response_model=list[PlayerResponse])
async def top_tournament_winners(db: DbSession, current_user: Reader, limit: Limit = 10) -> list[PlayerResponse]:
    return await player_service.top_tournament_winners(db, limit)


@router.get("/statistics/win-percentage", response_model=list[PlayerResponse])
async def top_win_percentage(db: DbSession, current_user: Reader, limit: Limit = 10) -> list[PlayerResponse]:
    return await player_service.top_win_percentage(db, limit)


@router.get("/statistics/summary", response_model=PlayerSummary)
async def player_summary(db: DbSession, current_user: Reader) -> PlayerSummary:
    return await player_service.summary(db)


@router.get("/{player_id}", response_model=PlayerDetailResponse)
async def get_player(player_id: UUID, db: DbSession, current_user: Reader) -> PlayerDetailResponse:
    return await player_service.get_player(db, player_id)


@router.post("", response_model=PlayerDetailResponse, status_code=201)
async def create_player(
    data: PlayerCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.PLAYER_CREATE))],
) -> PlayerDetailResponse:
    result: PlayerDetailResponse = await player_service.create_player(db, data)
    await db.commit()
    return result


@router.put("/{player_id}", response_model=PlayerDetailResponse)
async def update_player(
    player_id: UUID,
    data: PlayerUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.PLAYER_UPDATE))],
) -> PlayerDetailResponse:
    result: PlayerDetailResponse = await player_service.update_player(db, player_id, data)
    await db.commit()
    return result


@router.delete("/{player_id}", status_code=204)
async def delete_player(
    player_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.PLAYER_DELETE))],
) -> None:
    await player_service.delete_player(db, player_id)
    await db.commit()


# === Statistics ===

@router.put("/{player_id}/statistics", response_model=StatisticsResponse)
async def update_statistics(
    player_id: UUID, data: StatisticsUpdate, db: DbSession, current_user: StatisticsManager
) -> StatisticsResponse:
    result: StatisticsResponse = await player_service.update_statistics(db, player_id, data)
    await db.commit()
    return result


# === Achievements ===

@router.get("/{player_id}/achievements", response_model=list[AchievementResponse])
async def list_achievements(player_id: UUID, db: DbSession, current_user: Reader) -> list[AchievementResponse]:
    return await player_service.list_achievements(db, player_id)


@router.get("/{player_id}/achievements/paginated", response_model=Page[AchievementResponse])
async def list_achievements_paginated(
    player_id: UUID, db: DbSession, params: Pagination, current_user: Reader
) -> Page[AchievementResponse]:
    return await player_service.list_achievements_paginated(db, player_id, params.page, params.size)


@router.post("/{player_id}/achievements", response_model=AchievementResponse, status_code=201)
async def add_achievement(
    player_id: UUID, data: AchievementCreate, db: DbSession, current_user: AchievementManager
) -> AchievementResponse:
    result: AchievementResponse = await player_service.add_achievement(db, player_id, data)
    await db.commit()
    return result


@router.put("/{player_id}/achievements/{achievement_id}", response_model=AchievementResponse)
async def update_achievement(
    player_id: UUID,
    achievement_id: UUID,
    data: AchievementUpdate,
    db: DbSession,
    current_user: AchievementManager,
) -> AchievementResponse:
    result: AchievementResponse = await player_service.update_achievement(db, player_id, achievement_id, data)
    await db.commit()
    return result


@router.delete("/{player_id}/achievements/{achievement_id}", status_code=204)
async def delete_achievement(
    player_id: UUID, achievement_id: UUID, db: DbSession, current_user: AchievementManager
) -> None:
    await player_service.delete_achievement(db, player_id, achievement_id)
    await db.commit()
