"""District Router — the association's districts and per-district data."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.district import (
    DistrictCreate,
    DistrictOverview,
    DistrictResponse,
    DistrictUpdate,
    DistrictWithStatistics,
)
from app.schemas.player import PlayerResponse
from app.schemas.tournament import TournamentResponse
from app.services.district_service import district_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.DISTRICT_READ))]


@router.get("", response_model=list[DistrictResponse])
async def list_districts(db: DbSession, current_user: Reader) -> list[DistrictResponse]:
    return await district_service.list_active(db)


@router.get("/paginated", response_model=Page[DistrictResponse])
async def list_districts_paginated(
    db: DbSession,
    params: Pagination,
    current_user: Reader,
    sort_by: Annotated[str, Query()] = "name",
    sort_dir: Annotated[Literal["asc", "desc"], Query()] = "asc",
) -> Page[DistrictResponse]:
    return await district_service.list_paginated(db, params.page, params.size, sort_by, sort_dir)


@router.get("/code/{code}", response_model=DistrictResponse)
async def get_district_by_code(code: str, db: DbSession, current_user: Reader) -> DistrictResponse:
    return await district_service.get_by_code(db, code)


@router.get("/search", response_model=list[DistrictResponse])
async def search_districts(
    db: DbSession, current_user: Reader, name: Annotated[str, Query(min_length=1)]
) -> list[DistrictResponse]:
    return await district_service.search(db, name)


@router.get("/with-statistics", response_model=list[DistrictWithStatistics])
async def districts_with_statistics(db: DbSession, current_user: Reader) -> list[DistrictWithStatistics]:
    return await district_service.with_statistics(db)


@router.get("/statistics", response_model=DistrictOverview)
async def district_overview(db: DbSession, current_user: Reader) -> DistrictOverview:
    return await district_service.overview(db)


@router.get("/{district_id}", response_model=DistrictResponse)
async def get_district(district_id: UUID, db: DbSession, current_user: Reader) -> DistrictResponse:
    return await district_service.get_district(db, district_id)


@router.get("/{district_id}/players", response_model=list[PlayerResponse])
async def district_players(district_id: UUID, db: DbSession, current_user: Reader) -> list[PlayerResponse]:
    return await district_service.get_players(db, district_id)


@router.get("/{district_id}/tournaments", response_model=list[TournamentResponse])
async def district_tournaments(district_id: UUID, db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await district_service.get_tournaments(db, district_id)


@router.post("", response_model=DistrictResponse, status_code=201)
async def create_district(
    data: DistrictCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.DISTRICT_CREATE))],
) -> DistrictResponse:
    result: DistrictResponse = await district_service.create_district(db, data)
    await db.commit()
    return result


@router.put("/{district_id}", response_model=DistrictResponse)
async def update_district(
    district_id: UUID,
    data: DistrictUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.DISTRICT_UPDATE))],
) -> DistrictResponse:
    result: DistrictResponse = await district_service.update_district(db, district_id, data)
    await db.commit()
    return result


@router.delete("/{district_id}", status_code=204)
async def delete_district(
    district_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.DISTRICT_DELETE))],
) -> None:
    await district_service.delete_district(db, district_id)
    await db.commit()
