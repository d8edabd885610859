"""Tournament Router — tournaments, registrations and brackets."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.tournament import TournamentStatus
from app.models.user import User
from app.schemas.tournament import (
    BracketResponse,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationStatusUpdate,
    TournamentCreate,
    TournamentResponse,
    TournamentStatusUpdate,
    TournamentUpdate,
)
from app.services.tournament_service import tournament_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.TOURNAMENT_READ))]
Updater = Annotated[User, Depends(require_permission(Permission.TOURNAMENT_UPDATE))]
RegistrationManager = Annotated[User, Depends(require_permission(Permission.TOURNAMENT_MANAGE_REGISTRATION))]


@router.get("", response_model=list[TournamentResponse])
async def list_tournaments(db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await tournament_service.list_all(db)


@router.get("/paginated", response_model=Page[TournamentResponse])
async def list_tournaments_paginated(
    db: DbSession, params: Pagination, current_user: Reader
) -> Page[TournamentResponse]:
    return await tournament_service.list_paginated(db, params.page, params.size)


@router.get("/upcoming", response_model=list[TournamentResponse])
async def upcoming_tournaments(db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    """Tournaments starting after today that are not cancelled."""
    return await tournament_service.upcoming(db)


@router.get("/ongoing", response_model=list[TournamentResponse])
async def ongoing_tournaments(db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await tournament_service.by_status(db, TournamentStatus.ONGOING)


@router.get("/completed", response_model=list[TournamentResponse])
async def completed_tournaments(db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await tournament_service.by_status(db, TournamentStatus.COMPLETED)


@router.get("/featured", response_model=list[TournamentResponse])
async def featured_tournaments(db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await tournament_service.featured(db)


@router.get("/district/{district_id}", response_model=list[TournamentResponse])
async def tournaments_by_district(district_id: UUID, db: DbSession, current_user: Reader) -> list[TournamentResponse]:
    return await tournament_service.by_district(db, district_id)


@router.get("/date-range", response_model=list[TournamentResponse])
async def tournaments_in_date_range(
    db: DbSession, current_user: Reader, start: date, end: date
) -> list[TournamentResponse]:
    return await tournament_service.in_date_range(db, start, end)


@router.get("/search", response_model=list[TournamentResponse])
async def search_tournaments(
    db: DbSession, current_user: Reader, q: Annotated[str, Query(min_length=1)]
) -> list[TournamentResponse]:
    return await tournament_service.search(db, q)


@router.get("/status/{status}", response_model=list[TournamentResponse])
async def tournaments_by_status(
    status: TournamentStatus, db: DbSession, current_user: Reader
) -> list[TournamentResponse]:
    return await tournament_service.by_status(db, status)


@router.get("/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(tournament_id: UUID, db: DbSession, current_user: Reader) -> TournamentResponse:
    return await tournament_service.get_tournament(db, tournament_id)


@router.post("", response_model=TournamentResponse, status_code=201)
async def create_tournament(
    data: TournamentCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.TOURNAMENT_CREATE))],
) -> TournamentResponse:
    result: TournamentResponse = await tournament_service.create_tournament(db, data)
    await db.commit()
    return result


@router.put("/{tournament_id}", response_model=TournamentResponse)
async def update_tournament(
    tournament_id: UUID, data: TournamentUpdate, db: DbSession, current_user: Updater
) -> TournamentResponse:
    result: TournamentResponse = await tournament_service.update_tournament(db, tournament_id, data)
    await db.commit()
    return result


@router.delete("/{tournament_id}", status_code=204)
async def delete_tournament(
    tournament_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.TOURNAMENT_DELETE))],
) -> None:
    await tournament_service.delete_tournament(db, tournament_id)
    await db.commit()


@router.patch("/{tournament_id}/status", response_model=TournamentResponse)
async def update_tournament_status(
    tournament_id: UUID, data: TournamentStatusUpdate, db: DbSession, current_user: Updater
) -> TournamentResponse:
    result: TournamentResponse = await tournament_service.update_status(db, tournament_id, data.status)
    await db.commit()
    return result


# === Registrations ===

@router.post("/{tournament_id}/registrations", response_model=RegistrationResponse, status_code=201)
async def register_player(
    tournament_id: UUID, data: RegistrationCreate, db: DbSession, current_user: RegistrationManager
) -> RegistrationResponse:
    result: RegistrationResponse = await tournament_service.register_player(db, tournament_id, data)
    await db.commit()
    return result


@router.get("/{tournament_id}/registrations", response_model=list[RegistrationResponse])
async def list_registrations(tournament_id: UUID, db: DbSession, current_user: Reader) -> list[RegistrationResponse]:
    return await tournament_service.list_registrations(db, tournament_id)


@router.patch("/{tournament_id}/registrations/{registration_id}/status", response_model=RegistrationResponse)
async def update_registration_status(
    tournament_id: UUID,
    registration_id: UUID,
    data: RegistrationStatusUpdate,
    db: DbSession,
    current_user: RegistrationManager,
) -> RegistrationResponse:
    result: RegistrationResponse = await tournament_service.update_registration_status(
        db, tournament_id, registration_id, data
    )
    await db.commit()
    return result


@router.post("/{tournament_id}/bracket", response_model=BracketResponse)
async def generate_bracket(
    tournament_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.TOURNAMENT_MANAGE_RESULTS))],
) -> BracketResponse:
    """Draw a single-elimination bracket from the active registrations (not persisted)."""
    return await tournament_service.generate_bracket(db, tournament_id)
