"""Member Router — association office bearers and the contact form."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import CurrentUser, DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.common import ContactRequest, MessageResponse
from app.schemas.member import HierarchyUpdate, MemberCreate, MemberResponse, MemberStatistics, MemberUpdate
from app.services.member_service import member_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Reader = Annotated[User, Depends(require_permission(Permission.MEMBER_READ))]


@router.get("", response_model=list[MemberResponse])
async def list_members(db: DbSession, current_user: Reader) -> list[MemberResponse]:
    """Active members ordered by hierarchy level, then name."""
    return await member_service.list_active(db)


@router.get("/paginated", response_model=Page[MemberResponse])
async def list_members_paginated(db: DbSession, params: Pagination, current_user: Reader) -> Page[MemberResponse]:
    return await member_service.list_paginated(db, params.page, params.size)


@router.get("/prominent", response_model=list[MemberResponse])
async def prominent_members(db: DbSession, current_user: Reader) -> list[MemberResponse]:
    return await member_service.list_prominent(db)


@router.get("/currently-serving", response_model=list[MemberResponse])
async def currently_serving(db: DbSession, current_user: Reader) -> list[MemberResponse]:
    return await member_service.list_currently_serving(db)


@router.get("/top-level", response_model=list[MemberResponse])
async def top_level_members(db: DbSession, current_user: Reader) -> list[MemberResponse]:
    return await member_service.list_top_level(db)


@router.get("/search", response_model=list[MemberResponse])
async def search_members(
    db: DbSession, current_user: Reader, q: Annotated[str, Query(min_length=1)]
) -> list[MemberResponse]:
    return await member_service.search(db, q)


@router.get("/statistics", response_model=MemberStatistics)
async def member_statistics(db: DbSession, current_user: Reader) -> MemberStatistics:
    return await member_service.statistics(db)


@router.get("/tenure-ending-soon", response_model=list[MemberResponse])
async def tenure_ending_soon(db: DbSession, current_user: Reader) -> list[MemberResponse]:
    return await member_service.tenure_ending_soon(db)


@router.post("/contact", response_model=MessageResponse)
async def submit_contact_form(data: ContactRequest, db: DbSession, current_user: CurrentUser) -> MessageResponse:
    await member_service.submit_contact_form(db, data)
    return MessageResponse(message="Contact form submitted successfully")


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(member_id: UUID, db: DbSession, current_user: Reader) -> MemberResponse:
    return await member_service.get_member(db, member_id)


@router.post("", response_model=MemberResponse, status_code=201)
async def create_member(
    data: MemberCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.MEMBER_CREATE))],
) -> MemberResponse:
    result: MemberResponse = await member_service.create_member(db, data)
    await db.commit()
    return result


@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: UUID,
    data: MemberUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.MEMBER_UPDATE))],
) -> MemberResponse:
    result: MemberResponse = await member_service.update_member(db, member_id, data)
    await db.commit()
    return result


@router.patch("/{member_id}/hierarchy", response_model=MemberResponse)
async def update_hierarchy(
    member_id: UUID,
    data: HierarchyUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.MEMBER_MANAGE_HIERARCHY))],
) -> MemberResponse:
    result: MemberResponse = await member_service.update_hierarchy(db, member_id, data)
    await db.commit()
    return result


@router.delete("/{member_id}", status_code=204)
async def delete_member(
    member_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.MEMBER_DELETE))],
) -> None:
    await member_service.delete_member(db, member_id)
    await db.commit()
