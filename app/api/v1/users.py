"""User Router — account management, role assignment and permission probes.

Permission Matrix:
    - list: USER_READ
    - detail / permissions: USER_READ or own account
    - create: USER_CREATE, update: USER_UPDATE or own account, delete: USER_DELETE
    - role assignment: USER_MANAGE_ROLES (SUPER_ADMIN grants need SUPER_ADMIN)
    - stats: ADMIN or SUPER_ADMIN
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import AdminUser, CurrentUser, DbSession, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.user import (
    PermissionCheckResponse,
    RoleCheckResponse,
    UserCreate,
    UserPermissionsResponse,
    UserResponse,
    UserStatsResponse,
    UserUpdate,
)
from app.services.user_service import user_service
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)


@router.get("", response_model=Page[UserResponse])
async def list_users(
    db: DbSession,
    params: Pagination,
    current_user: Annotated[User, Depends(require_permission(Permission.USER_READ))],
    is_active: Annotated[bool | None, Query()] = None,
) -> Page[UserResponse]:
    return await user_service.list_users(db, params.page, params.size, is_active)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    return user_service.to_response(current_user)


@router.get("/check-permission/{permission}", response_model=PermissionCheckResponse)
async def check_permission(permission: str, current_user: CurrentUser) -> PermissionCheckResponse:
    """Whether the caller holds a permission, e.g. MEMBER_CREATE or PERMISSION_MEMBER_CREATE."""
    return user_service.check_permission(current_user, permission)


@router.get("/check-role/{role}", response_model=RoleCheckResponse)
async def check_role(role: str, current_user: CurrentUser) -> RoleCheckResponse:
    return user_service.check_role(current_user, role)


@router.get("/admin/stats", response_model=UserStatsResponse)
async def user_stats(db: DbSession, current_user: AdminUser) -> UserStatsResponse:
    return await user_service.get_stats(db)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, db: DbSession, current_user: CurrentUser) -> UserResponse:
    return await user_service.get_user(db, user_id, current_user)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.USER_CREATE))],
) -> UserResponse:
    result: UserResponse = await user_service.create_user(db, data, current_user)
    await db.commit()
    return result


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: UUID, data: UserUpdate, db: DbSession, current_user: CurrentUser) -> UserResponse:
    result: UserResponse = await user_service.update_user(db, user_id, data, current_user)
    await db.commit()
    return result


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.USER_DELETE))],
) -> None:
    await user_service.delete_user(db, user_id, current_user)
    await db.commit()


@router.post("/{user_id}/roles/{role}", response_model=UserResponse)
async def assign_role(
    user_id: UUID,
    role: str,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.USER_MANAGE_ROLES))],
) -> UserResponse:
    result: UserResponse = await user_service.assign_role(db, user_id, role, current_user)
    await db.commit()
    return result


@router.delete("/{user_id}/roles/{role}", response_model=UserResponse)
async def remove_role(
    user_id: UUID,
    role: str,
    db: DbSession,
    current_user: Annotated[User, Depends(require_permission(Permission.USER_MANAGE_ROLES))],
) -> UserResponse:
    result: UserResponse = await user_service.remove_role(db, user_id, role, current_user)
    await db.commit()
    return result


@router.get("/{user_id}/permissions", response_model=UserPermissionsResponse)
async def get_permissions(user_id: UUID, db: DbSession, current_user: CurrentUser) -> UserPermissionsResponse:
    return await user_service.get_permissions(db, user_id, current_user)
