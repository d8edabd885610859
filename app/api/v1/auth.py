"""Auth Router — login, token refresh, logout and session status.

Login, refresh and logout write their own audit rows (LOGIN,
LOGIN_FAILED, TOKEN_REFRESH, LOGOUT) instead of the generic per-route row.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import CurrentUser, DbSession, RequestContext, limit_login_attempts
from app.middleware.audit import AuditRoute, audit_as
from app.schemas.auth import AuthStatusResponse, LoginRequest, LogoutRequest, RefreshRequest, TokenResponse
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse
from app.services.auth_service import auth_service
from app.services.user_service import user_service

router: APIRouter = APIRouter(route_class=AuditRoute)


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(limit_login_attempts)])
@audit_as(None)
async def login(data: LoginRequest, db: DbSession, info: RequestContext) -> TokenResponse:
    """Authenticate with username or email and password.

    The LOGIN_FAILED audit row is committed before the error propagates.
    """
    try:
        result: TokenResponse = await auth_service.login(db, data, info)
    except HTTPException:
        await db.commit()
        raise
    await db.commit()
    return result


@router.post("/refresh", response_model=TokenResponse)
@audit_as(None)
async def refresh_token(data: RefreshRequest, db: DbSession, info: RequestContext) -> TokenResponse:
    """Rotate a refresh token into a new token pair."""
    result: TokenResponse = await auth_service.refresh_tokens(db, data.refresh_token, info)
    await db.commit()
    return result


@router.post("/logout", response_model=MessageResponse)
@audit_as(None)
async def logout(
    current_user: CurrentUser,
    db: DbSession,
    info: RequestContext,
    data: LogoutRequest | None = None,
) -> MessageResponse:
    await auth_service.logout(db, current_user, data.refresh_token if data else None, info)
    await db.commit()
    return MessageResponse(message="Logout successful")


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(current_user: CurrentUser) -> AuthStatusResponse:
    return auth_service.status(current_user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser) -> UserResponse:
    return user_service.to_response(current_user)
