"""FastAPI dependency injection module — Authentication and authorization.

Provides reusable dependencies for extracting the current user from JWT
and enforcing permission/role based access control on API endpoints.

Authentication Flow:
    1. Client sends Authorization: Bearer <token> header
    2. HTTPBearer extracts the token
    3. decode_token() verifies the JWT and returns the payload
    4. The user is fetched from the DB using the payload "sub" field
       (roles are eager-loaded with the user)
    5. User active status is verified

Authorization Flow (require_permission / require_role):
    1. User authenticated via get_current_user
    2. The user's effective permissions are the union over their roles
    3. Returns 403 when none of the listed permissions (or roles) is held
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.repositories.user_repository import user_repository
from app.services.audit_service import audit_service
from app.services.authorization_service import authorization_service
from app.services.security_monitoring_service import security_monitoring_service
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token
from app.utils.rate_limit import SlidingWindowRateLimiter
from app.utils.rbac import Permission, Role
from app.utils.request import RequestInfo, client_ip

# Extracts the JWT from the Authorization: Bearer <token> header.
# auto_error is off so a missing header yields our own 401 envelope.
security: HTTPBearer = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> User:
    """Decode the bearer token and return the authenticated user.

    Raises:
        UnauthorizedError(401): Missing, invalid or expired token
        UnauthorizedError(401): User not found or inactive
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    try:
        payload: dict = decode_token(credentials.credentials)
        # Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_permission(*permissions: Permission) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the user must hold at least one of the permissions."""

    async def _check(current_user: CurrentUser) -> User:
        if len(permissions) == 1:
            authorization_service.require_permission(current_user, permissions[0])
        else:
            authorization_service.require_any_permission(current_user, *permissions)
        return current_user

    return _check


def require_all_permissions(*permissions: Permission) -> Callable[..., Awaitable[User]]:
    async def _check(current_user: CurrentUser) -> User:
        authorization_service.require_all_permissions(current_user, *permissions)
        return current_user

    return _check


def require_role(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the user must hold at least one of the roles."""

    async def _check(current_user: CurrentUser) -> User:
        if len(roles) == 1:
            authorization_service.require_role(current_user, roles[0])
        else:
            authorization_service.require_any_role(current_user, *roles)
        return current_user

    return _check


async def require_admin(current_user: CurrentUser) -> User:
    authorization_service.require_admin(current_user)
    return current_user


AdminUser = Annotated[User, Depends(require_admin)]


def get_request_info(request: Request) -> RequestInfo:
    return RequestInfo.from_request(request)


RequestContext = Annotated[RequestInfo, Depends(get_request_info)]


# Login attempts per client IP
login_rate_limiter: SlidingWindowRateLimiter = SlidingWindowRateLimiter(
    settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS
)


async def limit_login_attempts(request: Request, db: DbSession) -> None:
    """Raise 429 over the login rate limit, then 403 for a blocked client IP.

    The ACCESS_DENIED row is committed here because the route never runs.
    """
    ip_address = client_ip(request)
    login_rate_limiter.check(ip_address)
    if security_monitoring_service.is_blocked(ip_address):
        await audit_service.log_access_denied(
            db, None, "Authentication", "IP address is blocked", RequestInfo.from_request(request)
        )
        await db.commit()
        raise ForbiddenError("Access from this IP address is blocked")
