"""Authentication service — login, token refresh, logout and status.

Handles the JWT token lifecycle: every successful login or refresh issues a
new access/refresh pair and removes the user's older refresh tokens.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.audit_log import AuditAction
from app.models.user import User
from app.repositories.auth_repository import auth_repository
from app.repositories.user_repository import user_repository
from app.schemas.auth import AuthStatusResponse, AuthUser, LoginRequest, TokenResponse
from app.services.audit_service import audit_service
from app.services.security_monitoring_service import security_monitoring_service
from app.utils.dates import ensure_utc
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import access_token_ttl_seconds, create_access_token, create_refresh_token, decode_token
from app.utils.password import verify_password
from app.utils.request import RequestInfo


class AuthService:
    """Service handling authentication business logic."""

    def _build_jwt_payload(self, user: User) -> dict[str, str | list[str]]:
        """Build the JWT payload from the user's identity and roles.

        Args:
            user: Authenticated user

        Returns:
            dict: Claims shared by the access and refresh tokens
        """
        return {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "roles": sorted(r.value for r in user.roles),
        }

    def auth_user(self, user: User) -> AuthUser:
        return AuthUser(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            roles=sorted(r.value for r in user.roles),
            permissions=sorted(p.value for p in user.permissions),
            last_login=user.last_login,
            email_verified=user.email_verified,
        )

    async def _generate_tokens(self, db: AsyncSession, user: User) -> TokenResponse:
        """Issue an access/refresh pair and persist the refresh token.

        Args:
            db: Async database session
            user: Token owner

        Returns:
            TokenResponse: Token pair plus the user summary
        """
        payload = self._build_jwt_payload(user)
        access_token: str = create_access_token(payload)
        refresh_token: str = create_refresh_token(payload)

        # One live refresh token per user
        await auth_repository.delete_user_refresh_tokens(db, user.id)

        expires_at: datetime = datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
        await auth_repository.create_refresh_token(db, user_id=user.id, token=refresh_token, expires_at=expires_at)

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=access_token_ttl_seconds(),
            user=self.auth_user(user),
        )

    async def _login_failed(
        self, db: AsyncSession, username: str, reason: str, user: User | None, info: RequestInfo | None
    ) -> None:
        await audit_service.log_login(db, username, success=False, reason=reason, user=user, info=info)
        await security_monitoring_service.monitor_failed_login(db, username, user=user, info=info)

    async def login(self, db: AsyncSession, data: LoginRequest, info: RequestInfo | None = None) -> TokenResponse:
        """Authenticate by username or email and issue tokens.

        LOGIN and LOGIN_FAILED audit rows are flushed into ``db``; the
        router commits them on both the success and the failure path.

        Raises:
            UnauthorizedError: Unknown user or wrong password
            ForbiddenError: Account disabled or locked
        """
        user: User | None = await auth_repository.get_user_by_login(db, data.username_or_email)
        if user is None or not verify_password(data.password, user.password_hash):
            await self._login_failed(db, data.username_or_email, "Invalid credentials", user, info)
            raise UnauthorizedError("Invalid username or password")

        if not user.is_active:
            await self._login_failed(db, user.username, "Account is disabled", user, info)
            raise ForbiddenError("Account is disabled")

        if not user.account_non_locked:
            await self._login_failed(db, user.username, "Account is locked", user, info)
            raise ForbiddenError("Account is locked")

        user.last_login = datetime.now(timezone.utc)
        tokens = await self._generate_tokens(db, user)
        await audit_service.log_login(db, user.username, success=True, user=user, info=info)
        logger.info("User {} logged in", user.username)
        return tokens

    async def refresh_tokens(self, db: AsyncSession, refresh_token: str, info: RequestInfo | None = None) -> TokenResponse:
        """Rotate a refresh token into a new token pair.

        Raises:
            UnauthorizedError: Unknown, expired or malformed token, or inactive user
        """
        db_token = await auth_repository.get_refresh_token(db, refresh_token)
        if db_token is None:
            raise UnauthorizedError("Invalid refresh token")

        if ensure_utc(db_token.expires_at) < datetime.now(timezone.utc):
            await auth_repository.delete_refresh_token(db, refresh_token)
            raise UnauthorizedError("Refresh token has expired")

        try:
            payload: dict = decode_token(refresh_token)
        except jwt.InvalidTokenError:
            await auth_repository.delete_refresh_token(db, refresh_token)
            raise UnauthorizedError("Invalid refresh token")

        if payload.get("type") != "refresh" or payload.get("sub") is None:
            raise UnauthorizedError("Invalid refresh token")

        user: User | None = await user_repository.get_by_id(db, UUID(payload["sub"]))
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found or inactive")

        await auth_repository.delete_refresh_token(db, refresh_token)
        tokens = await self._generate_tokens(db, user)
        await audit_service.audit(
            db,
            AuditAction.TOKEN_REFRESH,
            user=user,
            entity_type="User",
            entity_id=user.id,
            description=f"Token refreshed for {user.username}",
            info=info,
            status_code=200,
        )
        return tokens

    async def logout(
        self,
        db: AsyncSession,
        user: User,
        refresh_token: str | None,
        info: RequestInfo | None = None,
    ) -> None:
        """Revoke the given refresh token (if any) and audit the logout."""
        if refresh_token:
            await auth_repository.delete_refresh_token(db, refresh_token)
        await audit_service.log_logout(db, user, info)

    def status(self, user: User) -> AuthStatusResponse:
        return AuthStatusResponse(
            username=user.username,
            roles=sorted(r.authority for r in user.roles),
            permissions=sorted(p.authority for p in user.permissions),
        )


# Singleton instance
auth_service: AuthService = AuthService()
