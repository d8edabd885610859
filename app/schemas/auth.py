"""Authentication-related Pydantic request/response schema definitions.

Covers login, token refresh/logout and the authentication status probe.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request schema.

    Attributes:
        username_or_email: Username or email address
        password: Plain text password, verified against the bcrypt hash
    """

    username_or_email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class AuthUser(BaseModel):
    """User summary embedded in the login response."""

    id: UUID
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    roles: list[str]
    permissions: list[str]
    last_login: datetime | None
    email_verified: bool


class TokenResponse(BaseModel):
    """JWT token issuance response schema.

    Returned after successful login or token refresh.

    Attributes:
        access_token: Short-lived access token
        refresh_token: Long-lived refresh token, rotated on every use
        token_type: Always "Bearer"
        expires_in: Access token lifetime in seconds
        user: Authenticated user summary
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: AuthUser


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(BaseModel):
    """Logout request — the refresh token to revoke, if the client has one."""

    refresh_token: str | None = None


class AuthStatusResponse(BaseModel):
    authenticated: bool = True
    username: str
    roles: list[str]
    permissions: list[str]
