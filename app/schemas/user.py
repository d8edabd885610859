"""User management Pydantic request/response schema definitions."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, StringConstraints, field_validator

from app.schemas.common import Email, Phone
from app.utils.password import password_problems

Username = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
]
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


class UserCreate(BaseModel):
    """User creation request schema.

    Attributes:
        username: Login name, 3-50 chars of letters, digits, "_", "." or "-"
        email: Email address
        password: Plain text, bcrypt-hashed on the server
        first_name: Given name
        last_name: Family name
        phone: Contact phone
        roles: Initial roles; defaults to USER
    """

    username: Username
    email: Email
    password: str
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    phone: Phone | None = None
    roles: list[str] | None = None

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        problems = password_problems(value)
        if problems:
            raise ValueError("; ".join(problems))
        return value


class UserUpdate(BaseModel):
    """User update request schema (partial update).

    ``is_active`` is only honoured for administrators.
    """

    email: Email | None = None
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    phone: Phone | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    """User response schema."""

    id: UUID
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    full_name: str
    phone: str | None
    is_active: bool
    account_non_locked: bool
    email_verified: bool
    last_login: datetime | None
    roles: list[str]
    created_at: datetime


class UserPermissionsResponse(BaseModel):
    user_id: UUID
    roles: list[str]
    permissions: list[str]


class PermissionCheckResponse(BaseModel):
    permission: str
    granted: bool


class RoleCheckResponse(BaseModel):
    role: str
    granted: bool


class UserStatsResponse(BaseModel):
    total_users: int
    active_users: int
    users_by_role: dict[str, int]
