"""User account and role assignment ORM models.

Roles are a fixed enum (see app.utils.rbac); a user may hold several of
them through the user_roles association table. Permissions are never
stored, they are derived from the role set on every request.

Tables:
    - users: user accounts
    - user_roles: role assignments (user_id, role)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime
from app.utils.rbac import Permission, Role, permissions_for_roles


class User(Base):
    """User model — an account that can authenticate against the API.

    Attributes:
        id: Unique identifier
        username: Login name, globally unique (3-50 chars)
        email: Email address, globally unique
        password_hash: bcrypt hash, plaintext is never stored
        first_name: Given name
        last_name: Family name
        phone: Contact phone number
        is_active: Disabled accounts cannot log in
        account_non_locked: Locked accounts cannot log in
        email_verified: Whether the email has been verified
        last_login: Timestamp of the last successful login

    Relationships:
        role_links: Role assignments (always eager-loaded)
        refresh_tokens: Issued refresh tokens
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # bcrypt hash — never store plaintext
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    account_non_locked: Mapped[bool] = mapped_column(Boolean, default=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    last_login: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    role_links = relationship("UserRole", back_populates="user", cascade="all, delete-orphan", lazy="selectin")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def roles(self) -> set[Role]:
        return {Role(link.role) for link in self.role_links}

    @property
    def permissions(self) -> frozenset[Permission]:
        return permissions_for_roles(self.roles)

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.username

    def add_role(self, role: Role) -> bool:
        """Assign a role. Returns False when the user already holds it."""
        if role in self.roles:
            return False
        self.role_links.append(UserRole(role=role.value))
        return True

    def remove_role(self, role: Role) -> bool:
        """Revoke a role. Returns False when the user did not hold it."""
        for link in list(self.role_links):
            if link.role == role.value:
                self.role_links.remove(link)
                return True
        return False


class UserRole(Base):
    """Role assignment — many-to-many between users and the Role enum.

    Attributes:
        id: Unique identifier
        user_id: Owning user
        role: Role name (SUPER_ADMIN, ADMIN, EDITOR, MODERATOR, USER)
    """

    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )

    user = relationship("User", back_populates="role_links")
