"""User service — user account CRUD and role assignment.

Access rules that depend on the target (own account vs. someone else's)
are enforced here; plain permission gates live on the routes.
"""

from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole
from app.repositories.user_repository import user_repository
from app.schemas.user import (
    PermissionCheckResponse,
    RoleCheckResponse,
    UserCreate,
    UserPermissionsResponse,
    UserResponse,
    UserStatsResponse,
    UserUpdate,
)
from app.services.authorization_service import authorization_service
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError
from app.utils.pagination import Page
from app.utils.password import hash_password
from app.utils.rbac import Permission, Role


class UserService:
    """Service handling user business logic."""

    def to_response(self, user: User) -> UserResponse:
        """Convert a User model (roles eager-loaded) to a UserResponse."""
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            phone=user.phone,
            is_active=user.is_active,
            account_non_locked=user.account_non_locked,
            email_verified=user.email_verified,
            last_login=user.last_login,
            roles=sorted(r.value for r in user.roles),
            created_at=user.created_at,
        )

    def _parse_role(self, value: str) -> Role:
        try:
            return Role.parse(value)
        except ValueError:
            raise BadRequestError(f"Invalid role: {value}")

    async def _get_or_404(self, db: AsyncSession, user_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _require_self_or(self, current_user: User, target_id: UUID, permission: Permission) -> None:
        if current_user.id != target_id:
            authorization_service.require_permission(current_user, permission)

    async def list_users(
        self, db: AsyncSession, page: int, size: int, is_active: bool | None = None
    ) -> Page[UserResponse]:
        users, total = await user_repository.get_page(db, user_repository.list_query(is_active), page, size)
        return Page[UserResponse].build([self.to_response(u) for u in users], total, page, size)

    async def get_user(self, db: AsyncSession, user_id: UUID, current_user: User) -> UserResponse:
        """Return a user. Reading someone else requires USER_READ."""
        self._require_self_or(current_user, user_id, Permission.USER_READ)
        return self.to_response(await self._get_or_404(db, user_id))

    async def create_user(self, db: AsyncSession, data: UserCreate, current_user: User) -> UserResponse:
        """Create a user account.

        Raises:
            DuplicateError: Username or email already in use
            BadRequestError: Unknown role name
            ForbiddenError: Non-super-admin granting SUPER_ADMIN
        """
        if await user_repository.username_taken(db, data.username):
            raise DuplicateError("Username already exists")
        if await user_repository.email_taken(db, data.email):
            raise DuplicateError("Email already exists")

        roles = {self._parse_role(r) for r in data.roles} if data.roles else {Role.USER}
        if Role.SUPER_ADMIN in roles:
            authorization_service.require_role(current_user, Role.SUPER_ADMIN)

        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role_links=[UserRole(role=r.value) for r in sorted(roles, key=lambda r: r.level, reverse=True)],
        )
        db.add(user)
        await db.flush()
        logger.info("Created user {} with roles {}", user.username, sorted(r.value for r in roles))
        return self.to_response(user)

    async def update_user(
        self, db: AsyncSession, user_id: UUID, data: UserUpdate, current_user: User
    ) -> UserResponse:
        """Update a user. Only administrators may change ``is_active``."""
        self._require_self_or(current_user, user_id, Permission.USER_UPDATE)
        user = await self._get_or_404(db, user_id)

        update_data = data.model_dump(exclude_unset=True)
        if "is_active" in update_data and not authorization_service.is_admin(current_user):
            raise ForbiddenError("Access denied: Admin role required")
        if "email" in update_data and update_data["email"] is not None:
            if await user_repository.email_taken(db, update_data["email"], exclude_id=user.id):
                raise DuplicateError("Email already exists")

        await user_repository.update(db, user, update_data)
        return self.to_response(user)

    async def delete_user(self, db: AsyncSession, user_id: UUID, current_user: User) -> None:
        """Deactivate a user account (soft delete)."""
        if current_user.id == user_id:
            raise BadRequestError("You cannot delete your own account")
        user = await self._get_or_404(db, user_id)
        user.is_active = False
        await db.flush()

    async def _role_change(self, db: AsyncSession, user_id: UUID, role_name: str, current_user: User) -> tuple[User, Role]:
        role = self._parse_role(role_name)
        if role is Role.SUPER_ADMIN:
            authorization_service.require_role(current_user, Role.SUPER_ADMIN)
        return await self._get_or_404(db, user_id), role

    async def assign_role(self, db: AsyncSession, user_id: UUID, role_name: str, current_user: User) -> UserResponse:
        user, role = await self._role_change(db, user_id, role_name, current_user)
        if user.add_role(role):
            await db.flush()
            logger.info("{} granted {} to {}", current_user.username, role.value, user.username)
        return self.to_response(user)

    async def remove_role(self, db: AsyncSession, user_id: UUID, role_name: str, current_user: User) -> UserResponse:
        user, role = await self._role_change(db, user_id, role_name, current_user)
        if user.remove_role(role):
            await db.flush()
            logger.info("{} revoked {} from {}", current_user.username, role.value, user.username)
        return self.to_response(user)

    async def get_permissions(self, db: AsyncSession, user_id: UUID, current_user: User) -> UserPermissionsResponse:
        self._require_self_or(current_user, user_id, Permission.USER_READ)
        user = await self._get_or_404(db, user_id)
        return UserPermissionsResponse(
            user_id=user.id,
            roles=sorted(r.value for r in user.roles),
            permissions=sorted(p.value for p in user.permissions),
        )

    def check_permission(self, user: User, permission_name: str) -> PermissionCheckResponse:
        try:
            permission = Permission.parse(permission_name)
        except ValueError:
            return PermissionCheckResponse(permission=permission_name, granted=False)
        return PermissionCheckResponse(
            permission=permission.value,
            granted=authorization_service.has_permission(user, permission),
        )

    def check_role(self, user: User, role_name: str) -> RoleCheckResponse:
        try:
            role = Role.parse(role_name)
        except ValueError:
            return RoleCheckResponse(role=role_name, granted=False)
        return RoleCheckResponse(role=role.value, granted=authorization_service.has_role(user, role))

    async def get_stats(self, db: AsyncSession) -> UserStatsResponse:
        return UserStatsResponse(
            total_users=await user_repository.count(db),
            active_users=await user_repository.count(db, {"is_active": True}),
            users_by_role=await user_repository.count_by_role(db),
        )


# Singleton instance
user_service: UserService = UserService()
