"""Authorization service — permission and role checks against the static RBAC tables.

Every check is a pure lookup on the user's role set; nothing touches the
database. The ``require_*`` variants raise ForbiddenError for use inside
services, while app.api.deps wraps them as FastAPI dependencies.
"""

from uuid import UUID

from app.models.user import User
from app.utils.exceptions import ForbiddenError
from app.utils.rbac import Permission, Role

P = Permission

# resource type -> action -> permission
_ACTION_PERMISSIONS: dict[str, dict[str, Permission]] = {
    "member": {
        "create": P.MEMBER_CREATE,
        "read": P.MEMBER_READ,
        "update": P.MEMBER_UPDATE,
        "delete": P.MEMBER_DELETE,
        "manage_hierarchy": P.MEMBER_MANAGE_HIERARCHY,
    },
    "player": {
        "create": P.PLAYER_CREATE,
        "read": P.PLAYER_READ,
        "update": P.PLAYER_UPDATE,
        "delete": P.PLAYER_DELETE,
        "manage_statistics": P.PLAYER_MANAGE_STATISTICS,
        "manage_achievements": P.PLAYER_MANAGE_ACHIEVEMENTS,
    },
    "tournament": {
        "create": P.TOURNAMENT_CREATE,
        "read": P.TOURNAMENT_READ,
        "update": P.TOURNAMENT_UPDATE,
        "delete": P.TOURNAMENT_DELETE,
        "manage_registration": P.TOURNAMENT_MANAGE_REGISTRATION,
        "manage_results": P.TOURNAMENT_MANAGE_RESULTS,
    },
    "news": {
        "create": P.NEWS_CREATE,
        "read": P.NEWS_READ,
        "update": P.NEWS_UPDATE,
        "delete": P.NEWS_DELETE,
        "publish": P.NEWS_PUBLISH,
        "moderate": P.NEWS_MODERATE,
    },
    "media": {
        "create": P.MEDIA_CREATE,
        "read": P.MEDIA_READ,
        "update": P.MEDIA_UPDATE,
        "delete": P.MEDIA_DELETE,
        "manage_galleries": P.MEDIA_MANAGE_GALLERIES,
    },
    "district": {
        "create": P.DISTRICT_CREATE,
        "read": P.DISTRICT_READ,
        "update": P.DISTRICT_UPDATE,
        "delete": P.DISTRICT_DELETE,
        "manage_statistics": P.DISTRICT_MANAGE_STATISTICS,
    },
    "user": {
        "create": P.USER_CREATE,
        "read": P.USER_READ,
        "update": P.USER_UPDATE,
        "delete": P.USER_DELETE,
        "manage_roles": P.USER_MANAGE_ROLES,
    },
}


class AuthorizationService:
    """Boolean permission/role checks plus raising ``require_*`` variants."""

    def has_permission(self, user: User | None, permission: Permission) -> bool:
        return user is not None and permission in user.permissions

    def has_any_permission(self, user: User | None, *permissions: Permission) -> bool:
        return user is not None and any(p in user.permissions for p in permissions)

    def has_all_permissions(self, user: User | None, *permissions: Permission) -> bool:
        return user is not None and all(p in user.permissions for p in permissions)

    def has_role(self, user: User | None, role: Role) -> bool:
        return user is not None and role in user.roles

    def has_any_role(self, user: User | None, *roles: Role) -> bool:
        return user is not None and any(r in user.roles for r in roles)

    def is_admin(self, user: User | None) -> bool:
        return self.has_any_role(user, Role.SUPER_ADMIN, Role.ADMIN)

    def can_manage_user(self, user: User | None, target_user_id: UUID) -> bool:
        """SUPER_ADMIN and ADMIN manage anyone; everyone else only themselves."""
        if user is None:
            return False
        if self.has_role(user, Role.SUPER_ADMIN) or self.has_role(user, Role.ADMIN):
            return True
        return user.id == target_user_id

    def can_access_user_resource(self, user: User | None, resource_user_id: UUID) -> bool:
        if user is None:
            return False
        return self.is_admin(user) or user.id == resource_user_id

    def can_perform_action(self, user: User | None, resource_type: str, action: str) -> bool:
        """Map a (resource type, action) pair to its permission and check it.

        Unknown resource types or actions are denied.
        """
        actions = _ACTION_PERMISSIONS.get(resource_type.lower())
        if actions is None:
            return False
        permission = actions.get(action.lower())
        if permission is None:
            return False
        return self.has_permission(user, permission)

    # --- Raising checks -----------------------------------------------------

    def require_permission(self, user: User | None, permission: Permission) -> None:
        if not self.has_permission(user, permission):
            raise ForbiddenError(f"Access denied: Missing required permission {permission.authority}")

    def require_any_permission(self, user: User | None, *permissions: Permission) -> None:
        if not self.has_any_permission(user, *permissions):
            names = ", ".join(p.authority for p in permissions)
            raise ForbiddenError(f"Access denied: Missing any of required permissions {names}")

    def require_all_permissions(self, user: User | None, *permissions: Permission) -> None:
        for permission in permissions:
            self.require_permission(user, permission)

    def require_role(self, user: User | None, role: Role) -> None:
        if not self.has_role(user, role):
            raise ForbiddenError(f"Access denied: Missing required role {role.authority}")

    def require_any_role(self, user: User | None, *roles: Role) -> None:
        if not self.has_any_role(user, *roles):
            names = ", ".join(r.authority for r in roles)
            raise ForbiddenError(f"Access denied: Missing any of required roles {names}")

    def require_admin(self, user: User | None) -> None:
        if not self.is_admin(user):
            raise ForbiddenError("Access denied: Admin role required")


# Singleton instance
authorization_service: AuthorizationService = AuthorizationService()
