"""Role hierarchy and permission tables.

Static role-based access control (RBAC) definitions.
Roles are ordered SUPER_ADMIN > ADMIN > EDITOR > MODERATOR > USER; each role
maps to a fixed permission set and a user's effective permissions are the
union over all of their roles.

Authority strings:
    ROLE_<NAME>         e.g. "ROLE_ADMIN"
    PERMISSION_<NAME>   e.g. "PERMISSION_MEMBER_CREATE"
"""

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    """User role with hierarchy level, display name and description."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    MODERATOR = "MODERATOR"
    USER = "USER"

    @property
    def level(self) -> int:
        return _ROLE_META[self][0]

    @property
    def display_name(self) -> str:
        return _ROLE_META[self][1]

    @property
    def description(self) -> str:
        return _ROLE_META[self][2]

    @property
    def authority(self) -> str:
        return f"ROLE_{self.value}"

    @property
    def permissions(self) -> frozenset["Permission"]:
        return ROLE_PERMISSIONS[self]

    def has_privilege_over(self, other: "Role") -> bool:
        """Return True when this role sits at or above the other role."""
        return self.level >= other.level

    @property
    def is_admin_role(self) -> bool:
        return self in (Role.SUPER_ADMIN, Role.ADMIN)

    @property
    def can_manage_content(self) -> bool:
        return self in (Role.SUPER_ADMIN, Role.ADMIN, Role.EDITOR)

    @property
    def can_moderate(self) -> bool:
        return self in (Role.SUPER_ADMIN, Role.ADMIN, Role.MODERATOR)

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Parse a role name, accepting lower case and a ROLE_ prefix.

        Raises:
            ValueError: Unknown role name
        """
        name = value.strip().upper()
        if name.startswith("ROLE_"):
            name = name[len("ROLE_"):]
        return cls(name)


_ROLE_META: dict[Role, tuple[int, str, str]] = {
    Role.SUPER_ADMIN: (5, "Super Administrator", "Full system access including system administration"),
    Role.ADMIN: (4, "Administrator", "Administrative access to manage users, content, and system settings"),
    Role.EDITOR: (3, "Editor", "Content management access for news, media, and player information"),
    Role.MODERATOR: (2, "Moderator", "Content moderation and basic management access"),
    Role.USER: (1, "User", "Basic read access to public content"),
}


class Permission(str, Enum):
    """Fine-grained capability checked per endpoint."""

    # User management
    USER_CREATE = "USER_CREATE"
    USER_READ = "USER_READ"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_MANAGE_ROLES = "USER_MANAGE_ROLES"

    # Member management
    MEMBER_CREATE = "MEMBER_CREATE"
    MEMBER_READ = "MEMBER_READ"
    MEMBER_UPDATE = "MEMBER_UPDATE"
    MEMBER_DELETE = "MEMBER_DELETE"
    MEMBER_MANAGE_HIERARCHY = "MEMBER_MANAGE_HIERARCHY"

    # Player management
    PLAYER_CREATE = "PLAYER_CREATE"
    PLAYER_READ = "PLAYER_READ"
    PLAYER_UPDATE = "PLAYER_UPDATE"
    PLAYER_DELETE = "PLAYER_DELETE"
    PLAYER_MANAGE_STATISTICS = "PLAYER_MANAGE_STATISTICS"
    PLAYER_MANAGE_ACHIEVEMENTS = "PLAYER_MANAGE_ACHIEVEMENTS"

    # Tournament management
    TOURNAMENT_CREATE = "TOURNAMENT_CREATE"
    TOURNAMENT_READ = "TOURNAMENT_READ"
    TOURNAMENT_UPDATE = "TOURNAMENT_UPDATE"
    TOURNAMENT_DELETE = "TOURNAMENT_DELETE"
    TOURNAMENT_MANAGE_REGISTRATION = "TOURNAMENT_MANAGE_REGISTRATION"
    TOURNAMENT_MANAGE_RESULTS = "TOURNAMENT_MANAGE_RESULTS"

    # News management
    NEWS_CREATE = "NEWS_CREATE"
    NEWS_READ = "NEWS_READ"
    NEWS_UPDATE = "NEWS_UPDATE"
    NEWS_DELETE = "NEWS_DELETE"
    NEWS_PUBLISH = "NEWS_PUBLISH"
    NEWS_MODERATE = "NEWS_MODERATE"

    # Media management
    MEDIA_CREATE = "MEDIA_CREATE"
    MEDIA_READ = "MEDIA_READ"
    MEDIA_UPDATE = "MEDIA_UPDATE"
    MEDIA_DELETE = "MEDIA_DELETE"
    MEDIA_MANAGE_GALLERIES = "MEDIA_MANAGE_GALLERIES"

    # District management
    DISTRICT_CREATE = "DISTRICT_CREATE"
    DISTRICT_READ = "DISTRICT_READ"
    DISTRICT_UPDATE = "DISTRICT_UPDATE"
    DISTRICT_DELETE = "DISTRICT_DELETE"
    DISTRICT_MANAGE_STATISTICS = "DISTRICT_MANAGE_STATISTICS"

    # System administration
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    SYSTEM_BACKUP = "SYSTEM_BACKUP"
    SYSTEM_RESTORE = "SYSTEM_RESTORE"
    SYSTEM_MONITOR = "SYSTEM_MONITOR"
    SYSTEM_AUDIT = "SYSTEM_AUDIT"

    # Content moderation
    CONTENT_MODERATE = "CONTENT_MODERATE"
    CONTENT_APPROVE = "CONTENT_APPROVE"
    CONTENT_REJECT = "CONTENT_REJECT"

    # File management
    FILE_UPLOAD = "FILE_UPLOAD"
    FILE_DOWNLOAD = "FILE_DOWNLOAD"
    FILE_DELETE = "FILE_DELETE"
    FILE_MANAGE = "FILE_MANAGE"

    @property
    def authority(self) -> str:
        return f"PERMISSION_{self.value}"

    @property
    def category(self) -> str:
        return self.value.split("_", 1)[0]

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Parse a permission name, accepting lower case and a PERMISSION_ prefix.

        Raises:
            ValueError: Unknown permission name
        """
        name = value.strip().upper()
        if name.startswith("PERMISSION_"):
            name = name[len("PERMISSION_"):]
        return cls(name)


def permissions_in(*categories: str) -> frozenset[Permission]:
    """Return every permission belonging to the given categories."""
    return frozenset(p for p in Permission if p.category in categories)


P = Permission

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.ADMIN: permissions_in(
        "USER", "MEMBER", "PLAYER", "TOURNAMENT", "NEWS", "MEDIA", "DISTRICT", "CONTENT", "FILE"
    ) | {P.SYSTEM_MONITOR, P.SYSTEM_AUDIT},
    Role.EDITOR: frozenset({
        P.MEMBER_READ, P.MEMBER_UPDATE,
        P.PLAYER_READ, P.PLAYER_UPDATE, P.PLAYER_MANAGE_STATISTICS, P.PLAYER_MANAGE_ACHIEVEMENTS,
        P.TOURNAMENT_READ, P.TOURNAMENT_UPDATE, P.TOURNAMENT_MANAGE_REGISTRATION,
        P.DISTRICT_READ, P.DISTRICT_UPDATE,
        P.FILE_UPLOAD, P.FILE_DOWNLOAD, P.FILE_MANAGE,
    }) | permissions_in("NEWS", "MEDIA"),
    Role.MODERATOR: frozenset({
        P.MEMBER_READ, P.PLAYER_READ, P.TOURNAMENT_READ, P.MEDIA_READ, P.DISTRICT_READ,
        P.NEWS_READ, P.NEWS_MODERATE,
        P.FILE_DOWNLOAD,
    }) | permissions_in("CONTENT"),
    Role.USER: frozenset({
        P.MEMBER_READ, P.PLAYER_READ, P.TOURNAMENT_READ, P.NEWS_READ, P.MEDIA_READ, P.DISTRICT_READ,
        P.FILE_DOWNLOAD,
    }),
}


def permissions_for_roles(roles: Iterable[Role]) -> frozenset[Permission]:
    """Union of the permission sets of the given roles."""
    result: set[Permission] = set()
    for role in roles:
        result |= ROLE_PERMISSIONS[role]
    return frozenset(result)


def authorities_for_roles(roles: Iterable[Role]) -> list[str]:
    """ROLE_ and PERMISSION_ authority strings for the given roles, sorted."""
    role_list = list(roles)
    authorities = {r.authority for r in role_list}
    authorities |= {p.authority for p in permissions_for_roles(role_list)}
    return sorted(authorities)
