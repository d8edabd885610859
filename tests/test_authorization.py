"""RBAC tests — role/permission tables and endpoint access per role."""

import pytest
from httpx import AsyncClient

from app.models.user import User
from app.services.authorization_service import authorization_service
from app.utils.exceptions import ForbiddenError
from app.utils.rbac import Permission, Role, authorities_for_roles, permissions_for_roles


class TestRolePermissionTable:

    def test_permission_count(self):
        assert len(Permission) == 50

    def test_super_admin_holds_everything(self):
        assert Role.SUPER_ADMIN.permissions == frozenset(Permission)

    def test_admin_lacks_system_backup(self):
        perms = Role.ADMIN.permissions
        assert Permission.SYSTEM_AUDIT in perms
        assert Permission.SYSTEM_BACKUP not in perms
        assert Permission.USER_MANAGE_ROLES in perms

    def test_editor_cannot_create_core_records(self):
        perms = Role.EDITOR.permissions
        assert Permission.NEWS_PUBLISH in perms
        assert Permission.PLAYER_UPDATE in perms
        assert Permission.PLAYER_CREATE not in perms
        assert Permission.DISTRICT_CREATE not in perms

    def test_user_is_read_only(self):
        assert all(p.value.endswith("_READ") or p is Permission.FILE_DOWNLOAD for p in Role.USER.permissions)

    def test_union_over_roles(self):
        perms = permissions_for_roles([Role.USER, Role.MODERATOR])
        assert Permission.NEWS_MODERATE in perms
        assert Permission.MEMBER_READ in perms

    def test_authorities(self):
        authorities = authorities_for_roles([Role.USER])
        assert "ROLE_USER" in authorities
        assert "PERMISSION_MEMBER_READ" in authorities
        assert authorities == sorted(authorities)

    def test_hierarchy(self):
        assert Role.SUPER_ADMIN.has_privilege_over(Role.ADMIN)
        assert not Role.EDITOR.has_privilege_over(Role.ADMIN)
        assert Role.MODERATOR.level < Role.EDITOR.level

    def test_role_predicates(self):
        assert Role.ADMIN.is_admin_role and not Role.EDITOR.is_admin_role
        assert Role.EDITOR.can_manage_content and not Role.MODERATOR.can_manage_content
        assert Role.MODERATOR.can_moderate and not Role.EDITOR.can_moderate
        assert Role.SUPER_ADMIN.display_name == "Super Administrator"

    @pytest.mark.parametrize("raw", ["admin", "ROLE_ADMIN", " Admin "])
    def test_role_parse(self, raw):
        assert Role.parse(raw) is Role.ADMIN

    def test_permission_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            Permission.parse("TELEPORT")


class TestEndpointAccess:

    async def test_anonymous_is_rejected(self, client: AsyncClient):
        res = await client.get("/api/v1/members")
        assert res.status_code == 401
        assert res.json()["error_code"] == "UNAUTHORIZED"

    async def test_user_reads_members(self, client: AsyncClient, user_headers):
        res = await client.get("/api/v1/members", headers=user_headers)
        assert res.status_code == 200

    async def test_user_cannot_create_member(self, client: AsyncClient, user_headers):
        res = await client.post("/api/v1/members", json={"name": "A", "position": "B"}, headers=user_headers)
        assert res.status_code == 403
        assert "PERMISSION_MEMBER_CREATE" in res.json()["message"]

    async def test_moderator_cannot_create_player(self, client: AsyncClient, moderator_headers):
        res = await client.post("/api/v1/players", json={"name": "P"}, headers=moderator_headers)
        assert res.status_code == 403

    async def test_editor_cannot_delete_district(self, client: AsyncClient, editor_headers, district):
        res = await client.delete(f"/api/v1/districts/{district.id}", headers=editor_headers)
        assert res.status_code == 403

    async def test_editor_can_update_district(self, client: AsyncClient, editor_headers, district):
        res = await client.put(
            f"/api/v1/districts/{district.id}", json={"headquarters": "Secunderabad"}, headers=editor_headers
        )
        assert res.status_code == 200
        assert res.json()["headquarters"] == "Secunderabad"

    async def test_admin_area_requires_admin_role(self, client: AsyncClient, editor_headers):
        res = await client.get("/api/v1/admin/cache/stats", headers=editor_headers)
        assert res.status_code == 403
        assert res.json()["message"] == "Access denied: Admin role required"

    async def test_audit_logs_require_system_audit(self, client: AsyncClient, editor_headers, admin_headers):
        assert (await client.get("/api/v1/admin/audit/logs", headers=editor_headers)).status_code == 403
        assert (await client.get("/api/v1/admin/audit/logs", headers=admin_headers)).status_code == 200


class TestAuthorizationService:

    def test_has_all_permissions(self, editor_user: User):
        assert authorization_service.has_all_permissions(editor_user, Permission.NEWS_CREATE, Permission.NEWS_PUBLISH)
        assert not authorization_service.has_all_permissions(editor_user, Permission.NEWS_CREATE, Permission.DISTRICT_DELETE)
        assert not authorization_service.has_all_permissions(None, Permission.NEWS_READ)

    def test_can_manage_user(self, admin_user: User, normal_user: User):
        assert authorization_service.can_manage_user(admin_user, normal_user.id)
        assert authorization_service.can_manage_user(normal_user, normal_user.id)
        assert not authorization_service.can_manage_user(normal_user, admin_user.id)

    def test_can_access_user_resource(self, super_admin: User, editor_user: User, normal_user: User):
        assert authorization_service.can_access_user_resource(super_admin, normal_user.id)
        assert authorization_service.can_access_user_resource(editor_user, editor_user.id)
        assert not authorization_service.can_access_user_resource(editor_user, normal_user.id)
        assert not authorization_service.can_access_user_resource(None, normal_user.id)

    def test_can_perform_action(self, editor_user: User, moderator_user: User):
        assert authorization_service.can_perform_action(editor_user, "News", "publish")
        assert authorization_service.can_perform_action(moderator_user, "news", "moderate")
        assert not authorization_service.can_perform_action(moderator_user, "player", "manage_statistics")
        assert not authorization_service.can_perform_action(editor_user, "spaceship", "read")
        assert not authorization_service.can_perform_action(editor_user, "news", "teleport")

    def test_require_all_permissions(self, moderator_user: User):
        with pytest.raises(ForbiddenError):
            authorization_service.require_all_permissions(moderator_user, Permission.NEWS_READ, Permission.NEWS_CREATE)
