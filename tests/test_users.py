"""User management API tests — CRUD, roles, permission probes and stats."""

from httpx import AsyncClient

from tests.conftest import auth_header, create_user, make_token

USERS = "/api/v1/users"

NEW_USER = {
    "username": "newbie",
    "email": "newbie@tbba.test",
    "password": "Secret123",
    "first_name": "New",
}


class TestUserCrud:

    async def test_create_user_defaults_to_user_role(self, client: AsyncClient, admin_headers):
        res = await client.post(USERS, json=NEW_USER, headers=admin_headers)
        assert res.status_code == 201
        data = res.json()
        assert data["username"] == "newbie"
        assert data["roles"] == ["USER"]
        assert "password" not in data and "password_hash" not in data

    async def test_create_duplicate_username(self, client: AsyncClient, admin_headers):
        await client.post(USERS, json=NEW_USER, headers=admin_headers)
        res = await client.post(USERS, json={**NEW_USER, "email": "other@tbba.test"}, headers=admin_headers)
        assert res.status_code == 409
        assert res.json()["error_code"] == "DUPLICATE_RESOURCE"

    async def test_create_duplicate_email(self, client: AsyncClient, admin_headers):
        await client.post(USERS, json=NEW_USER, headers=admin_headers)
        res = await client.post(USERS, json={**NEW_USER, "username": "other"}, headers=admin_headers)
        assert res.status_code == 409

    async def test_create_weak_password(self, client: AsyncClient, admin_headers):
        res = await client.post(USERS, json={**NEW_USER, "password": "short"}, headers=admin_headers)
        assert res.status_code == 422

    async def test_admin_cannot_grant_super_admin(self, client: AsyncClient, admin_headers):
        res = await client.post(USERS, json={**NEW_USER, "roles": ["SUPER_ADMIN"]}, headers=admin_headers)
        assert res.status_code == 403

    async def test_super_admin_can_grant_super_admin(self, client: AsyncClient, super_admin_headers):
        res = await client.post(USERS, json={**NEW_USER, "roles": ["SUPER_ADMIN"]}, headers=super_admin_headers)
        assert res.status_code == 201
        assert res.json()["roles"] == ["SUPER_ADMIN"]

    async def test_create_requires_permission(self, client: AsyncClient, editor_headers):
        res = await client.post(USERS, json=NEW_USER, headers=editor_headers)
        assert res.status_code == 403
        assert res.json()["error_code"] == "ACCESS_DENIED"

    async def test_list_paginated(self, client: AsyncClient, admin_headers, normal_user):
        res = await client.get(USERS, params={"page": 1, "size": 1}, headers=admin_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    async def test_get_own_account_without_user_read(self, client: AsyncClient, normal_user, user_headers):
        res = await client.get(f"{USERS}/{normal_user.id}", headers=user_headers)
        assert res.status_code == 200

    async def test_get_other_account_requires_user_read(self, client: AsyncClient, admin_user, user_headers):
        res = await client.get(f"{USERS}/{admin_user.id}", headers=user_headers)
        assert res.status_code == 403

    async def test_update_own_profile(self, client: AsyncClient, normal_user, user_headers):
        res = await client.put(f"{USERS}/{normal_user.id}", json={"first_name": "Renamed"}, headers=user_headers)
        assert res.status_code == 200
        assert res.json()["first_name"] == "Renamed"

    async def test_only_admin_changes_is_active(self, client: AsyncClient, normal_user, user_headers):
        res = await client.put(f"{USERS}/{normal_user.id}", json={"is_active": False}, headers=user_headers)
        assert res.status_code == 403

    async def test_delete_soft_deactivates(self, client: AsyncClient, admin_headers, normal_user):
        res = await client.delete(f"{USERS}/{normal_user.id}", headers=admin_headers)
        assert res.status_code == 204

        res = await client.get(f"{USERS}/{normal_user.id}", headers=admin_headers)
        assert res.json()["is_active"] is False

    async def test_cannot_delete_self(self, client: AsyncClient, admin_user, admin_headers):
        res = await client.delete(f"{USERS}/{admin_user.id}", headers=admin_headers)
        assert res.status_code == 400


class TestRoles:

    async def test_assign_and_remove_role(self, client: AsyncClient, admin_headers, normal_user):
        res = await client.post(f"{USERS}/{normal_user.id}/roles/EDITOR", headers=admin_headers)
        assert res.status_code == 200
        assert sorted(res.json()["roles"]) == ["EDITOR", "USER"]

        res = await client.delete(f"{USERS}/{normal_user.id}/roles/EDITOR", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["roles"] == ["USER"]

    async def test_unknown_role(self, client: AsyncClient, admin_headers, normal_user):
        res = await client.post(f"{USERS}/{normal_user.id}/roles/WIZARD", headers=admin_headers)
        assert res.status_code == 400

    async def test_assign_super_admin_needs_super_admin(self, client: AsyncClient, admin_headers, normal_user):
        res = await client.post(f"{USERS}/{normal_user.id}/roles/SUPER_ADMIN", headers=admin_headers)
        assert res.status_code == 403

    async def test_permissions_are_derived_from_roles(self, client: AsyncClient, db, admin_headers):
        user = await create_user(db, "moddy")
        res = await client.get(f"{USERS}/{user.id}/permissions", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["roles"] == []
        assert res.json()["permissions"] == []


class TestProbes:

    async def test_me(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{USERS}/me", headers=editor_headers)
        assert res.json()["username"] == "editor"

    async def test_check_permission(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{USERS}/check-permission/NEWS_PUBLISH", headers=editor_headers)
        assert res.json() == {"permission": "NEWS_PUBLISH", "granted": True}

        res = await client.get(f"{USERS}/check-permission/PERMISSION_USER_DELETE", headers=editor_headers)
        assert res.json() == {"permission": "USER_DELETE", "granted": False}

    async def test_check_unknown_permission(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{USERS}/check-permission/FLY", headers=editor_headers)
        assert res.json() == {"permission": "FLY", "granted": False}

    async def test_check_role(self, client: AsyncClient, moderator_headers):
        res = await client.get(f"{USERS}/check-role/moderator", headers=moderator_headers)
        assert res.json() == {"role": "MODERATOR", "granted": True}

    async def test_admin_stats(self, client: AsyncClient, admin_headers, editor_user, normal_user):
        res = await client.get(f"{USERS}/admin/stats", headers=admin_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["total_users"] == 3
        assert data["active_users"] == 3
        assert data["users_by_role"]["ADMIN"] == 1
        assert data["users_by_role"]["EDITOR"] == 1

    async def test_admin_stats_forbidden_for_editor(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{USERS}/admin/stats", headers=editor_headers)
        assert res.status_code == 403

    async def test_token_for_deleted_user_is_rejected(self, client: AsyncClient, db, admin_headers):
        user = await create_user(db, "temp")
        await client.delete(f"{USERS}/{user.id}", headers=admin_headers)
        res = await client.get(f"{USERS}/me", headers=auth_header(make_token(user)))
        assert res.status_code == 401
