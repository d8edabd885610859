"""Auth API tests — login, token refresh, logout, status and /me."""

from httpx import AsyncClient
from sqlalchemy import select

from app.config import settings
from app.models.audit_log import AuditLog
from tests.conftest import PASSWORD, auth_header, create_user, make_token

AUTH = "/api/v1/auth"


async def _login(client: AsyncClient, login: str, password: str = PASSWORD):
    return await client.post(f"{AUTH}/login", json={"username_or_email": login, "password": password})


# ===== Login =====

class TestLogin:

    async def test_login_success(self, client: AsyncClient, admin_user):
        res = await _login(client, "admin")
        assert res.status_code == 200
        data = res.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "Bearer"
        assert data["expires_in"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60
        assert data["user"]["username"] == "admin"
        assert data["user"]["roles"] == ["ADMIN"]
        assert "USER_CREATE" in data["user"]["permissions"]
        assert data["user"]["last_login"] is not None

    async def test_login_with_email(self, client: AsyncClient, admin_user):
        res = await _login(client, "admin@tbba.test")
        assert res.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, admin_user):
        res = await _login(client, "admin", "wrong-password1")
        assert res.status_code == 401
        body = res.json()
        assert body["status"] == 401
        assert body["error_code"] == "UNAUTHORIZED"
        assert body["path"] == f"{AUTH}/login"

    async def test_login_unknown_user(self, client: AsyncClient):
        res = await _login(client, "nobody")
        assert res.status_code == 401

    async def test_login_inactive_user(self, client: AsyncClient, db):
        await create_user(db, "sleeper", is_active=False)
        res = await _login(client, "sleeper")
        assert res.status_code == 403
        assert res.json()["message"] == "Account is disabled"

    async def test_login_locked_user(self, client: AsyncClient, db, admin_user):
        admin_user.account_non_locked = False
        await db.flush()
        res = await _login(client, "admin")
        assert res.status_code == 403
        assert res.json()["message"] == "Account is locked"

    async def test_login_writes_audit_rows(self, client: AsyncClient, db, admin_user):
        await _login(client, "admin", "bad-password1")
        await _login(client, "admin")

        rows = (await db.execute(select(AuditLog))).scalars().all()
        by_action = {r.action: r for r in rows}
        assert sorted(by_action) == ["LOGIN", "LOGIN_FAILED"]
        assert by_action["LOGIN_FAILED"].status == "FAILURE"
        assert by_action["LOGIN"].user_id == admin_user.id

    async def test_login_rate_limited(self, client: AsyncClient, admin_user):
        for _ in range(settings.LOGIN_RATE_LIMIT):
            await _login(client, "admin", "bad-password1")
        res = await _login(client, "admin")
        assert res.status_code == 429
        assert res.json()["error_code"] == "RATE_LIMITED"
        assert int(res.headers["Retry-After"]) >= 1

    async def test_login_blank_fields_rejected(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/login", json={"username_or_email": "", "password": ""})
        assert res.status_code == 422
        body = res.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "username_or_email" in body["details"]["validation_errors"]


# ===== Token refresh =====

class TestRefresh:

    async def test_refresh_rotates_tokens(self, client: AsyncClient, admin_user):
        login = (await _login(client, "admin")).json()

        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": login["refresh_token"]})
        assert res.status_code == 200
        data = res.json()
        assert data["refresh_token"] != login["refresh_token"]

        # The old refresh token is gone after rotation
        again = await client.post(f"{AUTH}/refresh", json={"refresh_token": login["refresh_token"]})
        assert again.status_code == 401

    async def test_refresh_invalid_token(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": "invalid.token.here"})
        assert res.status_code == 401

    async def test_access_token_cannot_refresh(self, client: AsyncClient, admin_user):
        login = (await _login(client, "admin")).json()
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": login["access_token"]})
        assert res.status_code == 401

    async def test_refresh_token_cannot_authenticate(self, client: AsyncClient, admin_user):
        login = (await _login(client, "admin")).json()
        res = await client.get(f"{AUTH}/me", headers=auth_header(login["refresh_token"]))
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid token type"


# ===== Logout / status / me =====

class TestSession:

    async def test_logout_revokes_refresh_token(self, client: AsyncClient, admin_user):
        login = (await _login(client, "admin")).json()
        headers = auth_header(login["access_token"])

        res = await client.post(f"{AUTH}/logout", json={"refresh_token": login["refresh_token"]}, headers=headers)
        assert res.status_code == 200
        assert res.json() == {"message": "Logout successful"}

        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": login["refresh_token"]})
        assert res.status_code == 401

    async def test_logout_requires_authentication(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/logout")
        assert res.status_code == 401
        assert res.json()["message"] == "Authentication required"

    async def test_status(self, client: AsyncClient, editor_user, editor_headers):
        res = await client.get(f"{AUTH}/status", headers=editor_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["authenticated"] is True
        assert data["username"] == "editor"
        assert data["roles"] == ["ROLE_EDITOR"]
        assert "PERMISSION_NEWS_PUBLISH" in data["permissions"]

    async def test_me(self, client: AsyncClient, normal_user, user_headers):
        res = await client.get(f"{AUTH}/me", headers=user_headers)
        assert res.status_code == 200
        assert res.json()["username"] == "member"
        assert res.json()["roles"] == ["USER"]

    async def test_me_with_garbage_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid or expired token"

    async def test_me_inactive_user(self, client: AsyncClient, db):
        user = await create_user(db, "gone", is_active=False)
        res = await client.get(f"{AUTH}/me", headers=auth_header(make_token(user)))
        assert res.status_code == 401
        assert res.json()["message"] == "User not found or inactive"
