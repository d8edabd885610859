"""Public endpoints, security headers and the error envelope."""

from httpx import AsyncClient

from app.config import settings
from app.middleware.axiom_logging import error_message_from, mask_sensitive
from app.middleware.security_headers import cache_control_for


class TestPublicEndpoints:

    async def test_root_health(self, client: AsyncClient):
        res = await client.get("/health")
        assert res.json() == {"status": "ok"}

    async def test_public_health(self, client: AsyncClient):
        res = await client.get("/api/v1/public/health")
        assert res.status_code == 200
        assert res.json()["status"] == "UP"
        assert "timestamp" in res.json()

    async def test_status_and_version(self, client: AsyncClient):
        status = (await client.get("/api/v1/public/status")).json()
        assert status["application"] == settings.APP_NAME
        assert status["status"] == "running"

        version = (await client.get("/api/v1/public/version")).json()
        assert version == {"version": settings.APP_VERSION, "build": settings.APP_BUILD, "api": "v1"}


class TestSecurityHeaders:

    async def test_headers_present(self, client: AsyncClient):
        res = await client.get("/health")
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-XSS-Protection"] == "1; mode=block"
        assert res.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "frame-ancestors 'none'" in res.headers["Content-Security-Policy"]
        assert res.headers["Server"] == "TBBA"
        assert "Strict-Transport-Security" not in res.headers

    async def test_resource_cache_control(self, client: AsyncClient, user_headers):
        res = await client.get("/api/v1/districts", headers=user_headers)
        assert res.headers["Cache-Control"] == "private, max-age=86400"

    async def test_private_cache_control(self, client: AsyncClient, user_headers):
        res = await client.get("/api/v1/auth/status", headers=user_headers)
        assert res.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert res.headers["Pragma"] == "no-cache"
        assert res.headers["Expires"] == "0"

    async def test_public_cache_control(self, client: AsyncClient):
        res = await client.get("/api/v1/public/version")
        assert res.headers["Cache-Control"] == "public, max-age=300"

    def test_cache_control_rules(self):
        assert cache_control_for("POST", "/api/v1/districts") == "no-store"
        assert cache_control_for("GET", "/api/v1/members/1") == "private, max-age=21600"
        assert cache_control_for("GET", "/api/v1/players") == "private, max-age=10800"
        assert cache_control_for("GET", "/api/v1/media/galleries") == "private, max-age=7200"
        assert cache_control_for("GET", "/api/v1/tournaments") == "private, max-age=1800"
        assert cache_control_for("GET", "/api/v1/news/articles") == "private, max-age=900"
        assert cache_control_for("GET", "/api/v1/admin/health") == "no-cache, no-store, must-revalidate"
        assert cache_control_for("GET", "/api/v1/downloads") is None
        assert cache_control_for("GET", "/health") is None


class TestErrorEnvelope:

    async def test_unknown_route(self, client: AsyncClient):
        res = await client.get("/api/v1/does-not-exist")
        assert res.status_code == 404
        body = res.json()
        assert body["status"] == 404
        assert body["error_code"] == "NOT_FOUND"
        assert body["path"] == "/api/v1/does-not-exist"
        assert "timestamp" in body

    async def test_method_not_allowed(self, client: AsyncClient):
        res = await client.delete("/api/v1/public/health")
        assert res.status_code == 405
        assert res.json()["error_code"] == "METHOD_NOT_ALLOWED"

    async def test_validation_errors_keyed_by_field(self, client: AsyncClient, admin_headers):
        res = await client.post("/api/v1/districts", json={"code": "X"}, headers=admin_headers)
        assert res.status_code == 422
        body = res.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["message"] == "Request validation failed"
        assert "name" in body["details"]["validation_errors"]

    async def test_malformed_uuid(self, client: AsyncClient, admin_headers):
        res = await client.get("/api/v1/districts/not-a-uuid", headers=admin_headers)
        assert res.status_code == 422
        assert "district_id" in res.json()["details"]["validation_errors"]


class TestRequestLogHelpers:

    def test_mask_sensitive_nested(self):
        masked = mask_sensitive({"username": "admin", "password": "x", "tokens": [{"refresh_token": "y"}]})
        assert masked == {"username": "admin", "password": "***", "tokens": "***"}
        assert mask_sensitive({"profile": {"api_key": "k", "name": "n"}}) == {"profile": {"api_key": "***", "name": "n"}}

    def test_error_message_from_envelope(self):
        assert error_message_from(b'{"status": 404, "message": "Player not found"}') == "Player not found"
        assert error_message_from(b'{"detail": "Not Found"}') == "Not Found"
        assert error_message_from(b"upstream timeout") == "upstream timeout"
        assert len(error_message_from(("x" * 600).encode())) == 500
        assert len(error_message_from(('{"message": "%s"}' % ("x" * 600)).encode())) == 503
