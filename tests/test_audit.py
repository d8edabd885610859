"""Audit trail tests — the audited route class and the audit log API."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.audit import action_for_method, entity_type_for_path
from app.models.audit_log import AuditAction, AuditLog
from app.services.audit_service import audit_service
from app.services.district_service import district_service
from app.services.security_monitoring_service import security_monitoring_service
from tests.conftest import PASSWORD

AUDIT = "/api/v1/admin/audit"


async def _rows(db: AsyncSession, **filters) -> list[AuditLog]:
    query = select(AuditLog)
    for column, value in filters.items():
        query = query.where(getattr(AuditLog, column) == value)
    return list((await db.execute(query)).scalars().all())


class TestRouteHelpers:

    def test_entity_type_for_path(self):
        assert entity_type_for_path("/api/v1/districts/abc") == "District"
        assert entity_type_for_path("/api/v1/news/articles") == "News"
        assert entity_type_for_path("/api/v1/widgets") == "Widget"
        assert entity_type_for_path("/api/v1/") == "Unknown"

    def test_action_for_method(self):
        assert action_for_method("post") is AuditAction.CREATE
        assert action_for_method("PATCH") is AuditAction.UPDATE
        assert action_for_method("OPTIONS") is AuditAction.READ


class TestAuditedRoutes:

    async def test_create_writes_row_with_entity_id(self, client: AsyncClient, admin_headers, admin_user, db):
        res = await client.post("/api/v1/districts", json={"name": "Nalgonda", "code": "NLG"}, headers=admin_headers)
        district_id = res.json()["id"]

        [row] = await _rows(db, action="CREATE")
        assert row.entity_type == "District"
        assert row.entity_id == district_id
        assert row.user_id == admin_user.id
        assert row.username == "admin"
        assert row.status == "SUCCESS"
        assert row.status_code == 201
        assert row.request_method == "POST"
        assert row.execution_time_ms is not None

    async def test_read_is_audited(self, client: AsyncClient, user_headers, db):
        await client.get("/api/v1/districts", headers=user_headers)
        [row] = await _rows(db, action="READ")
        assert row.entity_type == "District"
        assert row.status_code == 200

    async def test_forbidden_recorded_as_access_denied(self, client: AsyncClient, user_headers, db):
        res = await client.post("/api/v1/districts", json={"name": "X", "code": "X"}, headers=user_headers)
        assert res.status_code == 403

        [row] = await _rows(db, action="ACCESS_DENIED")
        assert row.status == "FAILURE"
        assert row.severity == "WARNING"
        assert row.status_code == 403
        assert row.error_message == "Access denied: Missing required permission PERMISSION_DISTRICT_CREATE"

    async def test_missing_token_recorded_as_access_denied(self, client: AsyncClient, db):
        res = await client.get("/api/v1/players")
        assert res.status_code == 401
        [row] = await _rows(db, action="ACCESS_DENIED")
        assert row.user_id is None
        assert row.status_code == 401

    async def test_not_found_recorded_as_failed_read(self, client: AsyncClient, admin_headers, db):
        await client.get("/api/v1/members/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        [row] = await _rows(db, action="READ")
        assert row.status == "FAILURE"
        assert row.status_code == 404
        assert row.error_message == "Member not found"

    async def test_unhandled_error_recorded_with_stack_trace(self, client: AsyncClient, admin_headers, db, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        with patch.object(district_service, "list_active", AsyncMock(side_effect=RuntimeError("Disk full"))):
            res = await client.get("/api/v1/districts", headers=admin_headers)

        assert res.status_code == 500
        body = res.json()
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["message"] == "An unexpected error occurred"
        assert body["details"] == {"exception": "RuntimeError: Disk full"}

        [row] = await _rows(db, action="READ")
        assert row.severity == "ERROR"
        assert row.status == "FAILURE"
        assert row.status_code == 500
        assert row.error_message == "Disk full"
        assert "RuntimeError: Disk full" in row.stack_trace

    async def test_production_hides_exception_detail(self, client: AsyncClient, admin_headers, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        with patch.object(district_service, "list_active", AsyncMock(side_effect=RuntimeError("Disk full"))):
            res = await client.get("/api/v1/districts", headers=admin_headers)

        assert res.status_code == 500
        assert res.json()["details"] is None

    async def test_validation_error_recorded(self, client: AsyncClient, admin_headers, db):
        await client.post("/api/v1/members", json={"position": "No name"}, headers=admin_headers)
        [row] = await _rows(db, action="CREATE")
        assert row.status == "FAILURE"
        assert row.status_code == 422

    async def test_public_routes_not_audited(self, client: AsyncClient, db):
        await client.get("/api/v1/public/health")
        assert await _rows(db) == []

    async def test_disabled(self, client: AsyncClient, admin_headers, db, monkeypatch):
        monkeypatch.setattr(settings, "AUDIT_ENABLED", False)
        await client.get("/api/v1/districts", headers=admin_headers)
        assert await _rows(db) == []


class TestAuditApi:

    async def test_requires_system_audit(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{AUDIT}/logs", headers=editor_headers)
        assert res.status_code == 403

    async def test_logs_by_user_and_entity(self, client: AsyncClient, admin_headers, admin_user):
        created = (
            await client.post("/api/v1/districts", json={"name": "Nalgonda", "code": "NLG"}, headers=admin_headers)
        ).json()

        page = (await client.get(f"{AUDIT}/logs", headers=admin_headers)).json()
        assert page["total"] == 1
        assert page["items"][0]["action"] == "CREATE"

        by_user = (await client.get(f"{AUDIT}/logs/user/{admin_user.id}", headers=admin_headers)).json()
        # The previous listing call was audited too
        assert by_user["total"] == 2

        by_entity = (
            await client.get(f"{AUDIT}/logs/entity/District/{created['id']}", headers=admin_headers)
        ).json()
        assert [r["action"] for r in by_entity["items"]] == ["CREATE"]

    async def test_security_and_failures(self, client: AsyncClient, admin_headers, user_headers, db):
        await client.delete("/api/v1/players/00000000-0000-0000-0000-000000000000", headers=user_headers)
        await audit_service.log_failure(db, AuditAction.DELETE, RuntimeError("disk full"), entity_type="Player")
        await db.commit()

        security = (await client.get(f"{AUDIT}/logs/security", headers=admin_headers)).json()
        assert [r["action"] for r in security["items"]] == ["ACCESS_DENIED"]

        failures = (await client.get(f"{AUDIT}/logs/failures", headers=admin_headers)).json()
        assert failures["total"] == 1
        assert failures["items"][0]["error_message"] == "disk full"

    async def test_statistics(self, client: AsyncClient, admin_headers):
        await client.get("/api/v1/districts", headers=admin_headers)
        await client.get("/api/v1/districts", headers=admin_headers)

        stats = (await client.get(f"{AUDIT}/logs/statistics", params={"days": 1}, headers=admin_headers)).json()
        assert stats["total"] == 2
        assert stats["by_action"] == {"READ": 2}
        assert stats["by_severity"] == {"INFO": 2}

    async def test_cleanup(self, client: AsyncClient, admin_headers, db):
        old = await audit_service.audit(db, AuditAction.READ, description="old")
        old.timestamp = datetime.now(timezone.utc) - timedelta(days=120)
        await audit_service.audit(db, AuditAction.READ, description="recent")
        await db.commit()

        res = await client.post(f"{AUDIT}/cleanup/audit-logs", params={"retention_days": 90}, headers=admin_headers)
        assert res.json() == {"deleted_count": 1, "retention_days": 90}
        remaining = [r.description for r in await _rows(db, action="READ")]
        assert remaining == ["recent"]


class TestSecurityHelpers:

    async def test_access_denied_and_suspicious_rows(self, db: AsyncSession, normal_user):
        denied = await audit_service.log_access_denied(db, normal_user, "Player", "missing PLAYER_DELETE")
        suspicious = await audit_service.log_suspicious_activity(db, normal_user, "Token replay", {"ip": "10.0.0.9"})

        assert denied.action == AuditAction.ACCESS_DENIED.value
        assert denied.error_message == "missing PLAYER_DELETE"
        assert denied.username == normal_user.username
        assert suspicious.severity == "CRITICAL"
        assert suspicious.extra_metadata == {"ip": "10.0.0.9"}

    async def test_detect_suspicious_activity(self, db: AsyncSession, normal_user):
        for _ in range(5):
            await audit_service.log_access_denied(db, normal_user, "Player", "denied")
        assert not await audit_service.detect_suspicious_activity(db, normal_user.id)

        await audit_service.log_access_denied(db, normal_user, "Player", "denied")
        assert await audit_service.detect_suspicious_activity(db, normal_user.id)


class TestSecurityMonitoring:

    async def _failed_login(self, client: AsyncClient, ip: str):
        return await client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "admin", "password": "bad-password1"},
            headers={"X-Forwarded-For": ip},
        )

    async def test_failed_logins_block_client_ip(self, client: AsyncClient, admin_user, db):
        for _ in range(settings.FAILED_LOGIN_BLOCK_THRESHOLD):
            assert (await self._failed_login(client, "203.0.113.7")).status_code == 401
        assert security_monitoring_service.blocked_ips() == ["203.0.113.7"]

        res = await client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "admin", "password": PASSWORD},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )
        assert res.status_code == 403
        assert res.json()["message"] == "Access from this IP address is blocked"

        blocked = await _rows(db, action="SUSPICIOUS_ACTIVITY")
        assert [r.description for r in blocked] == ["IP address blocked: 203.0.113.7"]
        assert blocked[0].extra_metadata["ip_address"] == "203.0.113.7"
        denied = await _rows(db, action="ACCESS_DENIED")
        assert denied[0].error_message == "IP address is blocked"

        # Other clients can still log in
        other = await client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "admin", "password": PASSWORD},
            headers={"X-Forwarded-For": "203.0.113.8"},
        )
        assert other.status_code == 200

    async def test_block_unblock_and_clear(self, client: AsyncClient, admin_headers):
        res = await client.post(
            f"{AUDIT}/security/block-ip",
            params={"ip_address": "198.51.100.1", "reason": "Scanner"},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert (await client.get(f"{AUDIT}/security/blocked-ips", headers=admin_headers)).json() == ["198.51.100.1"]

        res = await client.post(f"{AUDIT}/security/unblock-ip", params={"ip_address": "198.51.100.1"}, headers=admin_headers)
        assert res.status_code == 200
        res = await client.post(f"{AUDIT}/security/unblock-ip", params={"ip_address": "198.51.100.1"}, headers=admin_headers)
        assert res.status_code == 404

        for ip in ("198.51.100.2", "198.51.100.3"):
            await client.post(f"{AUDIT}/security/block-ip", params={"ip_address": ip}, headers=admin_headers)
        res = await client.post(f"{AUDIT}/security/clear-blocked-ips", headers=admin_headers)
        assert res.json()["message"] == "Cleared 2 blocked IP address(es)"
        assert (await client.get(f"{AUDIT}/security/blocked-ips", headers=admin_headers)).json() == []

    async def test_metrics(self, client: AsyncClient, admin_headers, admin_user):
        await self._failed_login(client, "203.0.113.9")
        await self._failed_login(client, "203.0.113.9")
        await client.post(f"{AUDIT}/security/block-ip", params={"ip_address": "198.51.100.4"}, headers=admin_headers)

        res = await client.get(f"{AUDIT}/security/metrics", headers=admin_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["failed_logins_last_24_hours"] == 2
        assert data["top_failed_ips"] == {"203.0.113.9": 2}
        assert data["blocked_ips"] == ["198.51.100.4"]
        assert data["blocked_ips_count"] == 1
        assert data["suspicious_activities_last_24_hours"] == 1
        assert data["critical_events_last_24_hours"] >= 1

    async def test_requires_system_audit(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{AUDIT}/security/metrics", headers=editor_headers)
        assert res.status_code == 403

    async def test_repeated_user_failures_flagged(self, db: AsyncSession, normal_user):
        for _ in range(6):
            await audit_service.log_access_denied(db, normal_user, "Player", "denied")

        await security_monitoring_service.monitor_failed_login(db, normal_user.username, user=normal_user)

        flagged = await _rows(db, action="SUSPICIOUS_ACTIVITY")
        assert [r.description for r in flagged] == [f"Anomalous behavior detected for user: {normal_user.username}"]
        assert security_monitoring_service.blocked_ips() == []
