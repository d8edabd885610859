"""Admin API tests — bulk operations, scheduled publication, health and cache."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.models.news import NewsArticle
from app.repositories.member_repository import member_repository
from tests.conftest import future

ADMIN = "/api/v1/admin"
MISSING_ID = "00000000-0000-0000-0000-000000000000"


async def _article(client: AsyncClient, headers: dict, title: str, published: bool = False) -> dict:
    res = await client.post(
        "/api/v1/news/articles", json={"title": title, "content": "Body", "is_published": published}, headers=headers
    )
    return res.json()


def _in(hours: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


class TestAccess:

    async def test_requires_admin_role(self, client: AsyncClient, editor_headers):
        res = await client.get(f"{ADMIN}/health/quick", headers=editor_headers)
        assert res.status_code == 403
        assert res.json()["message"] == "Access denied: Admin role required"

    async def test_super_admin_allowed(self, client: AsyncClient, super_admin_headers):
        res = await client.get(f"{ADMIN}/health/quick", headers=super_admin_headers)
        assert res.status_code == 200
        assert res.json()["status"] == "UP"


class TestBulkOperations:

    async def test_bulk_delete_with_missing_entity(self, client: AsyncClient, admin_headers, db: AsyncSession):
        member = (
            await client.post("/api/v1/members", json={"name": "M", "position": "Treasurer"}, headers=admin_headers)
        ).json()

        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "DELETE", "entity_type": "MEMBER", "entity_ids": [member["id"], MISSING_ID]},
            headers=admin_headers,
        )
        assert res.status_code == 200
        body = res.json()
        assert body["total_count"] == 2
        assert body["success_count"] == 1
        assert body["failure_count"] == 1
        assert body["results"][1] == {
            "entity_id": MISSING_ID,
            "success": False,
            "message": "Entity not found",
            "error_details": None,
        }
        assert (await client.get(f"/api/v1/members/{member['id']}", headers=admin_headers)).status_code == 404

        rows = (await db.execute(select(AuditLog).where(AuditLog.action == "BULK_DELETE"))).scalars().all()
        assert len(rows) == 1
        assert rows[0].status == "PARTIAL_SUCCESS"

    async def test_bulk_delete_player_refreshes_cached_tournament(self, client: AsyncClient, admin_headers):
        tournament = (
            await client.post(
                "/api/v1/tournaments",
                json={"name": "Open", "start_date": future(30), "end_date": future(31), "status": "REGISTRATION_OPEN"},
                headers=admin_headers,
            )
        ).json()
        player = (await client.post("/api/v1/players", json={"name": "Ravi"}, headers=admin_headers)).json()
        await client.post(
            f"/api/v1/tournaments/{tournament['id']}/registrations", json={"player_id": player["id"]}, headers=admin_headers
        )
        cached = (await client.get(f"/api/v1/tournaments/{tournament['id']}", headers=admin_headers)).json()
        assert cached["current_registration_count"] == 1

        await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "DELETE", "entity_type": "PLAYER", "entity_ids": [player["id"]]},
            headers=admin_headers,
        )
        fresh = (await client.get(f"/api/v1/tournaments/{tournament['id']}", headers=admin_headers)).json()
        assert fresh["current_registration_count"] == 0

    async def test_bulk_delete_district_refreshes_cached_player(
        self, client: AsyncClient, admin_headers, district, db: AsyncSession
    ):
        player = (
            await client.post(
                "/api/v1/players", json={"name": "Ravi", "district_id": str(district.id)}, headers=admin_headers
            )
        ).json()
        cached = (await client.get(f"/api/v1/players/{player['id']}", headers=admin_headers)).json()
        assert cached["district_id"] == str(district.id)

        await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "DELETE", "entity_type": "DISTRICT", "entity_ids": [str(district.id)]},
            headers=admin_headers,
        )
        db.expire_all()
        reloaded = (await client.get(f"/api/v1/players/{player['id']}", headers=admin_headers)).json()
        assert reloaded["district_id"] is None

    async def test_unexpected_error_rolls_back_whole_batch(self, client: AsyncClient, admin_headers, db: AsyncSession):
        ids = []
        for name in ("First", "Second"):
            member = (
                await client.post("/api/v1/members", json={"name": name, "position": "Member"}, headers=admin_headers)
            ).json()
            ids.append(member["id"])

        real_delete = member_repository.delete
        deleted = []

        async def delete(session, entity):
            if deleted:
                raise RuntimeError("Connection lost")
            deleted.append(entity.id)
            await real_delete(session, entity)

        with patch.object(member_repository, "delete", delete):
            res = await client.post(
                f"{ADMIN}/bulk-operations",
                json={"operation": "DELETE", "entity_type": "MEMBER", "entity_ids": ids},
                headers=admin_headers,
            )
        assert res.status_code == 500
        assert res.json()["message"] == "An unexpected error occurred"
        assert len(deleted) == 1

        for member_id in ids:
            assert (await client.get(f"/api/v1/members/{member_id}", headers=admin_headers)).status_code == 200
        rows = (await db.execute(select(AuditLog).where(AuditLog.action == "BULK_DELETE"))).scalars().all()
        assert rows == []

    async def test_bulk_publish_news(self, client: AsyncClient, admin_headers):
        first = await _article(client, admin_headers, "First")
        second = await _article(client, admin_headers, "Second")

        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "PUBLISH", "entity_type": "NEWS_ARTICLE", "entity_ids": [first["id"], second["id"]]},
            headers=admin_headers,
        )
        assert res.json()["success_count"] == 2

        page = (await client.get("/api/v1/news/articles", headers=admin_headers)).json()
        assert page["total"] == 2

    async def test_bulk_update_news_fields(self, client: AsyncClient, admin_headers):
        article = await _article(client, admin_headers, "Draft title")

        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={
                "operation": "UPDATE",
                "entity_type": "NEWS_ARTICLE",
                "entity_ids": [article["id"]],
                "update_fields": {"title": "New title", "view_count": 999},
            },
            headers=admin_headers,
        )
        assert res.json()["success_count"] == 1

        updated = (await client.get(f"/api/v1/news/articles/{article['id']}", headers=admin_headers)).json()
        assert updated["title"] == "New title"
        assert updated["view_count"] == 0

    async def test_bulk_update_without_fields(self, client: AsyncClient, admin_headers):
        article = await _article(client, admin_headers, "Draft")
        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "UPDATE", "entity_type": "NEWS_ARTICLE", "entity_ids": [article["id"]]},
            headers=admin_headers,
        )
        [result] = res.json()["results"]
        assert result["success"] is False
        assert result["message"] == "No updatable fields provided"

    async def test_publish_non_news_fails_per_entity(self, client: AsyncClient, admin_headers, district):
        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "PUBLISH", "entity_type": "DISTRICT", "entity_ids": [str(district.id)]},
            headers=admin_headers,
        )
        [result] = res.json()["results"]
        assert result["success"] is False
        assert result["message"] == "Publish operations are only supported for news articles"

    async def test_bulk_create_rejected(self, client: AsyncClient, admin_headers):
        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "CREATE", "entity_type": "MEMBER", "entity_ids": [MISSING_ID]},
            headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.json()["message"] == "Bulk create is not supported"

    async def test_empty_ids_rejected(self, client: AsyncClient, admin_headers):
        res = await client.post(
            f"{ADMIN}/bulk-operations",
            json={"operation": "DELETE", "entity_type": "MEMBER", "entity_ids": []},
            headers=admin_headers,
        )
        assert res.status_code == 422


class TestScheduledPublication:

    async def test_schedule_list_and_cancel(self, client: AsyncClient, admin_headers):
        article = await _article(client, admin_headers, "Tomorrow", published=True)

        res = await client.post(
            f"{ADMIN}/schedule-publication",
            json={"entity_type": "NEWS_ARTICLE", "entity_id": article["id"], "scheduled_date": _in(24)},
            headers=admin_headers,
        )
        assert res.status_code == 201
        assert res.json()["title"] == "Tomorrow"

        # Scheduling takes the article off the public list
        assert (await client.get("/api/v1/news/articles", headers=admin_headers)).json()["total"] == 0

        assert (await client.get(f"{ADMIN}/scheduled-publications/count", headers=admin_headers)).json() == {"count": 1}
        listed = (await client.get(f"{ADMIN}/scheduled-publications", headers=admin_headers)).json()
        assert [s["entity_id"] for s in listed] == [article["id"]]

        in_range = await client.get(
            f"{ADMIN}/scheduled-publications/range",
            params={"start": _in(1), "end": _in(48)},
            headers=admin_headers,
        )
        assert len(in_range.json()) == 1
        out_of_range = await client.get(
            f"{ADMIN}/scheduled-publications/range",
            params={"start": _in(30), "end": _in(48)},
            headers=admin_headers,
        )
        assert out_of_range.json() == []

        res = await client.delete(
            f"{ADMIN}/schedule-publication/NEWS_ARTICLE/{article['id']}", headers=admin_headers
        )
        assert res.status_code == 204
        assert (await client.get(f"{ADMIN}/scheduled-publications/count", headers=admin_headers)).json() == {"count": 0}

    async def test_past_date_rejected(self, client: AsyncClient, admin_headers):
        article = await _article(client, admin_headers, "Past")
        res = await client.post(
            f"{ADMIN}/schedule-publication",
            json={"entity_type": "NEWS_ARTICLE", "entity_id": article["id"], "scheduled_date": _in(-1)},
            headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.json()["message"] == "Scheduled date must be in the future"

    async def test_only_news_articles(self, client: AsyncClient, admin_headers):
        res = await client.post(
            f"{ADMIN}/schedule-publication",
            json={"entity_type": "PLAYER", "entity_id": MISSING_ID, "scheduled_date": _in(2)},
            headers=admin_headers,
        )
        assert res.status_code == 400

    async def test_unknown_article(self, client: AsyncClient, admin_headers):
        res = await client.post(
            f"{ADMIN}/schedule-publication",
            json={"entity_type": "NEWS_ARTICLE", "entity_id": MISSING_ID, "scheduled_date": _in(2)},
            headers=admin_headers,
        )
        assert res.status_code == 404

    async def test_range_start_after_end(self, client: AsyncClient, admin_headers):
        res = await client.get(
            f"{ADMIN}/scheduled-publications/range",
            params={"start": _in(48), "end": _in(1)},
            headers=admin_headers,
        )
        assert res.status_code == 400

    async def test_process_due(self, client: AsyncClient, admin_headers, db: AsyncSession):
        article = await _article(client, admin_headers, "Due soon")
        await client.post(
            f"{ADMIN}/schedule-publication",
            json={"entity_type": "NEWS_ARTICLE", "entity_id": article["id"], "scheduled_date": _in(1)},
            headers=admin_headers,
        )

        # Move the schedule into the past
        row = (await db.execute(select(NewsArticle).where(NewsArticle.title == "Due soon"))).scalar_one()
        row.scheduled_publication_date = datetime.now(timezone.utc) - timedelta(minutes=5)
        await db.commit()

        res = await client.post(f"{ADMIN}/scheduled-publications/process", headers=admin_headers)
        assert res.json() == {"published_count": 1}

        published = (await client.get(f"/api/v1/news/articles/{article['id']}", headers=admin_headers)).json()
        assert published["is_published"] is True
        assert published["scheduled_publication_date"] is None

        res = await client.post(f"{ADMIN}/scheduled-publications/process", headers=admin_headers)
        assert res.json() == {"published_count": 0}

    async def test_process_due_isolates_failing_article(self, client: AsyncClient, admin_headers, db: AsyncSession):
        broken = await _article(client, admin_headers, "Broken")
        healthy = await _article(client, admin_headers, "Healthy")
        for article in (broken, healthy):
            await client.post(
                f"{ADMIN}/schedule-publication",
                json={"entity_type": "NEWS_ARTICLE", "entity_id": article["id"], "scheduled_date": _in(1)},
                headers=admin_headers,
            )
        for row in (await db.execute(select(NewsArticle))).scalars():
            row.scheduled_publication_date = datetime.now(timezone.utc) - timedelta(minutes=5)
        await db.commit()

        original_publish = NewsArticle.publish

        def publish(article: NewsArticle) -> None:
            if article.title == "Broken":
                raise RuntimeError("Publication hook failed")
            original_publish(article)

        with patch.object(NewsArticle, "publish", publish):
            res = await client.post(f"{ADMIN}/scheduled-publications/process", headers=admin_headers)
        assert res.json() == {"published_count": 1}

        assert (await client.get(f"/api/v1/news/articles/{healthy['id']}", headers=admin_headers)).json()[
            "is_published"
        ] is True
        still_scheduled = (await client.get(f"/api/v1/news/articles/{broken['id']}", headers=admin_headers)).json()
        assert still_scheduled["is_published"] is False
        assert still_scheduled["scheduled_publication_date"] is not None

        failures = (
            await db.execute(
                select(AuditLog).where(AuditLog.entity_id == broken["id"], AuditLog.status == "FAILURE")
            )
        ).scalars().all()
        assert len(failures) == 1
        assert failures[0].username == "system"
        assert failures[0].error_message == "Publication hook failed"
        assert "RuntimeError" in failures[0].stack_trace


class TestHealthAndCache:

    async def test_system_health(self, client: AsyncClient, admin_headers):
        res = await client.get(f"{ADMIN}/health", headers=admin_headers)
        assert res.status_code == 200
        body = res.json()
        assert set(body["components"]) == {"database", "cache", "storage", "services"}
        assert body["components"]["database"]["status"] == "UP"
        assert body["components"]["cache"]["details"]["backend"] == "memory"
        assert body["metrics"]["record_counts"]["users"] == 1

    async def test_metrics_report_current_process_memory(self, client: AsyncClient, admin_headers):
        process = MagicMock()
        process.memory_info.return_value.rss = 150 * 1024 * 1024
        process.memory_percent.return_value = 3.456
        process.cpu_percent.return_value = 12.5
        with patch("app.services.health_service.psutil.Process", return_value=process) as factory:
            res = await client.get(f"{ADMIN}/health", headers=admin_headers)

        factory.assert_called_once()
        metrics = res.json()["metrics"]
        assert metrics["memory_rss_mb"] == 150.0
        assert metrics["memory_percent"] == 3.46
        assert metrics["cpu_percent"] == 12.5

    async def test_cache_clear_and_stats(self, client: AsyncClient, admin_headers, db: AsyncSession, district):
        await client.get("/api/v1/districts", headers=admin_headers)
        await client.get("/api/v1/districts", headers=admin_headers)

        stats = (await client.get(f"{ADMIN}/cache/stats", headers=admin_headers)).json()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["keys"] == 1
        assert stats["hit_rate"] == 0.5

        res = await client.post(f"{ADMIN}/cache/clear", params={"cache_name": "districts"}, headers=admin_headers)
        assert res.json() == {"message": "Cache 'districts' cleared", "cache_name": "districts", "cleared_keys": 1}

        res = await client.post(f"{ADMIN}/cache/clear", headers=admin_headers)
        assert res.json()["message"] == "All caches cleared"

        rows = (
            await db.execute(select(AuditLog).where(AuditLog.action == "CACHE_CLEAR", AuditLog.entity_type == "Cache"))
        ).scalars().all()
        assert sorted(r.entity_id for r in rows) == ["all", "districts"]
