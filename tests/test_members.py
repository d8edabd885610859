"""Member API tests — CRUD, hierarchy, tenure queries, caching and contact form."""

from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient

MEMBERS = "/api/v1/members"


def _member(**overrides) -> dict:
    data = {
        "name": "K. Srinivas",
        "position": "President",
        "email": "president@tbba.test",
        "hierarchy_level": 1,
        "is_prominent": True,
    }
    data.update(overrides)
    return data


class TestMemberCrud:

    async def test_create_and_get(self, client: AsyncClient, admin_headers):
        res = await client.post(MEMBERS, json=_member(), headers=admin_headers)
        assert res.status_code == 201
        member = res.json()
        assert member["position"] == "President"
        assert member["is_active"] is True

        res = await client.get(f"{MEMBERS}/{member['id']}", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["name"] == "K. Srinivas"

    async def test_duplicate_email(self, client: AsyncClient, admin_headers):
        await client.post(MEMBERS, json=_member(), headers=admin_headers)
        res = await client.post(MEMBERS, json=_member(name="Other"), headers=admin_headers)
        assert res.status_code == 409

    async def test_update_email_to_existing_one(self, client: AsyncClient, admin_headers):
        await client.post(MEMBERS, json=_member(), headers=admin_headers)
        other = (await client.post(MEMBERS, json=_member(email="vp@tbba.test"), headers=admin_headers)).json()
        res = await client.put(f"{MEMBERS}/{other['id']}", json={"email": "president@tbba.test"}, headers=admin_headers)
        assert res.status_code == 409

    async def test_tenure_range_validated(self, client: AsyncClient, admin_headers):
        res = await client.post(
            MEMBERS,
            json=_member(tenure_start_date="2025-01-01", tenure_end_date="2024-01-01"),
            headers=admin_headers,
        )
        assert res.status_code == 422

    async def test_blank_name_rejected(self, client: AsyncClient, admin_headers):
        res = await client.post(MEMBERS, json=_member(name="   "), headers=admin_headers)
        assert res.status_code == 422

    async def test_missing_member(self, client: AsyncClient, admin_headers):
        res = await client.get(f"{MEMBERS}/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        assert res.status_code == 404
        assert res.json()["message"] == "Member not found"

    async def test_soft_delete_hides_from_list(self, client: AsyncClient, admin_headers):
        member = (await client.post(MEMBERS, json=_member(), headers=admin_headers)).json()
        assert len((await client.get(MEMBERS, headers=admin_headers)).json()) == 1

        res = await client.delete(f"{MEMBERS}/{member['id']}", headers=admin_headers)
        assert res.status_code == 204
        assert (await client.get(MEMBERS, headers=admin_headers)).json() == []

    async def test_hierarchy_update(self, client: AsyncClient, admin_headers):
        member = (await client.post(MEMBERS, json=_member(), headers=admin_headers)).json()
        res = await client.patch(f"{MEMBERS}/{member['id']}/hierarchy", json={"hierarchy_level": 3}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["hierarchy_level"] == 3

    async def test_hierarchy_requires_permission(self, client: AsyncClient, editor_headers, admin_headers):
        member = (await client.post(MEMBERS, json=_member(), headers=admin_headers)).json()
        res = await client.patch(
            f"{MEMBERS}/{member['id']}/hierarchy", json={"hierarchy_level": 3}, headers=editor_headers
        )
        assert res.status_code == 403


class TestMemberQueries:

    async def test_list_ordered_by_hierarchy(self, client: AsyncClient, admin_headers):
        await client.post(MEMBERS, json=_member(name="Secretary", email="s@tbba.test", hierarchy_level=2), headers=admin_headers)
        await client.post(MEMBERS, json=_member(name="President", email="p@tbba.test", hierarchy_level=1), headers=admin_headers)

        names = [m["name"] for m in (await client.get(MEMBERS, headers=admin_headers)).json()]
        assert names == ["President", "Secretary"]

        top = (await client.get(f"{MEMBERS}/top-level", headers=admin_headers)).json()
        assert [m["name"] for m in top] == ["President"]

    async def test_currently_serving_and_tenure_ending(self, client: AsyncClient, admin_headers):
        today = date.today()
        await client.post(
            MEMBERS,
            json=_member(
                name="Serving",
                email="serving@tbba.test",
                tenure_start_date=(today - timedelta(days=300)).isoformat(),
                tenure_end_date=(today + timedelta(days=10)).isoformat(),
            ),
            headers=admin_headers,
        )
        await client.post(
            MEMBERS,
            json=_member(
                name="Former",
                email="former@tbba.test",
                tenure_start_date="2015-01-01",
                tenure_end_date="2018-01-01",
            ),
            headers=admin_headers,
        )

        serving = (await client.get(f"{MEMBERS}/currently-serving", headers=admin_headers)).json()
        assert [m["name"] for m in serving] == ["Serving"]
        assert serving[0]["is_currently_serving"] is True

        ending = (await client.get(f"{MEMBERS}/tenure-ending-soon", headers=admin_headers)).json()
        assert [m["name"] for m in ending] == ["Serving"]

        stats = (await client.get(f"{MEMBERS}/statistics", headers=admin_headers)).json()
        assert stats == {"total_active": 2, "prominent": 2, "currently_serving": 1}

    async def test_search(self, client: AsyncClient, admin_headers):
        await client.post(MEMBERS, json=_member(), headers=admin_headers)
        res = await client.get(f"{MEMBERS}/search", params={"q": "srini"}, headers=admin_headers)
        assert len(res.json()) == 1
        res = await client.get(f"{MEMBERS}/search", params={"q": "nobody"}, headers=admin_headers)
        assert res.json() == []

    async def test_paginated(self, client: AsyncClient, admin_headers):
        for i in range(3):
            await client.post(MEMBERS, json=_member(email=f"m{i}@tbba.test"), headers=admin_headers)
        page = (await client.get(f"{MEMBERS}/paginated", params={"size": 2, "page": 2}, headers=admin_headers)).json()
        assert page["total"] == 3
        assert len(page["items"]) == 1

    async def test_list_is_cached_and_evicted_on_write(self, client: AsyncClient, admin_headers):
        from app.utils.cache import cache

        await client.get(MEMBERS, headers=admin_headers)
        await client.get(MEMBERS, headers=admin_headers)
        stats = await cache.stats()
        assert stats["misses"] == 1
        assert stats["hits"] == 1

        await client.post(MEMBERS, json=_member(), headers=admin_headers)
        assert len((await client.get(MEMBERS, headers=admin_headers)).json()) == 1


class TestContactForm:

    async def test_contact_general_inbox(self, client: AsyncClient, user_headers):
        with patch("app.services.member_service.send_email", new=AsyncMock(return_value=True)) as send:
            res = await client.post(
                f"{MEMBERS}/contact",
                json={"name": "Ravi", "email": "ravi@example.org", "subject": "Coaching", "message": "Hello"},
                headers=user_headers,
            )
        assert res.status_code == 200
        assert res.json() == {"message": "Contact form submitted successfully"}
        assert send.await_args.args[0] == "info@telanganaballbadminton.org"
        assert send.await_args.kwargs["reply_to"] == "ravi@example.org"

    async def test_contact_specific_member(self, client: AsyncClient, admin_headers, user_headers):
        member = (await client.post(MEMBERS, json=_member(), headers=admin_headers)).json()
        with patch("app.services.member_service.send_email", new=AsyncMock(return_value=True)) as send:
            await client.post(
                f"{MEMBERS}/contact",
                json={
                    "member_id": member["id"],
                    "name": "Ravi",
                    "email": "ravi@example.org",
                    "subject": "Hi",
                    "message": "Hello",
                },
                headers=user_headers,
            )
        assert send.await_args.args[0] == "president@tbba.test"

    async def test_contact_requires_authentication(self, client: AsyncClient):
        res = await client.post(
            f"{MEMBERS}/contact",
            json={"name": "Ravi", "email": "ravi@example.org", "subject": "Hi", "message": "Hello"},
        )
        assert res.status_code == 401

    async def test_contact_invalid_email(self, client: AsyncClient, user_headers):
        res = await client.post(
            f"{MEMBERS}/contact",
            json={"name": "Ravi", "email": "not-an-email", "subject": "Hi", "message": "Hello"},
            headers=user_headers,
        )
        assert res.status_code == 422
