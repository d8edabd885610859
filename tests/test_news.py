"""News API tests — slugs, drafts, publication and categories."""

from httpx import AsyncClient

from app.services.news_service import slugify

NEWS = "/api/v1/news"


async def _create_article(client: AsyncClient, headers: dict, **overrides) -> dict:
    data = {"title": "District Finals 2024: Results!", "content": "Full report.", "is_published": True}
    data.update(overrides)
    res = await client.post(f"{NEWS}/articles", json=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


class TestSlugify:

    def test_basic(self):
        assert slugify("District Finals 2024: Results!") == "district-finals-2024-results"

    def test_accents_and_empty(self):
        assert slugify("Café Crème") == "cafe-creme"
        assert slugify("!!!") == "article"

    def test_max_length(self):
        assert slugify("a" * 400) == "a" * 300


class TestArticles:

    async def test_slug_generated_with_suffix(self, client: AsyncClient, editor_headers):
        first = await _create_article(client, editor_headers)
        second = await _create_article(client, editor_headers)
        third = await _create_article(client, editor_headers)
        assert first["slug"] == "district-finals-2024-results"
        assert second["slug"] == "district-finals-2024-results-2"
        assert third["slug"] == "district-finals-2024-results-3"

    async def test_explicit_duplicate_slug(self, client: AsyncClient, editor_headers):
        await _create_article(client, editor_headers, slug="finals")
        res = await client.post(
            f"{NEWS}/articles", json={"title": "Other", "content": "x", "slug": "finals"}, headers=editor_headers
        )
        assert res.status_code == 409

    async def test_invalid_slug(self, client: AsyncClient, editor_headers):
        res = await client.post(
            f"{NEWS}/articles", json={"title": "T", "content": "x", "slug": "not a slug"}, headers=editor_headers
        )
        assert res.status_code == 422

    async def test_published_sets_timestamp(self, client: AsyncClient, editor_headers):
        article = await _create_article(client, editor_headers)
        assert article["is_published"] is True
        assert article["published_at"] is not None

    async def test_drafts_hidden_from_readers(self, client: AsyncClient, editor_headers, user_headers):
        draft = await _create_article(client, editor_headers, is_published=False)

        res = await client.get(f"{NEWS}/articles/{draft['id']}", headers=user_headers)
        assert res.status_code == 404
        res = await client.get(f"{NEWS}/articles/{draft['id']}", headers=editor_headers)
        assert res.status_code == 200

        page = (await client.get(f"{NEWS}/articles", headers=user_headers)).json()
        assert page["total"] == 0

        res = await client.get(f"{NEWS}/articles/slug/{draft['slug']}", headers=editor_headers)
        assert res.status_code == 404

    async def test_slug_lookup_counts_views(self, client: AsyncClient, editor_headers, user_headers):
        article = await _create_article(client, editor_headers)
        await client.get(f"{NEWS}/articles/slug/{article['slug']}", headers=user_headers)
        res = await client.get(f"{NEWS}/articles/slug/{article['slug']}", headers=user_headers)
        assert res.json()["view_count"] == 2

    async def test_publish_and_unpublish(self, client: AsyncClient, editor_headers, user_headers):
        draft = await _create_article(client, editor_headers, is_published=False)

        res = await client.post(f"{NEWS}/articles/{draft['id']}/publish", headers=editor_headers)
        assert res.json()["is_published"] is True
        published_at = res.json()["published_at"]
        assert published_at is not None

        res = await client.post(f"{NEWS}/articles/{draft['id']}/unpublish", headers=editor_headers)
        assert res.json()["is_published"] is False
        assert (await client.get(f"{NEWS}/articles/{draft['id']}", headers=user_headers)).status_code == 404

        # Republishing keeps the first publication time
        res = await client.post(f"{NEWS}/articles/{draft['id']}/publish", headers=editor_headers)
        assert res.json()["published_at"] == published_at

    async def test_timestamps_stay_utc_after_reload(self, client: AsyncClient, editor_headers, user_headers, db):
        created = await _create_article(client, editor_headers)
        db.expire_all()

        fetched = (await client.get(f"{NEWS}/articles/{created['id']}", headers=user_headers)).json()
        assert fetched["published_at"] == created["published_at"]
        assert fetched["created_at"] == created["created_at"]
        assert fetched["published_at"].endswith("Z")

    async def test_moderator_cannot_publish(self, client: AsyncClient, editor_headers, moderator_headers):
        draft = await _create_article(client, editor_headers, is_published=False)
        res = await client.post(f"{NEWS}/articles/{draft['id']}/publish", headers=moderator_headers)
        assert res.status_code == 403

    async def test_update_slug_conflict(self, client: AsyncClient, editor_headers):
        await _create_article(client, editor_headers, slug="taken")
        other = await _create_article(client, editor_headers, title="Other")
        res = await client.put(f"{NEWS}/articles/{other['id']}", json={"slug": "taken"}, headers=editor_headers)
        assert res.status_code == 409

    async def test_featured_search_recent(self, client: AsyncClient, editor_headers, user_headers):
        featured = await _create_article(client, editor_headers, title="Featured Story", is_featured=True)
        await _create_article(client, editor_headers, title="Plain Story")

        res = await client.get(f"{NEWS}/articles/featured", headers=user_headers)
        assert [a["id"] for a in res.json()] == [featured["id"]]

        res = await client.get(f"{NEWS}/articles/search", params={"q": "plain"}, headers=user_headers)
        assert [a["title"] for a in res.json()] == ["Plain Story"]

        res = await client.get(f"{NEWS}/articles/recent", params={"days": 1}, headers=user_headers)
        assert len(res.json()) == 2

    async def test_delete(self, client: AsyncClient, editor_headers):
        article = await _create_article(client, editor_headers)
        res = await client.delete(f"{NEWS}/articles/{article['id']}", headers=editor_headers)
        assert res.status_code == 204
        assert (await client.get(f"{NEWS}/articles/{article['id']}", headers=editor_headers)).status_code == 404


class TestCategories:

    async def test_category_lifecycle(self, client: AsyncClient, editor_headers, user_headers):
        res = await client.post(f"{NEWS}/categories", json={"name": "Match Reports"}, headers=editor_headers)
        assert res.status_code == 201
        category = res.json()
        assert category["slug"] == "match-reports"

        res = await client.post(f"{NEWS}/categories", json={"name": "Match Reports"}, headers=editor_headers)
        assert res.status_code == 409

        await _create_article(client, editor_headers, category_id=category["id"])
        page = (await client.get(f"{NEWS}/articles/category/{category['id']}", headers=user_headers)).json()
        assert page["total"] == 1

        res = await client.get(f"{NEWS}/categories/slug/match-reports", headers=user_headers)
        assert res.json()["id"] == category["id"]

        res = await client.delete(f"{NEWS}/categories/{category['id']}", headers=editor_headers)
        assert res.status_code == 204
        assert (await client.get(f"{NEWS}/categories", headers=user_headers)).json() == []
        assert (await client.get(f"{NEWS}/categories/slug/match-reports", headers=user_headers)).status_code == 404

    async def test_article_with_unknown_category(self, client: AsyncClient, editor_headers):
        res = await client.post(
            f"{NEWS}/articles",
            json={"title": "T", "content": "x", "category_id": "00000000-0000-0000-0000-000000000000"},
            headers=editor_headers,
        )
        assert res.status_code == 404
        assert res.json()["message"] == "News category not found"
