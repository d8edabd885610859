"""Media gallery, download and storage API tests."""

import pytest
from httpx import AsyncClient

from app.services.storage_service import storage_service

MEDIA = "/api/v1/media"
DOWNLOADS = "/api/v1/downloads"
STORAGE = "/api/v1/storage"


@pytest.fixture
def uploads_dir(tmp_path, monkeypatch):
    """Local storage rooted in a temporary directory."""
    monkeypatch.setattr(storage_service, "uploads_dir", tmp_path)
    return tmp_path


async def _create_gallery(client: AsyncClient, headers: dict, **overrides) -> dict:
    data = {"title": "State Finals 2024", "gallery_type": "PHOTO"}
    data.update(overrides)
    res = await client.post(f"{MEDIA}/galleries", json=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


async def _create_item(client: AsyncClient, headers: dict, gallery_id: str, **overrides) -> dict:
    data = {"gallery_id": gallery_id, "file_url": "https://cdn.example.org/a.jpg"}
    data.update(overrides)
    res = await client.post(f"{MEDIA}/items", json=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


class TestGalleries:

    async def test_gallery_detail_lists_active_items_in_order(self, client: AsyncClient, editor_headers, user_headers):
        gallery = await _create_gallery(client, editor_headers)
        second = await _create_item(client, editor_headers, gallery["id"], title="Second", sort_order=2)
        await _create_item(client, editor_headers, gallery["id"], title="First", sort_order=1)
        hidden = await _create_item(client, editor_headers, gallery["id"], title="Hidden", sort_order=3)

        res = await client.delete(f"{MEDIA}/items/{hidden['id']}", headers=editor_headers)
        assert res.status_code == 204

        detail = (await client.get(f"{MEDIA}/galleries/{gallery['id']}", headers=user_headers)).json()
        assert [i["title"] for i in detail["items"]] == ["First", "Second"]

        items = (await client.get(f"{MEDIA}/galleries/{gallery['id']}/items", headers=user_headers)).json()
        assert items[1]["id"] == second["id"]

    async def test_private_galleries_not_listed(self, client: AsyncClient, editor_headers, user_headers):
        await _create_gallery(client, editor_headers, title="Public")
        await _create_gallery(client, editor_headers, title="Private", is_public=False)
        page = (await client.get(f"{MEDIA}/galleries", headers=user_headers)).json()
        assert [g["title"] for g in page["items"]] == ["Public"]

    async def test_type_featured_and_search(self, client: AsyncClient, editor_headers, user_headers):
        await _create_gallery(client, editor_headers, title="Photos")
        await _create_gallery(client, editor_headers, title="Highlights", gallery_type="VIDEO", is_featured=True)

        videos = (await client.get(f"{MEDIA}/galleries/type/VIDEO", headers=user_headers)).json()
        assert [g["title"] for g in videos] == ["Highlights"]
        featured = (await client.get(f"{MEDIA}/galleries/featured", headers=user_headers)).json()
        assert [g["title"] for g in featured] == ["Highlights"]
        found = (await client.get(f"{MEDIA}/galleries/search", params={"title": "phot"}, headers=user_headers)).json()
        assert [g["title"] for g in found] == ["Photos"]

    async def test_statistics(self, client: AsyncClient, editor_headers, user_headers):
        photos = await _create_gallery(client, editor_headers)
        await _create_gallery(client, editor_headers, title="Video", gallery_type="VIDEO")
        await _create_item(client, editor_headers, photos["id"])
        await _create_item(client, editor_headers, photos["id"], media_type="VIDEO")

        stats = (await client.get(f"{MEDIA}/statistics", headers=user_headers)).json()
        assert stats == {
            "total_galleries": 2,
            "photo_galleries": 1,
            "video_galleries": 1,
            "total_images": 1,
            "total_videos": 1,
        }

    async def test_item_for_unknown_gallery(self, client: AsyncClient, editor_headers):
        res = await client.post(
            f"{MEDIA}/items",
            json={"gallery_id": "00000000-0000-0000-0000-000000000000", "file_url": "https://x/y.jpg"},
            headers=editor_headers,
        )
        assert res.status_code == 404
        assert res.json()["message"] == "Gallery not found"

    async def test_delete_gallery(self, client: AsyncClient, editor_headers):
        gallery = await _create_gallery(client, editor_headers)
        await _create_item(client, editor_headers, gallery["id"])
        res = await client.delete(f"{MEDIA}/galleries/{gallery['id']}", headers=editor_headers)
        assert res.status_code == 204
        assert (await client.get(f"{MEDIA}/galleries/{gallery['id']}", headers=editor_headers)).status_code == 404

    async def test_reader_cannot_create(self, client: AsyncClient, user_headers):
        res = await client.post(f"{MEDIA}/galleries", json={"title": "Nope"}, headers=user_headers)
        assert res.status_code == 403


class TestDownloads:

    async def test_create_defaults_file_name(self, client: AsyncClient, editor_headers):
        res = await client.post(
            DOWNLOADS,
            json={"title": "Rules", "file_url": "https://cdn.example.org/docs/rules.pdf", "category": "Rules"},
            headers=editor_headers,
        )
        assert res.status_code == 201
        assert res.json()["file_name"] == "rules.pdf"
        assert res.json()["download_count"] == 0

    async def test_track_and_popular(self, client: AsyncClient, editor_headers, user_headers):
        rules = (await client.post(DOWNLOADS, json={"title": "Rules", "file_url": "https://x/r.pdf"}, headers=editor_headers)).json()
        await client.post(DOWNLOADS, json={"title": "Forms", "file_url": "https://x/f.pdf"}, headers=editor_headers)

        for _ in range(2):
            res = await client.post(f"{DOWNLOADS}/{rules['id']}/track", headers=user_headers)
        assert res.json()["download_count"] == 2

        popular = (await client.get(f"{DOWNLOADS}/popular", headers=user_headers)).json()
        assert [d["title"] for d in popular] == ["Rules", "Forms"]

    async def test_category_lookup_is_case_insensitive(self, client: AsyncClient, editor_headers, user_headers):
        await client.post(
            DOWNLOADS, json={"title": "Calendar", "file_url": "https://x/c.pdf", "category": "Schedules"},
            headers=editor_headers,
        )
        page = (await client.get(f"{DOWNLOADS}/category/schedules", headers=user_headers)).json()
        assert page["total"] == 1
        items = (await client.get(f"{DOWNLOADS}/category/SCHEDULES/list", headers=user_headers)).json()
        assert len(items) == 1

    async def test_soft_delete_requires_file_delete(self, client: AsyncClient, editor_headers, admin_headers):
        download = (await client.post(DOWNLOADS, json={"title": "Old", "file_url": "https://x/o.pdf"}, headers=editor_headers)).json()

        res = await client.delete(f"{DOWNLOADS}/{download['id']}", headers=editor_headers)
        assert res.status_code == 403

        res = await client.delete(f"{DOWNLOADS}/{download['id']}", headers=admin_headers)
        assert res.status_code == 204
        assert (await client.get(f"{DOWNLOADS}/{download['id']}", headers=admin_headers)).status_code == 404
        assert (await client.get(DOWNLOADS, headers=admin_headers)).json() == []

    async def test_private_download_hidden_from_lists(self, client: AsyncClient, editor_headers, user_headers):
        await client.post(
            DOWNLOADS, json={"title": "Internal", "file_url": "https://x/i.pdf", "is_public": False},
            headers=editor_headers,
        )
        assert (await client.get(DOWNLOADS, headers=user_headers)).json() == []
        found = (await client.get(f"{DOWNLOADS}/search", params={"title": "intern"}, headers=user_headers)).json()
        assert found == []


class TestStorage:

    async def test_presigned_url_local_mode(self, client: AsyncClient, editor_headers, uploads_dir):
        res = await client.post(
            f"{STORAGE}/presigned-url",
            json={"filename": "Photo.JPG", "content_type": "image/jpeg", "folder": "media"},
            headers=editor_headers,
        )
        assert res.status_code == 200
        body = res.json()
        assert body["key"].startswith("temp/media/")
        assert body["key"].endswith(".jpg")
        assert body["upload_url"].endswith(f"/api/v1/storage/upload/{body['key']}")
        assert body["file_url"].endswith(f"/uploads/{body['key']}")

    async def test_upload_then_finalize_on_item_create(self, client: AsyncClient, editor_headers, uploads_dir):
        presigned = (
            await client.post(
                f"{STORAGE}/presigned-url",
                json={"filename": "a.png", "content_type": "image/png"},
                headers=editor_headers,
            )
        ).json()
        key = presigned["key"]

        res = await client.put(f"{STORAGE}/upload/{key}", content=b"\x89PNG data", headers=editor_headers)
        assert res.status_code == 200
        assert res.json()["size"] == 9
        assert (uploads_dir / key).read_bytes() == b"\x89PNG data"

        gallery = await _create_gallery(client, editor_headers)
        item = await _create_item(client, editor_headers, gallery["id"], file_url=presigned["file_url"])

        final_key = key.removeprefix("temp/")
        assert item["file_url"].endswith(f"/uploads/{final_key}")
        assert (uploads_dir / final_key).exists()
        assert not (uploads_dir / key).exists()

    async def test_missing_temp_file_keeps_url(self, client: AsyncClient, editor_headers, uploads_dir):
        gallery = await _create_gallery(client, editor_headers)
        url = "http://localhost:8000/uploads/temp/media/2024/01/01/missing.jpg"
        item = await _create_item(client, editor_headers, gallery["id"], file_url=url)
        assert item["file_url"] == url

    async def test_upload_rejects_traversal(self, client: AsyncClient, editor_headers, uploads_dir):
        res = await client.put(f"{STORAGE}/upload/temp/..%2F..%2Fescape.txt", content=b"x", headers=editor_headers)
        assert res.status_code == 400

    async def test_upload_requires_permission(self, client: AsyncClient, user_headers, uploads_dir):
        res = await client.put(f"{STORAGE}/upload/temp/media/a.txt", content=b"x", headers=user_headers)
        assert res.status_code == 403
