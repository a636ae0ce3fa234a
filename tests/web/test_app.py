"""Tests for the Flask app — admin routes, public reads, and uploads."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from adjacent.config import SiteConfig
from adjacent.content.store import JsonPostStore
from adjacent.media.uploads import LocalImageStorage
from adjacent.web.app import create_app

AUTH = {"Authorization": "Bearer s3cret"}
PAYLOAD = {
    "title": "Test Post",
    "slug": "test-post",
    "excerpt": "An excerpt",
    "content": "**Intro**\n\nHello **world**.",
    "image_url": "",
}


@pytest.fixture
def store(tmp_path: Path) -> JsonPostStore:
    return JsonPostStore(tmp_path / "data")


@pytest.fixture
def app(tmp_path: Path, store: JsonPostStore):
    config = SiteConfig.model_validate({"admin": {"password": "s3cret"}})
    flask_app = create_app(
        config,
        store=store,
        image_storage=LocalImageStorage(tmp_path / "uploads", "/uploads"),
    )
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def _create(client, **overrides) -> dict:
    response = client.post("/api/admin", json={**PAYLOAD, **overrides}, headers=AUTH)
    assert response.status_code == 200
    return response.get_json()


class TestAdminAuth:
    @pytest.mark.parametrize(
        "headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "s3cret"}]
    )
    def test_rejects_bad_credentials(self, client, store: JsonPostStore, headers):
        response = client.post("/api/admin", json=PAYLOAD, headers=headers)
        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}
        assert store.list_posts() == []

    def test_get_requires_auth(self, client):
        assert client.get("/api/admin").status_code == 401

    def test_unset_password_denies_everything(self, tmp_path: Path):
        app = create_app(
            SiteConfig(),
            store=JsonPostStore(tmp_path),
            image_storage=LocalImageStorage(tmp_path / "uploads"),
        )
        response = app.test_client().get("/api/admin", headers={"Authorization": "Bearer "})
        assert response.status_code == 401


class TestAdminPosts:
    def test_create_and_list(self, client):
        post = _create(client)
        assert post["published"] is False
        assert post["image_url"] is None

        listing = client.get("/api/admin", headers=AUTH).get_json()
        assert [p["id"] for p in listing] == [post["id"]]

    def test_missing_fields(self, client):
        response = client.post("/api/admin", json={**PAYLOAD, "title": ""}, headers=AUTH)
        assert response.status_code == 400
        assert "title" in response.get_json()["error"]

    def test_non_json_body(self, client):
        response = client.post("/api/admin", data="nope", headers=AUTH)
        assert response.status_code == 400

    def test_duplicate_slug_is_conflict(self, client):
        _create(client)
        response = client.post("/api/admin", json=PAYLOAD, headers=AUTH)
        assert response.status_code == 409

    def test_update(self, client):
        post = _create(client)
        response = client.put(
            "/api/admin", json={**PAYLOAD, "id": post["id"], "published": True}, headers=AUTH
        )
        assert response.status_code == 200
        assert response.get_json()["published"] is True

    def test_update_missing_id(self, client):
        response = client.put("/api/admin", json=PAYLOAD, headers=AUTH)
        assert response.status_code == 400
        assert response.get_json() == {"error": "Missing post ID"}

    def test_update_unknown_id(self, client):
        response = client.put("/api/admin", json={**PAYLOAD, "id": "nope"}, headers=AUTH)
        assert response.status_code == 404

    def test_delete(self, client):
        post = _create(client)
        response = client.delete(f"/api/admin?id={post['id']}", headers=AUTH)
        assert response.get_json() == {"success": True}
        assert client.get("/api/admin", headers=AUTH).get_json() == []

    def test_delete_missing_id(self, client):
        response = client.delete("/api/admin", headers=AUTH)
        assert response.status_code == 400

    def test_stats(self, client):
        _create(client, published=True)
        _create(client, slug="second")
        stats = client.get("/api/admin/stats", headers=AUTH).get_json()
        assert stats == {"total": 2, "published": 1, "drafts": 1}


class TestUpload:
    def test_upload_and_serve(self, client):
        response = client.post(
            "/api/admin/upload",
            data={"file": (io.BytesIO(b"\x89PNG data"), "cover.png", "image/png")},
            headers=AUTH,
            content_type="multipart/form-data",
        )
        assert response.status_code == 200
        url = response.get_json()["url"]
        assert url.startswith("/uploads/blog/")
        assert url.endswith(".png")

        served = client.get(url)
        assert served.status_code == 200
        assert served.data == b"\x89PNG data"
        assert served.headers["Cache-Control"] == "public, max-age=31536000"

    def test_rejects_pdf(self, client):
        response = client.post(
            "/api/admin/upload",
            data={"file": (io.BytesIO(b"%PDF"), "doc.pdf", "application/pdf")},
            headers=AUTH,
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid file type. Use JPG, PNG, WebP, or GIF."}

    def test_missing_file(self, client):
        response = client.post("/api/admin/upload", headers=AUTH)
        assert response.status_code == 400
        assert response.get_json() == {"error": "No file provided"}

    def test_upload_requires_auth(self, client, tmp_path: Path):
        response = client.post(
            "/api/admin/upload",
            data={"file": (io.BytesIO(b"x"), "cover.png", "image/png")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 401
        assert not (tmp_path / "uploads").exists()


class TestPublicRoutes:
    def test_drafts_hidden(self, client):
        post = _create(client)
        assert client.get("/api/posts").get_json() == []
        assert client.get(f"/api/posts/{post['slug']}").status_code == 404

    def test_published_listing_and_detail(self, client):
        _create(client, published=True)

        listing = client.get("/api/posts").get_json()
        assert [p["slug"] for p in listing] == ["test-post"]
        assert "content" not in listing[0]

        detail = client.get("/api/posts/test-post").get_json()
        assert detail["title"] == "Test Post"
        assert detail["html"] == "<h3>Intro</h3>\n<p>Hello <strong>world</strong>.</p>"
        assert [b["kind"] for b in detail["blocks"]] == ["heading", "paragraph"]

    def test_unknown_slug(self, client):
        response = client.get("/api/posts/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "healthy"}

    def test_unknown_route_is_json(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestStoreFailure:
    def test_unreadable_store_is_json_500(self, client, tmp_path: Path):
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "blog-posts.json").write_text("{broken", encoding="utf-8")

        response = client.get("/api/posts")
        assert response.status_code == 500
        assert "unreadable" in response.get_json()["error"]

        response = client.post("/api/admin", json=PAYLOAD, headers=AUTH)
        assert response.status_code == 500
        assert (tmp_path / "data" / "blog-posts.json").read_text(encoding="utf-8") == "{broken"
