"""Tests for EditorSession — the admin form state machine."""

from __future__ import annotations

from typing import Any

import pytest
from adjacent.admin.editor import (
    MISSING_FIELDS_MESSAGE,
    SIGNED_OUT_MESSAGE,
    UPLOAD_IN_PROGRESS_MESSAGE,
    EditorMode,
    EditorSession,
    EditorStatus,
)
from adjacent.blog.formatter import BlockKind
from adjacent.errors import SlugConflictError, StoreError, UnauthorizedError


class FakeClient:
    """In-memory stand-in for AdminClient."""

    def __init__(self, posts: list[dict[str, Any]] | None = None) -> None:
        self.posts = posts or []
        self.token: str | None = "s3cret"
        self.fail_with: Exception | None = None
        self.calls: list[tuple[str, Any]] = []
        self.on_upload = None

    def sign_out(self) -> None:
        self.token = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def list_posts(self) -> list[dict[str, Any]]:
        self.calls.append(("list", None))
        self._maybe_fail()
        return self.posts

    def create_post(self, post: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", post))
        self._maybe_fail()
        saved = {**post, "id": "new-id", "published": bool(post.get("published"))}
        self.posts.append(saved)
        return saved

    def update_post(self, post_id: str, post: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", {**post, "id": post_id}))
        self._maybe_fail()
        return {**post, "id": post_id}

    def upload_image(self, filename: str, data: bytes, content_type: str) -> str:
        self.calls.append(("upload", filename))
        if self.on_upload is not None:
            self.on_upload()
        self._maybe_fail()
        return f"/uploads/blog/1-abc123.{filename.rsplit('.', 1)[-1]}"


EXISTING = {
    "id": "post-1",
    "title": "Spring Cleanup",
    "slug": "spring-cleanup",
    "excerpt": "Get ready",
    "content": "Body",
    "image_url": None,
    "published": True,
}


def _fill(session: EditorSession) -> None:
    session.set_title("Test Post")
    session.set_excerpt("An excerpt")
    session.set_content("Body")


class TestOpen:
    def test_new_post(self):
        session = EditorSession(FakeClient())
        assert session.mode == EditorMode.CREATING
        assert session.auto_slug is True
        assert session.is_new is True

    def test_existing_post(self):
        session = EditorSession(FakeClient([dict(EXISTING)]))
        session.open("post-1")

        assert session.mode == EditorMode.EDITING
        assert session.auto_slug is False
        assert session.form.title == "Spring Cleanup"
        assert session.form.image_url == ""
        assert session.form.published is True
        assert session.error == ""

    def test_missing_post(self):
        session = EditorSession(FakeClient())
        session.open("ghost")
        assert session.mode == EditorMode.EDITING
        assert session.error == "Post not found"

    def test_load_failure(self):
        client = FakeClient()
        client.fail_with = StoreError("boom")
        session = EditorSession(client)
        session.open("post-1")
        assert session.mode == EditorMode.EDITING
        assert session.error == "Failed to load post"

    def test_load_unauthorized_signs_out(self):
        client = FakeClient()
        client.fail_with = UnauthorizedError()
        session = EditorSession(client)
        session.open("post-1")
        assert session.signed_out is True
        assert client.token is None
        assert session.error == SIGNED_OUT_MESSAGE


class TestAutoSlug:
    def test_title_drives_slug(self):
        session = EditorSession(FakeClient())
        session.set_title("Spring Lawn Tips!")
        assert session.form.slug == "spring-lawn-tips"

    def test_manual_slug_stops_auto(self):
        session = EditorSession(FakeClient())
        session.set_title("First")
        session.set_slug("My Custom Slug")
        session.set_title("Second")
        assert session.form.slug == "my-custom-slug"
        assert session.auto_slug is False

    def test_existing_post_keeps_slug(self):
        session = EditorSession(FakeClient([dict(EXISTING)]))
        session.open("post-1")
        session.set_title("Renamed")
        assert session.form.slug == "spring-cleanup"

    def test_reopen_resets_latch(self):
        session = EditorSession(FakeClient())
        session.set_slug("manual")
        session.open()
        session.set_title("Fresh Start")
        assert session.form.slug == "fresh-start"


class TestPreview:
    def test_placeholders(self):
        preview = EditorSession(FakeClient()).preview()
        assert preview.title == "Untitled Post"
        assert preview.excerpt == "No excerpt"
        assert preview.blocks == []

    def test_blocks_match_formatter(self):
        session = EditorSession(FakeClient())
        session.set_content("**Intro**\n\nHello **world**")
        blocks = session.preview().blocks
        assert [b.kind for b in blocks] == [BlockKind.HEADING, BlockKind.PARAGRAPH]

    def test_toggle(self):
        session = EditorSession(FakeClient())
        assert session.toggle_preview() is True
        assert session.toggle_preview() is False


class TestSave:
    def test_missing_fields_blocks_save(self):
        client = FakeClient()
        session = EditorSession(client)
        session.set_title("Only Title")

        assert session.save() is False
        assert session.error == MISSING_FIELDS_MESSAGE
        assert client.calls == []

    def test_create_then_update(self):
        client = FakeClient()
        session = EditorSession(client)
        _fill(session)

        assert session.save() is True
        assert session.message == "Post created!"
        assert session.post_id == "new-id"
        assert session.mode == EditorMode.EDITING
        assert session.form.published is False

        assert session.save() is True
        assert session.message == "Post updated!"
        assert client.calls[-1][0] == "update"
        assert session.status == EditorStatus.IDLE

    def test_publish_sets_flag(self):
        client = FakeClient()
        session = EditorSession(client)
        _fill(session)

        assert session.publish() is True
        assert client.calls[-1][1]["published"] is True
        assert session.form.published is True

        assert session.unpublish() is True
        assert session.form.published is False

    def test_server_error_keeps_form(self):
        client = FakeClient()
        session = EditorSession(client)
        _fill(session)
        client.fail_with = SlugConflictError("test-post")

        assert session.save() is False
        assert session.error == "Slug already in use: test-post"
        assert session.form.title == "Test Post"
        assert session.post_id is None
        assert session.status == EditorStatus.IDLE

    def test_unauthorized_signs_out(self):
        client = FakeClient()
        session = EditorSession(client)
        _fill(session)
        client.fail_with = UnauthorizedError()

        assert session.save() is False
        assert session.signed_out is True
        assert client.token is None


class TestUploadImage:
    def test_sets_image_url(self):
        session = EditorSession(FakeClient())
        assert session.upload_image("cover.png", b"x" * 100, "image/png") is True
        assert session.form.image_url == "/uploads/blog/1-abc123.png"
        assert session.uploading is False

    def test_rejected_locally(self):
        client = FakeClient()
        session = EditorSession(client)
        assert session.upload_image("doc.pdf", b"x", "application/pdf") is False
        assert session.error == "Invalid file type. Use JPG, PNG, WebP, or GIF."
        assert client.calls == []

    def test_failure_keeps_previous_url(self):
        client = FakeClient()
        session = EditorSession(client)
        session.set_image_url("/uploads/blog/old.png")
        client.fail_with = StoreError("Upload failed")

        assert session.upload_image("cover.png", b"x", "image/png") is False
        assert session.form.image_url == "/uploads/blog/old.png"
        assert session.uploading is False

    def test_save_refused_while_uploading(self):
        client = FakeClient()
        session = EditorSession(client)
        _fill(session)
        results: list[bool] = []
        client.on_upload = lambda: results.append(session.save())

        session.upload_image("cover.png", b"x", "image/png")

        assert results == [False]
        assert session.error == UPLOAD_IN_PROGRESS_MESSAGE
        assert not any(name == "create" for name, _ in client.calls)


@pytest.mark.parametrize("publish", [True, False, None])
def test_payload_published_flag(publish):
    client = FakeClient()
    session = EditorSession(client)
    _fill(session)
    session.save(publish=publish)
    sent = client.calls[-1][1]
    assert sent["published"] is (False if publish is None else publish)
