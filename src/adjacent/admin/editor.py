"""Editor session: the lifecycle of the admin post form.

One ``EditorSession`` per open editor.  It holds the in-memory form, the
auto-slug latch, and the load/save state, and talks to the server only
through an ``AdminClient``:

- ``open()`` starts a new post (``creating``); ``open(post_id)`` loads an
  existing one (``loading`` → ``editing``).
- Field edits and preview toggles never touch the network.
- ``save()`` checks required fields locally, then creates or updates.
  A failed save keeps the form as it was.
- ``upload_image()`` only ever changes ``image_url``.  Saving is refused
  while an upload is in flight so the saved post never misses the new
  cover image.
"""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from adjacent.admin.client import AdminClient
from adjacent.blog.formatter import Block, format_content
from adjacent.blog.models import REQUIRED_FIELDS
from adjacent.blog.slugs import slugify
from adjacent.errors import AdjacentError, UnauthorizedError, UploadRejectedError
from adjacent.media.uploads import UploadedFile, validate_upload

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Please fill in all required fields (title, slug, excerpt, content)."
UPLOAD_IN_PROGRESS_MESSAGE = "Please wait for the image upload to finish."
SIGNED_OUT_MESSAGE = "Your session has expired. Please sign in again."


class EditorMode(StrEnum):
    LOADING = "loading"
    CREATING = "creating"
    EDITING = "editing"


class EditorStatus(StrEnum):
    IDLE = "idle"
    SAVING = "saving"


class PostForm(BaseModel):
    """The editable fields as held by the editor."""

    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    image_url: str = ""
    published: bool = False

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]


class PostPreview(BaseModel):
    """What the live preview shows; blocks match the public renderer."""

    title: str
    excerpt: str
    image_url: str = ""
    published: bool = False
    blocks: list[Block] = Field(default_factory=list)


class EditorSession:
    """State machine for one admin editing session."""

    def __init__(self, client: AdminClient) -> None:
        self.client = client
        self._upload_lock = threading.Lock()
        self._uploads_in_flight = 0
        self.open()

    # ── Lifecycle ────────────────────────────────────────────────

    def open(self, post_id: str | None = None) -> None:
        """Start a new post, or load an existing one by id.

        Re-opening resets the form, messages, and the auto-slug latch.
        """
        self.post_id = post_id
        self.form = PostForm()
        self.status = EditorStatus.IDLE
        self.previewing = False
        self.error = ""
        self.message = ""
        self.signed_out = False

        if post_id is None:
            self.mode = EditorMode.CREATING
            self.auto_slug = True
            return

        self.mode = EditorMode.LOADING
        self.auto_slug = False
        try:
            posts = self.client.list_posts()
        except UnauthorizedError:
            self._sign_out()
            return
        except AdjacentError as exc:
            logger.warning("Failed to load post %s: %s", post_id, exc)
            self.error = "Failed to load post"
            return
        finally:
            self.mode = EditorMode.EDITING

        post = next((p for p in posts if p.get("id") == post_id), None)
        if post is None:
            self.error = "Post not found"
            return
        self.form = PostForm(
            title=post.get("title", ""),
            slug=post.get("slug", ""),
            excerpt=post.get("excerpt", ""),
            content=post.get("content", ""),
            image_url=post.get("image_url") or "",
            published=bool(post.get("published")),
        )

    @property
    def is_new(self) -> bool:
        return self.post_id is None

    @property
    def uploading(self) -> bool:
        with self._upload_lock:
            return self._uploads_in_flight > 0

    # ── Field edits (no network) ─────────────────────────────────

    def set_title(self, title: str) -> None:
        self.form.title = title
        if self.auto_slug:
            self.form.slug = slugify(title)

    def set_slug(self, slug: str) -> None:
        """Manual slug edit; turns auto-slug off for the rest of the session."""
        self.auto_slug = False
        self.form.slug = slugify(slug)

    def set_excerpt(self, excerpt: str) -> None:
        self.form.excerpt = excerpt

    def set_content(self, content: str) -> None:
        self.form.content = content

    def set_image_url(self, image_url: str) -> None:
        self.form.image_url = image_url

    # ── Preview ──────────────────────────────────────────────────

    def toggle_preview(self) -> bool:
        self.previewing = not self.previewing
        return self.previewing

    def preview(self) -> PostPreview:
        return PostPreview(
            title=self.form.title or "Untitled Post",
            excerpt=self.form.excerpt or "No excerpt",
            image_url=self.form.image_url,
            published=self.form.published,
            blocks=format_content(self.form.content),
        )

    # ── Save ─────────────────────────────────────────────────────

    def _payload(self, publish: bool | None) -> dict[str, Any]:
        data = self.form.model_dump()
        if publish is not None:
            data["published"] = publish
        return data

    def save(self, publish: bool | None = None) -> bool:
        """Create or update the post.

        Args:
            publish: True to publish, False to unpublish, None to keep the
                form's current flag.

        Returns:
            True on success.  On failure ``error`` explains why and the
            form is left untouched.
        """
        if self.status == EditorStatus.SAVING:
            return False
        if self.uploading:
            self.error = UPLOAD_IN_PROGRESS_MESSAGE
            return False
        if self.form.missing_fields():
            self.error = MISSING_FIELDS_MESSAGE
            return False

        self.status = EditorStatus.SAVING
        self.error = ""
        self.message = ""
        payload = self._payload(publish)
        try:
            if self.post_id is None:
                saved = self.client.create_post(payload)
                self.post_id = saved["id"]
                self.mode = EditorMode.EDITING
                self.message = "Post created!"
            else:
                saved = self.client.update_post(self.post_id, payload)
                self.message = "Post updated!"
        except UnauthorizedError:
            self._sign_out()
            return False
        except AdjacentError as exc:
            self.error = exc.message or "Failed to save post"
            return False
        finally:
            self.status = EditorStatus.IDLE

        self.form.published = bool(saved.get("published"))
        return True

    def publish(self) -> bool:
        return self.save(publish=True)

    def unpublish(self) -> bool:
        return self.save(publish=False)

    # ── Image upload ─────────────────────────────────────────────

    def upload_image(self, filename: str, data: bytes, content_type: str) -> bool:
        """Upload a cover image and point ``image_url`` at it.

        Type and size are checked locally before anything is sent.
        """
        try:
            validate_upload(UploadedFile(filename=filename, content_type=content_type, data=data))
        except UploadRejectedError as exc:
            self.error = exc.message
            return False

        with self._upload_lock:
            self._uploads_in_flight += 1
        try:
            url = self.client.upload_image(filename, data, content_type)
        except UnauthorizedError:
            self._sign_out()
            return False
        except AdjacentError as exc:
            self.error = exc.message or "Upload failed. Please try again."
            return False
        finally:
            with self._upload_lock:
                self._uploads_in_flight -= 1

        self.form.image_url = url
        return True

    # ── Helpers ──────────────────────────────────────────────────

    def _sign_out(self) -> None:
        self.client.sign_out()
        self.signed_out = True
        self.error = SIGNED_OUT_MESSAGE
