"""Post store: the persistence boundary for blog posts.

``PostStore`` is the contract every backend honours.  ``JsonPostStore``
persists all posts in a single JSON file, loaded on first access and saved
after every write.  The hosted backend lives in ``adjacent.integrations.supabase``.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from adjacent.blog.models import BlogPost, PostInput
from adjacent.config import SiteConfig
from adjacent.errors import NotFoundError, SlugConflictError, StoreError

logger = logging.getLogger(__name__)

STORE_FILENAME = "blog-posts.json"


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def sort_newest_first(posts: list[BlogPost]) -> list[BlogPost]:
    """Order posts by created_at descending, later insertions first on ties.

    ``posts`` must be in insertion order.
    """
    indexed = sorted(enumerate(posts), key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [post for _, post in indexed]


class PostStore(ABC):
    """CRUD contract for blog post backends.

    The store owns ids, timestamps, and slug uniqueness.  Callers validate
    required fields before calling in.
    """

    @abstractmethod
    def list_posts(self, published: bool | None = None) -> list[BlogPost]:
        """Return posts newest first, optionally filtered by published flag."""

    @abstractmethod
    def get(self, post_id: str) -> BlogPost | None:
        """Return a post by id, or None."""

    @abstractmethod
    def get_by_slug(self, slug: str, published: bool | None = None) -> BlogPost | None:
        """Return a post by slug, or None."""

    @abstractmethod
    def create(self, data: PostInput) -> BlogPost:
        """Insert a post.  Raises SlugConflictError on a duplicate slug."""

    @abstractmethod
    def update(self, post_id: str, data: PostInput) -> BlogPost:
        """Replace a post's editable fields.

        Raises NotFoundError if the id is unknown and SlugConflictError if
        another post already has the slug.
        """

    @abstractmethod
    def delete(self, post_id: str) -> None:
        """Delete a post.  Raises NotFoundError if the id is unknown."""


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    posts: list[BlogPost] = Field(default_factory=list)


class JsonPostStore(PostStore):
    """JSON-file post store for local development and single-host deploys.

    Posts are kept in insertion order on disk; ordering for reads is
    computed by ``sort_newest_first``.
    """

    def __init__(self, directory: Path, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._path = directory / STORE_FILENAME
        self._clock = clock
        self._cache: _StoreData | None = None

    @property
    def path(self) -> Path:
        return self._path

    # ── Private helpers ──────────────────────────────────────────

    @property
    def _data(self) -> _StoreData:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def _load(self) -> _StoreData:
        """Read the store file; an unreadable file is never replaced."""
        if not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError, OSError) as exc:
            logger.error("Unreadable post store at %s: %s", self._path, exc)
            raise StoreError(f"Post store is unreadable: {self._path}") from exc

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            self._data.model_dump_json(indent=2),
            encoding="utf-8",
        )

    def _index(self, post_id: str) -> int:
        for i, post in enumerate(self._data.posts):
            if post.id == post_id:
                return i
        raise NotFoundError(f"Post not found: {post_id}")

    def _check_slug(self, slug: str, exclude_id: str | None = None) -> None:
        for post in self._data.posts:
            if post.slug == slug and post.id != exclude_id:
                raise SlugConflictError(slug)

    # ── Read operations ──────────────────────────────────────────

    def list_posts(self, published: bool | None = None) -> list[BlogPost]:
        posts = self._data.posts
        if published is not None:
            posts = [p for p in posts if p.published == published]
        return [post.model_copy() for post in sort_newest_first(posts)]

    def get(self, post_id: str) -> BlogPost | None:
        for post in self._data.posts:
            if post.id == post_id:
                return post.model_copy()
        return None

    def get_by_slug(self, slug: str, published: bool | None = None) -> BlogPost | None:
        for post in self._data.posts:
            if post.slug != slug:
                continue
            if published is not None and post.published != published:
                return None
            return post.model_copy()
        return None

    # ── Write operations ─────────────────────────────────────────

    def create(self, data: PostInput) -> BlogPost:
        self._check_slug(data.slug)
        now = self._clock()
        post = BlogPost(
            id=uuid.uuid4().hex,
            title=data.title,
            slug=data.slug,
            excerpt=data.excerpt,
            content=data.content,
            image_url=data.image_url,
            published=bool(data.published),
            created_at=now,
            updated_at=now,
        )
        self._data.posts.append(post)
        self._save()
        logger.info("Created post %s (%s)", post.id, post.slug)
        return post.model_copy()

    def update(self, post_id: str, data: PostInput) -> BlogPost:
        index = self._index(post_id)
        self._check_slug(data.slug, exclude_id=post_id)
        current = self._data.posts[index]
        updated = current.model_copy(
            update={
                "title": data.title,
                "slug": data.slug,
                "excerpt": data.excerpt,
                "content": data.content,
                "image_url": data.image_url,
                "published": current.published if data.published is None else data.published,
                "updated_at": max(self._clock(), current.created_at),
            }
        )
        self._data.posts[index] = updated
        self._save()
        logger.info("Updated post %s (%s)", post_id, updated.slug)
        return updated.model_copy()

    def delete(self, post_id: str) -> None:
        index = self._index(post_id)
        del self._data.posts[index]
        self._save()
        logger.info("Deleted post %s", post_id)


def create_store(config: SiteConfig) -> PostStore:
    """Build the post store selected by ``config.store.backend``.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = config.store.backend
    if backend == "json":
        return JsonPostStore(Path(config.store.directory))
    if backend == "supabase":
        if not config.supabase.is_configured:
            logger.warning("Supabase backend selected without SUPABASE_URL and SUPABASE_ANON_KEY")
        from adjacent.integrations.supabase import SupabaseClient, SupabasePostStore

        return SupabasePostStore(SupabaseClient(config.to_supabase_config()))
    raise ValueError(f"Unknown store backend: {backend!r}")
