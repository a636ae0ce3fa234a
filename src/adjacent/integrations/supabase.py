"""Supabase integration — config, REST client, and store backends.

Talks to the PostgREST table API for posts and the Storage API for images
via urllib.  Both backends translate HTTP failures into the shared error
taxonomy so callers never see raw urllib exceptions.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel

from adjacent.blog.models import BlogPost, PostInput
from adjacent.content.store import PostStore, utc_now
from adjacent.errors import NotFoundError, SlugConflictError, StoreError
from adjacent.media.uploads import ImageStorage

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class SupabaseConfig(BaseModel):
    """Connection settings for a Supabase project."""

    url: str = ""
    anon_key: str = ""
    table: str = "blog_posts"
    bucket: str = "blog-images"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)


class SupabaseAPIError(StoreError):
    """Non-2xx response from Supabase."""

    def __init__(self, status: int, message: str, code: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class SupabaseClient:
    """Minimal client for the Supabase REST and Storage APIs."""

    def __init__(self, config: SupabaseConfig) -> None:
        self.config = config
        self.base_url = config.url.rstrip("/")

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {self.config.anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _send(self, req: urllib.request.Request) -> object:
        try:
            with urllib.request.urlopen(req) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise _api_error(exc) from exc
        except urllib.error.URLError as exc:
            raise StoreError(f"Supabase unreachable: {exc.reason}") from exc
        return json.loads(raw) if raw else None

    def request(
        self,
        method: str,
        table: str,
        *,
        query: dict[str, str] | None = None,
        data: dict | None = None,
        prefer: str = "",
    ) -> object:
        """Make an authenticated request against a PostgREST table."""
        url = f"{self.base_url}/rest/v1/{table}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query, safe='*,.')}"
        extra = {"Content-Type": "application/json"}
        if prefer:
            extra["Prefer"] = prefer
        body = json.dumps(data).encode("utf-8") if data is not None else None
        req = urllib.request.Request(url, data=body, method=method, headers=self._headers(extra))
        return self._send(req)

    def upload_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str,
        upsert: bool = False,
    ) -> object:
        """Upload raw bytes to a storage bucket."""
        url = f"{self.base_url}/storage/v1/object/{bucket}/{urllib.parse.quote(key)}"
        extra = {
            "Content-Type": content_type,
            "Cache-Control": f"max-age={cache_control}",
            "x-upsert": "true" if upsert else "false",
        }
        req = urllib.request.Request(url, data=data, method="POST", headers=self._headers(extra))
        return self._send(req)

    def public_object_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{urllib.parse.quote(key)}"


def _api_error(exc: urllib.error.HTTPError) -> SupabaseAPIError:
    """Build a SupabaseAPIError from an HTTP error body."""
    message = exc.reason if isinstance(exc.reason, str) else str(exc)
    code = ""
    try:
        payload = json.loads(exc.read().decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError, OSError):
        payload = {}
    if isinstance(payload, dict):
        message = str(payload.get("message") or payload.get("error") or message)
        code = str(payload.get("code") or payload.get("statusCode") or "")
    return SupabaseAPIError(exc.code, message, code)


class SupabasePostStore(PostStore):
    """Post store backed by a Supabase (PostgREST) table.

    Timestamps are written by the client, so ``updated_at`` is refreshed on
    every update regardless of database triggers.
    """

    def __init__(
        self,
        client: SupabaseClient,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.client = client
        self.table = client.config.table
        self._clock = clock

    def _rows(self, result: object) -> list[BlogPost]:
        if not isinstance(result, list):
            raise StoreError("Unexpected response from Supabase")
        return [BlogPost.model_validate(row) for row in result]

    def _write(self, method: str, query: dict[str, str] | None, data: dict) -> list[BlogPost]:
        try:
            result = self.client.request(
                method, self.table, query=query, data=data, prefer="return=representation"
            )
        except SupabaseAPIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise SlugConflictError(data.get("slug", "")) from exc
            raise
        return self._rows(result)

    def list_posts(self, published: bool | None = None) -> list[BlogPost]:
        query = {"select": "*", "order": "created_at.desc,id.desc"}
        if published is not None:
            query["published"] = f"eq.{str(published).lower()}"
        return self._rows(self.client.request("GET", self.table, query=query))

    def get(self, post_id: str) -> BlogPost | None:
        query = {"select": "*", "id": f"eq.{post_id}"}
        rows = self._rows(self.client.request("GET", self.table, query=query))
        return rows[0] if rows else None

    def get_by_slug(self, slug: str, published: bool | None = None) -> BlogPost | None:
        query = {"select": "*", "slug": f"eq.{slug}"}
        if published is not None:
            query["published"] = f"eq.{str(published).lower()}"
        rows = self._rows(self.client.request("GET", self.table, query=query))
        return rows[0] if rows else None

    def create(self, data: PostInput) -> BlogPost:
        now = self._clock().isoformat()
        row = {
            "title": data.title,
            "slug": data.slug,
            "excerpt": data.excerpt,
            "content": data.content,
            "image_url": data.image_url,
            "published": bool(data.published),
            "created_at": now,
            "updated_at": now,
        }
        rows = self._write("POST", None, row)
        if not rows:
            raise StoreError("Supabase returned no row for insert")
        logger.info("Created post %s (%s)", rows[0].id, rows[0].slug)
        return rows[0]

    def update(self, post_id: str, data: PostInput) -> BlogPost:
        row: dict[str, object] = {
            "title": data.title,
            "slug": data.slug,
            "excerpt": data.excerpt,
            "content": data.content,
            "image_url": data.image_url,
            "updated_at": self._clock().isoformat(),
        }
        if data.published is not None:
            row["published"] = data.published
        rows = self._write("PATCH", {"id": f"eq.{post_id}"}, row)
        if not rows:
            raise NotFoundError(f"Post not found: {post_id}")
        logger.info("Updated post %s (%s)", post_id, rows[0].slug)
        return rows[0]

    def delete(self, post_id: str) -> None:
        result = self.client.request(
            "DELETE", self.table, query={"id": f"eq.{post_id}"}, prefer="return=representation"
        )
        if not self._rows(result):
            raise NotFoundError(f"Post not found: {post_id}")
        logger.info("Deleted post %s", post_id)


class SupabaseImageStorage(ImageStorage):
    """Image bucket backed by Supabase Storage.

    Uploads never upsert, so an existing key makes the upload fail.
    """

    def __init__(self, client: SupabaseClient, bucket: str | None = None) -> None:
        self.client = client
        self.bucket = bucket or client.config.bucket

    def put(self, key: str, data: bytes, *, content_type: str, cache_control: str) -> None:
        self.client.upload_object(
            self.bucket,
            key,
            data,
            content_type=content_type,
            cache_control=cache_control,
            upsert=False,
        )

    def public_url(self, key: str) -> str:
        return self.client.public_object_url(self.bucket, key)
