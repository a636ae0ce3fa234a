"""HTTP client for the admin API, used by the editor session and the CLI.

The admin password is kept as the session token and sent verbatim as the
bearer credential.  Any 401 discards it.
"""

from __future__ import annotations

import json
import logging
import secrets
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from adjacent.errors import (
    AdjacentError,
    InvalidInputError,
    NotFoundError,
    SlugConflictError,
    StoreError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[AdjacentError]] = {
    400: InvalidInputError,
    404: NotFoundError,
}


class AdminClient:
    """Client for the ``/api/admin`` endpoints."""

    def __init__(self, base_url: str, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token

    # ── Session ──────────────────────────────────────────────────

    @property
    def signed_in(self) -> bool:
        return bool(self.token)

    def sign_in(self, password: str) -> list[dict[str, Any]]:
        """Verify the password against the server and keep it as the token.

        Returns the post list fetched during verification.
        """
        self.token = password
        try:
            return self.list_posts()
        except AdjacentError:
            self.sign_out()
            raise

    def sign_out(self) -> None:
        self.token = None

    # ── Transport ────────────────────────────────────────────────

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        if not self.token:
            raise UnauthorizedError("Not signed in")
        headers = {"Authorization": f"Bearer {self.token}"}
        if extra:
            headers.update(extra)
        return headers

    def _send(self, req: urllib.request.Request) -> Any:
        try:
            with urllib.request.urlopen(req) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            raise self._error_from(exc) from exc
        except urllib.error.URLError as exc:
            raise StoreError(f"Admin API unreachable: {exc.reason}") from exc

    def _error_from(self, exc: urllib.error.HTTPError) -> AdjacentError:
        try:
            payload = json.loads(exc.read().decode("utf-8") or "{}")
        except (json.JSONDecodeError, UnicodeDecodeError, OSError):
            payload = {}
        message = payload.get("error") if isinstance(payload, dict) else None
        if exc.code == 401:
            logger.info("Admin credential rejected; signing out")
            self.sign_out()
            return UnauthorizedError()
        if exc.code == 409:
            return SlugConflictError(message=message)
        error_cls = _STATUS_ERRORS.get(exc.code, StoreError)
        return error_cls(message or f"Request failed with status {exc.code}")

    def _request(
        self,
        method: str,
        path: str = "",
        data: dict | None = None,
        query: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}/api/admin{path}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        body = json.dumps(data).encode("utf-8") if data is not None else None
        req = urllib.request.Request(
            url,
            data=body,
            method=method,
            headers=self._headers({"Content-Type": "application/json"}),
        )
        return self._send(req)

    # ── Posts ────────────────────────────────────────────────────

    def list_posts(self) -> list[dict[str, Any]]:
        return self._request("GET")

    def create_post(self, post: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", data=post)

    def update_post(self, post_id: str, post: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", data={**post, "id": post_id})

    def set_published(self, post: dict[str, Any], published: bool) -> dict[str, Any]:
        """Publish or unpublish by resending the whole post."""
        return self.update_post(post["id"], {**post, "published": published})

    def delete_post(self, post_id: str) -> dict[str, Any]:
        return self._request("DELETE", query={"id": post_id})

    def stats(self) -> dict[str, int]:
        return self._request("GET", "/stats")

    # ── Images ───────────────────────────────────────────────────

    def upload_image(
        self, filename: str, data: bytes, content_type: str, field: str = "file"
    ) -> str:
        """Upload an image via multipart form POST and return its URL."""
        url = f"{self.base_url}/api/admin/upload"
        boundary = f"----AdjacentUploadBoundary{secrets.token_hex(8)}"

        disposition = (
            f'Content-Disposition: form-data; name="{field}";'
            f' filename="{filename}"\r\n'
        )
        body_parts: list[bytes] = [
            f"--{boundary}\r\n".encode(),
            disposition.encode(),
            f"Content-Type: {content_type}\r\n\r\n".encode(),
            data,
            f"\r\n--{boundary}--\r\n".encode(),
        ]
        req = urllib.request.Request(
            url,
            data=b"".join(body_parts),
            method="POST",
            headers=self._headers(
                {"Content-Type": f"multipart/form-data; boundary={boundary}"}
            ),
        )
        return self._send(req)["url"]
