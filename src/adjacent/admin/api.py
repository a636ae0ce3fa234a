"""Admin API operations, independent of the HTTP framework.

Every operation takes the raw ``Authorization`` header first and checks it
before reading the request body, so an unauthorized call never reaches the
store.  Results are plain JSON-ready dicts; failures are raised as
``AdjacentError`` subclasses for the web layer to map onto status codes.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from adjacent.admin.auth import AuthGate
from adjacent.blog.models import BlogPost, PostInput
from adjacent.blog.services import PostService
from adjacent.errors import InvalidInputError
from adjacent.media.uploads import ImageUploader, UploadedFile


def post_to_dict(post: BlogPost) -> dict[str, Any]:
    return post.model_dump(mode="json")


def parse_post_input(payload: object) -> PostInput:
    """Build a PostInput from a JSON body, rejecting non-object bodies."""
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")
    try:
        return PostInput.model_validate(
            {key: payload[key] for key in PostInput.model_fields if key in payload}
        )
    except PydanticValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        raise InvalidInputError(f"Invalid post fields: {fields}") from exc


class AdminAPI:
    """The password-gated admin endpoints."""

    def __init__(self, gate: AuthGate, posts: PostService, uploader: ImageUploader) -> None:
        self.gate = gate
        self.posts = posts
        self.uploader = uploader

    def list_posts(self, auth: str | None) -> list[dict[str, Any]]:
        """All posts, drafts included, newest first."""
        self.gate.require(auth)
        return [post_to_dict(p) for p in self.posts.list_all()]

    def create_post(self, auth: str | None, payload: object) -> dict[str, Any]:
        self.gate.require(auth)
        return post_to_dict(self.posts.create(parse_post_input(payload)))

    def update_post(self, auth: str | None, payload: object) -> dict[str, Any]:
        """Full replace of a post; ``payload["id"]`` selects the target."""
        self.gate.require(auth)
        post_id = payload.get("id") if isinstance(payload, dict) else None
        if not post_id:
            raise InvalidInputError("Missing post ID")
        return post_to_dict(self.posts.update(str(post_id), parse_post_input(payload)))

    def delete_post(self, auth: str | None, post_id: str | None) -> dict[str, Any]:
        self.gate.require(auth)
        if not post_id:
            raise InvalidInputError("Missing post ID")
        self.posts.delete(post_id)
        return {"success": True}

    def upload_image(self, auth: str | None, file: UploadedFile | None) -> dict[str, str]:
        self.gate.require(auth)
        return {"url": self.uploader.upload(file)}

    def stats(self, auth: str | None) -> dict[str, int]:
        self.gate.require(auth)
        return self.posts.stats().model_dump()
