"""Blog post data models — pure Pydantic v2 types.

No I/O here.  Stores and services import from this module.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from adjacent.errors import InvalidInputError

REQUIRED_FIELDS = ("title", "slug", "excerpt", "content")


class BlogPost(BaseModel):
    """A stored blog post, draft or published."""

    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    image_url: str | None = None
    published: bool = False
    created_at: datetime
    updated_at: datetime

    def to_input(self, **changes: Any) -> PostInput:
        """Return the editable fields as a PostInput, with optional overrides."""
        data = {
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
            "image_url": self.image_url,
            "published": self.published,
        }
        data.update(changes)
        return PostInput(**data)


class PostInput(BaseModel):
    """Editable post fields as sent by the admin editor.

    Updates are full replacements, so every field is resent each time.
    ``published=None`` means "not specified": creation treats it as a draft.
    """

    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    image_url: str | None = None
    published: bool | None = None

    @field_validator("image_url", mode="before")
    @classmethod
    def _blank_image_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing_fields(self) -> list[str]:
        """Names of required text fields that are empty."""
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]

    def require_fields(self) -> None:
        """Raise InvalidInputError if any required field is empty."""
        missing = self.missing_fields()
        if missing:
            raise InvalidInputError(
                f"Please fill in all required fields ({', '.join(missing)})."
            )


class PostStats(BaseModel):
    """Published/draft counts for the admin dashboard."""

    total: int = 0
    published: int = 0
    drafts: int = 0
