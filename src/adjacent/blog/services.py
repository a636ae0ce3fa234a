"""Post service: validation and lifecycle operations over a PostStore.

Everything locally checkable (empty fields, slug shape) is rejected here,
before any store call.
"""

from __future__ import annotations

import logging

from adjacent.blog.models import BlogPost, PostInput, PostStats
from adjacent.blog.slugs import is_valid_slug
from adjacent.content.store import PostStore
from adjacent.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def validate_post(data: PostInput) -> None:
    """Raise InvalidInputError for empty required fields or a malformed slug."""
    data.require_fields()
    if not is_valid_slug(data.slug):
        raise InvalidInputError(
            "Slug may only contain lowercase letters, digits, and single hyphens."
        )


class PostService:
    """Blog post operations shared by the admin API and the CLI."""

    def __init__(self, store: PostStore) -> None:
        self.store = store

    # ── Public reads ─────────────────────────────────────────────

    def list_published(self) -> list[BlogPost]:
        return self.store.list_posts(published=True)

    def get_published(self, slug: str) -> BlogPost:
        """Return a published post by slug.

        Raises:
            NotFoundError: If no post has the slug or it is still a draft.
        """
        post = self.store.get_by_slug(slug, published=True)
        if post is None:
            raise NotFoundError(f"Post not found: {slug}")
        return post

    # ── Admin operations ─────────────────────────────────────────

    def list_all(self) -> list[BlogPost]:
        return self.store.list_posts()

    def get(self, post_id: str) -> BlogPost:
        post = self.store.get(post_id)
        if post is None:
            raise NotFoundError(f"Post not found: {post_id}")
        return post

    def create(self, data: PostInput) -> BlogPost:
        validate_post(data)
        return self.store.create(data)

    def update(self, post_id: str, data: PostInput) -> BlogPost:
        validate_post(data)
        return self.store.update(post_id, data)

    def set_published(self, post_id: str, published: bool) -> BlogPost:
        """Publish or unpublish a post.

        Resends every field with only ``published`` changed.  Setting the
        current value again still succeeds and refreshes ``updated_at``.
        """
        post = self.get(post_id)
        return self.update(post_id, post.to_input(published=published))

    def delete(self, post_id: str) -> None:
        self.store.delete(post_id)

    def stats(self) -> PostStats:
        posts = self.store.list_posts()
        published = sum(1 for p in posts if p.published)
        return PostStats(total=len(posts), published=published, drafts=len(posts) - published)
