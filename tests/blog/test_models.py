"""Tests for blog post models."""

from datetime import UTC, datetime

import pytest
from adjacent.blog.models import BlogPost, PostInput
from adjacent.errors import InvalidInputError


class TestPostInput:
    def test_blank_image_url_becomes_none(self):
        assert PostInput(image_url="  ").image_url is None

    def test_published_unspecified(self):
        assert PostInput().published is None

    def test_missing_fields_lists_all(self):
        data = PostInput(title="T", slug="", excerpt=" ", content="body")
        assert data.missing_fields() == ["slug", "excerpt"]

    def test_require_fields_message(self):
        with pytest.raises(InvalidInputError, match="title, slug, excerpt, content"):
            PostInput().require_fields()


class TestBlogPost:
    def test_to_input_with_override(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        post = BlogPost(
            id="abc",
            title="T",
            slug="t",
            excerpt="E",
            content="C",
            image_url="/images/x.jpg",
            published=False,
            created_at=now,
            updated_at=now,
        )
        data = post.to_input(published=True)

        assert data.published is True
        assert data.title == "T"
        assert data.image_url == "/images/x.jpg"
