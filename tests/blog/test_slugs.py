"""Tests for slug generation."""

import re

import pytest
from adjacent.blog.slugs import is_valid_slug, slugify

SLUG_SHAPE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


class TestSlugify:
    def test_title_with_punctuation_and_year(self):
        assert slugify("Spring Yard Cleanup!! 2026") == "spring-yard-cleanup-2026"

    def test_test_post(self):
        assert slugify("Test Post") == "test-post"

    def test_empty(self):
        assert slugify("") == ""

    def test_only_punctuation(self):
        assert slugify("!!! ???") == ""

    def test_collapses_whitespace(self):
        assert slugify("Mulch   \t matters") == "mulch-matters"

    def test_collapses_hyphens(self):
        assert slugify("fall -- prep") == "fall-prep"

    def test_trims_hyphens(self):
        assert slugify("  -- Mulch 101 --  ") == "mulch-101"

    def test_drops_non_ascii_letters(self):
        assert slugify("Café Plantings") == "caf-plantings"

    def test_keeps_existing_slug(self):
        assert slugify("why-mulching-matters") == "why-mulching-matters"

    @pytest.mark.parametrize(
        "title",
        [
            "Preparing Your Property for Fall in Upstate New York",
            "Why Mulching Matters More Than You Think",
            "  -leading and trailing-  ",
            "a - - b",
            "Tabs\tand\nnewlines",
            "100% organic (really!)",
            "---",
        ],
    )
    def test_output_shape(self, title: str):
        result = slugify(title)
        assert result == "" or SLUG_SHAPE.match(result)


class TestIsValidSlug:
    def test_valid(self):
        assert is_valid_slug("spring-yard-cleanup-tips") is True

    def test_empty(self):
        assert is_valid_slug("") is False

    def test_uppercase(self):
        assert is_valid_slug("Spring-Cleanup") is False

    def test_double_hyphen(self):
        assert is_valid_slug("spring--cleanup") is False

    def test_trailing_hyphen(self):
        assert is_valid_slug("spring-") is False
