"""URL slugs derived from post titles."""

from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(title: str) -> str:
    """Convert a post title to a URL-safe slug.

    Examples:
        >>> slugify("Spring Yard Cleanup!! 2026")
        'spring-yard-cleanup-2026'
        >>> slugify("  -- Mulch 101 --  ")
        'mulch-101'
        >>> slugify("")
        ''
    """
    text = _DISALLOWED.sub("", title.lower())
    text = _WHITESPACE.sub("-", text.strip())
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


def is_valid_slug(slug: str) -> bool:
    """Check that a slug is non-empty and already in canonical form."""
    return bool(slug) and slugify(slug) == slug
