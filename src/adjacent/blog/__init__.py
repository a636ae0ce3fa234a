"""Blog domain — post models, slugs, and the inline content formatter."""

from adjacent.blog.formatter import Block, BlockKind, Span, format_content, render_html
from adjacent.blog.models import BlogPost, PostInput, PostStats
from adjacent.blog.slugs import slugify

__all__ = [
    "Block",
    "BlockKind",
    "BlogPost",
    "PostInput",
    "PostStats",
    "Span",
    "format_content",
    "render_html",
    "slugify",
]
