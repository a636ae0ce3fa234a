"""Inline content formatter for post bodies.

Post content uses a minimal markup convention:

- blank lines separate blocks,
- a block that is entirely ``**Heading**`` becomes a subheading,
- ``**bold**`` inside a paragraph becomes an emphasized span.

The public post page and the admin live preview both go through
``format_content`` so they always agree on block structure.  Malformed
markup (an unterminated ``**``) is left as literal text; nothing here
raises on user input.
"""

from __future__ import annotations

import re
from enum import StrEnum

from markupsafe import escape
from pydantic import BaseModel, Field

_BLANK_LINES = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")
_HEADING = re.compile(r"\A\*\*((?:(?!\*\*).)+)\*\*\Z", re.DOTALL)
_BOLD = re.compile(r"\*\*(.+?)\*\*", re.DOTALL)


class BlockKind(StrEnum):
    """Block-level element type."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"


class Span(BaseModel):
    """A run of text inside a block, either plain or bold."""

    text: str
    bold: bool = False


class Block(BaseModel):
    """A heading or paragraph produced by splitting content on blank lines."""

    kind: BlockKind
    spans: list[Span] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """The block's text with emphasis markers stripped."""
        return "".join(span.text for span in self.spans)


def split_blocks(text: str) -> list[str]:
    """Split raw content into trimmed, non-empty block strings."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    parts = _BLANK_LINES.split(normalized)
    return [part.strip() for part in parts if part.strip()]


def parse_spans(text: str) -> list[Span]:
    """Scan a paragraph for ``**bold**`` spans.

    The first closing ``**`` ends a span.  Delimiters with nothing between
    them, or with no closing partner, stay in the plain text.
    """
    spans: list[Span] = []
    cursor = 0
    for match in _BOLD.finditer(text):
        if match.start() > cursor:
            spans.append(Span(text=text[cursor : match.start()]))
        spans.append(Span(text=match.group(1), bold=True))
        cursor = match.end()
    if cursor < len(text):
        spans.append(Span(text=text[cursor:]))
    return spans


def format_block(raw: str) -> Block:
    """Classify a single block string as heading or paragraph."""
    heading = _HEADING.match(raw)
    if heading:
        return Block(kind=BlockKind.HEADING, spans=[Span(text=heading.group(1))])
    return Block(kind=BlockKind.PARAGRAPH, spans=parse_spans(raw))


def format_content(text: str) -> list[Block]:
    """Split post content into heading and paragraph blocks.

    Examples:
        >>> [b.kind.value for b in format_content("**Intro**\\n\\nHello **world**.")]
        ['heading', 'paragraph']
    """
    return [format_block(raw) for raw in split_blocks(text)]


def to_markup(blocks: list[Block]) -> str:
    """Rebuild content markup from blocks (inverse of ``format_content``)."""
    out: list[str] = []
    for block in blocks:
        if block.kind == BlockKind.HEADING:
            out.append(f"**{block.text}**")
        else:
            out.append("".join(f"**{s.text}**" if s.bold else s.text for s in block.spans))
    return "\n\n".join(out)


def render_html(blocks: list[Block]) -> str:
    """Render blocks as HTML, escaping all user text."""
    out: list[str] = []
    for block in blocks:
        if block.kind == BlockKind.HEADING:
            out.append(f"<h3>{escape(block.text)}</h3>")
            continue
        inner = "".join(
            f"<strong>{escape(span.text)}</strong>" if span.bold else str(escape(span.text))
            for span in block.spans
        )
        out.append(f"<p>{inner}</p>")
    return "\n".join(out)


def render_content(text: str) -> str:
    """Format and render raw post content in one step."""
    return render_html(format_content(text))
