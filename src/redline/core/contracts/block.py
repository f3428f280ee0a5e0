"""
Block Contract.

The unit produced by :func:`redline.document.parser.parse_markdown`. Each
Block corresponds to one heading, paragraph, list item, quote, table, rule or
fenced code block of the source markdown.

Blocks are rebuilt from scratch on every parse; ``order`` and ``start_line``
are only meaningful for the text that produced them.
"""

from __future__ import annotations

from pydantic import Field

from .wire import WireModel

BLOCK_TYPES = ("paragraph", "heading", "blockquote", "list-item", "code", "hr", "table")


class Block(WireModel):
    """A structured block extracted from a markdown document."""

    id: str = Field(..., description="Identifier derived from the emission order (e.g. 'block-3').")
    type: str = Field(
        ...,
        description="Block type.",
        pattern="^(paragraph|heading|blockquote|list-item|code|hr|table)$",
    )
    content: str = Field("", description="Plain text content (verbatim for code blocks).")
    level: int | None = Field(
        None,
        ge=0,
        description="Heading level (1-6) or list indentation depth (0-based).",
    )
    language: str | None = Field(None, description="Language token of a fenced code block.")
    checked: bool | None = Field(
        None, description="Task list state; None when the item is not a checkbox."
    )
    order: int = Field(..., ge=0, description="Emission sequence number.")
    start_line: int = Field(..., ge=1, description="1-based source line where the block starts.")


__all__ = ["BLOCK_TYPES", "Block"]
