"""Document model: markdown blocks and multi-file combination."""

from __future__ import annotations

from .combiner import SECTION_SEPARATOR, DocumentBuilder, combine
from .parser import parse_markdown

__all__ = ["SECTION_SEPARATOR", "DocumentBuilder", "combine", "parse_markdown"]
