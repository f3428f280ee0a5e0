"""Markdown block parser: split a document into an ordered list of :class:`Block`.

This parser is deliberately small. It recognizes just enough markdown for a
review UI to render and anchor annotations:

1) Normalizes line endings to ``\\n``.
2) Walks the lines once, top to bottom.
3) Emits one :class:`Block` per heading, rule, list item, fenced code block,
   and one per run of paragraph, quote or table lines.

Rules (checked in this order for each non-blank line)
-----------------------------------------------------
- fence      a line starting with three backticks opens a code block; every
             line up to the closing fence is kept verbatim. A fence that is
             never closed swallows the rest of the input.
- heading    ``#`` to ``######`` followed by a space (or nothing).
- hr         ``-``, ``*`` or ``_`` repeated at least three times.
- list-item  ``-``, ``*``, ``+`` or ``N.`` followed by a space. Indentation
             becomes ``level`` (two spaces per level); nesting stays flat.
- blockquote a line starting with ``>``; adjacent quote lines merge.
- table      a line starting with ``|``; adjacent table lines merge.
- paragraph  anything else, until a blank line or another block starts.

The function is total: unknown syntax simply lands in a paragraph.

Examples
--------
>>> [(b.type, b.content) for b in parse_markdown("# Spec\\n\\nHello world")]
[('heading', 'Spec'), ('paragraph', 'Hello world')]
"""

from __future__ import annotations

import re

from redline.core.contracts.block import Block

_FENCE = re.compile(r"^\s*```(.*)$")
_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_HEADING_CLOSER = re.compile(r"(?:^|[ \t]+)#+$")
_HR = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_LIST_ITEM = re.compile(r"^([ \t]*)(?:[-*+]|\d+\.)[ \t]+(.*)$")
_TASK = re.compile(r"^\[([ xX])\](?:[ \t]+(.*))?$")
_QUOTE = re.compile(r"^ {0,3}>[ ]?(.*)$")


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _indent_level(indent: str) -> int:
    """Map leading whitespace to a list depth (two columns per level, tab = 4)."""
    return len(indent.expandtabs(4)) // 2


class _BlockCollector:
    """Accumulates blocks and the currently open grouped run."""

    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self._kind: str | None = None
        self._lines: list[str] = []
        self._start = 1

    def emit(self, kind: str, content: str, start_line: int, **extra: object) -> None:
        order = len(self.blocks)
        self.blocks.append(
            Block(
                id=f"block-{order}",
                type=kind,
                content=content,
                order=order,
                start_line=start_line,
                **extra,  # type: ignore[arg-type]
            )
        )

    def hold(self, kind: str, text: str, line_no: int) -> None:
        """Add ``text`` to the open run of ``kind``, starting a new run if needed."""
        if self._kind != kind:
            self.flush()
            self._kind = kind
            self._start = line_no
        self._lines.append(text)

    def flush(self) -> None:
        if self._kind is not None and self._lines:
            self.emit(self._kind, "\n".join(self._lines), self._start)
        self._kind = None
        self._lines = []


def _heading_text(raw: str | None) -> str:
    text = (raw or "").strip()
    return _HEADING_CLOSER.sub("", text).strip()


def parse_markdown(markdown: str) -> list[Block]:
    """Parse ``markdown`` into blocks with strictly increasing ``order``.

    Parameters
    ----------
    markdown : str
        Raw markdown text. Any string is accepted.

    Returns
    -------
    list[Block]
        Blocks in source order. Every non-blank line of the input belongs to
        exactly one block.
    """
    lines = _normalize(markdown).split("\n")
    out = _BlockCollector()

    i = 0
    while i < len(lines):
        line = lines[i]
        line_no = i + 1

        if not line.strip():
            out.flush()
            i += 1
            continue

        fence = _FENCE.match(line)
        if fence:
            out.flush()
            info = fence.group(1).strip()
            language = info.split()[0] if info else None
            body: list[str] = []
            j = i + 1
            while j < len(lines) and not _FENCE.match(lines[j]):
                body.append(lines[j])
                j += 1
            out.emit("code", "\n".join(body), line_no, language=language)
            # Skip the closing fence; an unterminated fence ends the input.
            i = j + 1
            continue

        heading = _HEADING.match(line)
        if heading:
            out.flush()
            out.emit(
                "heading",
                _heading_text(heading.group(2)),
                line_no,
                level=len(heading.group(1)),
            )
            i += 1
            continue

        if _HR.match(line):
            out.flush()
            out.emit("hr", "", line_no)
            i += 1
            continue

        item = _LIST_ITEM.match(line)
        if item:
            out.flush()
            content = item.group(2).strip()
            checked: bool | None = None
            task = _TASK.match(content)
            if task:
                checked = task.group(1).lower() == "x"
                content = (task.group(2) or "").strip()
            out.emit(
                "list-item",
                content,
                line_no,
                level=_indent_level(item.group(1)),
                checked=checked,
            )
            i += 1
            continue

        quote = _QUOTE.match(line)
        if quote:
            out.hold("blockquote", quote.group(1).rstrip(), line_no)
        elif line.lstrip().startswith("|"):
            out.hold("table", line.strip(), line_no)
        else:
            out.hold("paragraph", line.strip(), line_no)
        i += 1

    out.flush()
    return out.blocks


__all__ = ["parse_markdown"]
