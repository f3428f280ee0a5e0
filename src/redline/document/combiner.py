"""
Document combiner: many source files in, one reviewable markdown out.

Every source that exists is written as::

    ## <label>

    <content, stripped>

    ---

and its position is recorded in a :class:`FileMapping`. A required source
that is missing gets the same header plus a short placeholder paragraph and no
mapping, so nothing can ever be patched into it. Optional missing sources are
skipped.

Offset bookkeeping
------------------
:class:`DocumentBuilder` takes the document length right before and right
after appending a file's content. Offsets are captured against the text just
written and never recomputed later, so whatever gets appended afterwards
cannot shift a mapping that already exists.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from redline.core.contracts.document import CombinedDocument, FileMapping, SourceDocument
from redline.core.settings import get_logger

logger = get_logger(__name__)

SECTION_SEPARATOR = "\n\n---\n\n"


def placeholder_text(name: str) -> str:
    """Paragraph shown in place of a required file that does not exist."""
    return f"*{name} not found - please create this file*"


class DocumentBuilder:
    """Append-only builder for a combined markdown document.

    Examples
    --------
    >>> b = DocumentBuilder()
    >>> _ = b.add_source("spec.md", "# A\\n", label="Specification")
    >>> doc = b.build()
    >>> m = doc.file_mappings[0]
    >>> doc.document[m.start_offset:m.end_offset]
    '# A'
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._length = 0
        self._mappings: list[FileMapping] = []
        self._missing: list[str] = []
        self._included: list[str] = []

    def __len__(self) -> int:
        return self._length

    def write(self, text: str) -> None:
        """Append raw text to the document."""
        self._parts.append(text)
        self._length += len(text)

    # ----- Structure helpers -------------------------------------------------

    def frontmatter(self, fields: Mapping[str, str]) -> None:
        """Write a YAML-style frontmatter block (``key: value`` lines)."""
        body = "".join(f"{key}: {value}\n" for key, value in fields.items())
        self.write(f"---\n{body}---\n\n")

    def heading(self, text: str, level: int = 2) -> None:
        self.write(f"{'#' * level} {text}\n\n")

    def rule(self) -> None:
        self.write("---\n\n")

    # ----- Sources -----------------------------------------------------------

    def add_source(
        self,
        path: str,
        content: str,
        *,
        label: str,
        level: int = 2,
        separator: str = SECTION_SEPARATOR,
        display_name: str | None = None,
    ) -> FileMapping:
        """Append one file under a heading and record where its content landed.

        Parameters
        ----------
        path : str
            Path recorded in the mapping; this is the file that gets patched.
        content : str
            File content. Only the stripped text is written and mapped.
        label : str
            Heading text for the section.
        level : int, default 2
            Heading level of the section header.
        separator : str
            Text written after the content.
        display_name : str | None
            Name listed in ``included_files`` (defaults to ``path``).
        """
        self.heading(label, level)

        trimmed = content.strip()
        start = self._length
        self.write(trimmed)
        end = self._length

        mapping = FileMapping(
            file_path=path,
            start_offset=start,
            end_offset=end,
            original_content=trimmed,
        )
        self._mappings.append(mapping)
        self._included.append(display_name or path)
        self.write(separator)
        logger.debug("Mapped %s to [%d, %d)", path, start, end)
        return mapping

    def add_placeholder(self, path: str, *, label: str, name: str | None = None) -> None:
        """Append a placeholder section for a required file that is missing."""
        shown = name or SourceDocument(path=path).name
        self.heading(label)
        self.write(placeholder_text(shown))
        self.write(SECTION_SEPARATOR)
        self._missing.append(path)
        logger.debug("Required source missing: %s", path)

    def build(self) -> CombinedDocument:
        """Return the finished document (trailing whitespace removed)."""
        document = "".join(self._parts).rstrip()
        return CombinedDocument(
            document=document,
            file_mappings=list(self._mappings),
            missing=list(self._missing),
            included_files=list(self._included),
        )


def combine(sources: Iterable[SourceDocument]) -> CombinedDocument:
    """Combine ``sources`` (in the given order) into one document.

    Present sources get a section and a mapping, required absent sources get
    a placeholder and are listed in ``missing``, optional absent sources are
    skipped. This never raises for missing content.
    """
    builder = DocumentBuilder()
    for source in sources:
        label = source.label or source.name
        if source.is_present:
            builder.add_source(source.path, source.content or "", label=label)
        elif source.required:
            builder.add_placeholder(source.path, label=label)
    combined = builder.build()
    logger.info(
        "Combined %d file(s), %d required missing",
        len(combined.file_mappings),
        len(combined.missing),
    )
    return combined


__all__ = ["SECTION_SEPARATOR", "DocumentBuilder", "combine", "placeholder_text"]
