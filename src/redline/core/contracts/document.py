"""Combined-document contracts.

A review session shows several source files as one markdown document. These
models record where every file landed inside that document so that edits made
against the combined view can be routed back to the right file.

Invariant
---------
For every :class:`FileMapping` ``m`` produced together with a document ``d``::

    d[m.start_offset:m.end_offset] == m.original_content

Mappings are only valid for the exact document string that produced them.
"""

from __future__ import annotations

from pathlib import PurePath

from pydantic import Field, model_validator

from .wire import WireModel


class SourceDocument(WireModel):
    """One input of the combiner.

    ``content`` is ``None`` when the file does not exist on disk.
    """

    path: str
    content: str | None = None
    required: bool = False
    label: str = ""

    @property
    def name(self) -> str:
        """File name shown in placeholders (``specs/x/plan.md`` -> ``plan.md``)."""
        return PurePath(self.path).name

    @property
    def is_present(self) -> bool:
        return bool(self.content)


class FileMapping(WireModel):
    """Character range ``[start_offset, end_offset)`` of one file in a combined document."""

    file_path: str
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)
    original_content: str

    @model_validator(mode="after")
    def _check_range(self) -> FileMapping:
        if self.end_offset - self.start_offset != len(self.original_content):
            raise ValueError("mapping range length must equal the mapped content length")
        return self

    def excerpt(self, document: str) -> str:
        """Return the slice of ``document`` this mapping points at."""
        return document[self.start_offset : self.end_offset]


class CombinedDocument(WireModel):
    """Result of combining several sources into one reviewable document."""

    document: str
    file_mappings: list[FileMapping] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    included_files: list[str] = Field(default_factory=list)

    def mapping_for(self, offset: int) -> FileMapping | None:
        """Return the mapping whose range contains ``offset``, if any."""
        for mapping in self.file_mappings:
            if mapping.start_offset <= offset < mapping.end_offset:
                return mapping
        return None


__all__ = ["CombinedDocument", "FileMapping", "SourceDocument"]
