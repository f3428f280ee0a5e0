"""Annotation contracts: what a reviewer said about which piece of text.

An annotation is anchored by the literal text it was created against
(``original_text``) instead of a stored position. Positions are recovered on
demand with :func:`find_anchor`, which returns the first occurrence. This
survives re-rendering and re-combination at the cost of ambiguity when the
same text appears more than once (first match wins).

Types
-----
DELETION        remove ``original_text``
REPLACEMENT     replace ``original_text`` with ``text``
INSERTION       insert ``text`` right after ``original_text``
COMMENT         free text about ``original_text``; never edits files
GLOBAL_COMMENT  free text about the whole document; no anchor

Annotations are append-only: :meth:`Annotation.revised` returns a new record
with a fresh id instead of editing in place.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum

from pydantic import Field, model_validator

from .wire import WireModel


def now_ms() -> int:
    """Wall-clock milliseconds; only used to order annotations."""
    return time.time_ns() // 1_000_000


def new_annotation_id() -> str:
    return f"ann-{uuid.uuid4().hex[:12]}"


class AnnotationType(str, Enum):
    DELETION = "DELETION"
    INSERTION = "INSERTION"
    REPLACEMENT = "REPLACEMENT"
    COMMENT = "COMMENT"
    GLOBAL_COMMENT = "GLOBAL_COMMENT"

    @property
    def edits_file(self) -> bool:
        """True for the types that turn into a text edit."""
        return self in (
            AnnotationType.DELETION,
            AnnotationType.INSERTION,
            AnnotationType.REPLACEMENT,
        )


class ImageAttachment(WireModel):
    """An image attached to an annotation, with a human-readable name."""

    path: str
    name: str


class Annotation(WireModel):
    """One reviewer annotation.

    Fields
    ------
    original_text : str
        The anchor. Required for every type except ``GLOBAL_COMMENT``.
    text : str | None
        New content for INSERTION/REPLACEMENT (required, may be empty),
        optional remark for COMMENT/GLOBAL_COMMENT.
    created_at : int
        Milliseconds; orders annotations, nothing else.
    """

    id: str = Field(default_factory=new_annotation_id)
    type: AnnotationType
    original_text: str = ""
    text: str | None = None
    author: str | None = None
    images: list[ImageAttachment] | None = None
    created_at: int = Field(default_factory=now_ms)

    @model_validator(mode="after")
    def _check_anchor(self) -> Annotation:
        if self.type is not AnnotationType.GLOBAL_COMMENT and not self.original_text:
            raise ValueError(f"{self.type.value} annotation needs a non-empty originalText")
        if self.type in (AnnotationType.INSERTION, AnnotationType.REPLACEMENT) and self.text is None:
            raise ValueError(f"{self.type.value} annotation needs a text value")
        return self

    def revised(self, **changes: object) -> Annotation:
        """Return a new annotation with ``changes`` applied, a new id and timestamp."""
        data = self.model_dump()
        data.update(changes)
        data["id"] = new_annotation_id()
        data["created_at"] = now_ms()
        return Annotation.model_validate(data)


@dataclass(frozen=True, slots=True)
class AnchorSpan:
    """Half-open character range ``[start, end)`` where an anchor was found."""

    start: int
    end: int


def find_anchor(haystack: str, original_text: str) -> AnchorSpan | None:
    """Locate the first occurrence of ``original_text`` in ``haystack``.

    Returns ``None`` for an empty anchor or when the text is absent.

    Examples
    --------
    >>> find_anchor("alpha beta beta", "beta")
    AnchorSpan(start=6, end=10)
    """
    if not original_text:
        return None
    index = haystack.find(original_text)
    if index == -1:
        return None
    return AnchorSpan(start=index, end=index + len(original_text))


__all__ = [
    "AnchorSpan",
    "Annotation",
    "AnnotationType",
    "ImageAttachment",
    "find_anchor",
    "new_annotation_id",
    "now_ms",
]
