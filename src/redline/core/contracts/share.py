"""Share contracts: the compact URL envelope and its decoded view.

``SharePayload`` is exactly what travels inside a share link. Keys are one
letter (``p``, ``a``, ``g``) and annotations are positional lists to keep the
compressed fragment short; see :mod:`redline.sharing.compact` for the list
layout.

``SharedState`` is the same information after the compact annotations have
been expanded back into :class:`Annotation` records. Anchor positions are
never part of either model; they are recomputed from the document.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from .annotation import Annotation, ImageAttachment
from .wire import WireModel

# Either a legacy plain path string or a ``[path, name]`` pair.
ShareableImage = str | list[str]


class SharePayload(WireModel):
    """Wire envelope of a share link."""

    document: str = Field(alias="p")
    annotations: list[list[Any]] = Field(default_factory=list, alias="a")
    global_attachments: list[ShareableImage] | None = Field(default=None, alias="g")

    def to_json_obj(self) -> dict[str, Any]:
        """Return the envelope as a plain dict; ``g`` is left out when unset."""
        obj: dict[str, Any] = {"p": self.document, "a": self.annotations}
        if self.global_attachments is not None:
            obj["g"] = self.global_attachments
        return obj


class SharedState(WireModel):
    """A review session restored from a share link."""

    document: str
    annotations: list[Annotation] = Field(default_factory=list)
    global_attachments: list[ImageAttachment] = Field(default_factory=list)


__all__ = ["ShareableImage", "SharePayload", "SharedState"]
