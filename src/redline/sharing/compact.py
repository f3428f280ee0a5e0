"""Compact, positional encoding of annotations for share links.

Each annotation becomes a short list whose first element is a one-letter type
tag. Field names are not repeated, which keeps the compressed URL small:

===============  ==============================================
Deletion         ``["D", originalText, author, images?]``
Replacement      ``["R", originalText, text, author, images?]``
Comment          ``["C", originalText, text, author, images?]``
Insertion        ``["I", contextText, newText, author, images?]``
Global comment   ``["G", text, author, images?]``
===============  ==============================================

``author`` is ``null`` when unknown, ``text`` is ``""`` when unset, and the
trailing ``images`` list (``[[path, name], ...]``) is only written when the
annotation has images. Decoding treats any missing trailing field as absent.

Ids, timestamps and anchor positions are not encoded. Decoded annotations get
fresh ids and increasing ``created_at`` values that keep the list order.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import Any

from redline.core.contracts.annotation import Annotation, AnnotationType, ImageAttachment, now_ms
from redline.core.contracts.share import ShareableImage

_TAG_FOR: dict[AnnotationType, str] = {
    AnnotationType.DELETION: "D",
    AnnotationType.REPLACEMENT: "R",
    AnnotationType.COMMENT: "C",
    AnnotationType.INSERTION: "I",
    AnnotationType.GLOBAL_COMMENT: "G",
}
_TYPE_FOR: dict[str, AnnotationType] = {tag: kind for kind, tag in _TAG_FOR.items()}
_EXTENSION = re.compile(r"\.[^.]+$")


# --------------------------------------------------------------------------- #
# Images
# --------------------------------------------------------------------------- #


def to_shareable_images(images: Sequence[ImageAttachment] | None) -> list[ShareableImage] | None:
    """Encode attachments as ``[path, name]`` pairs; ``None`` when there are none."""
    if not images:
        return None
    return [[img.path, img.name] for img in images]


def from_shareable_images(raw: Sequence[Any] | None) -> list[ImageAttachment] | None:
    """Decode image refs, accepting both ``[path, name]`` pairs and legacy path strings.

    A legacy string gets its name from the file name minus its extension
    (``/tmp/a/shot.png`` -> ``shot``), or ``image`` when nothing is left.
    """
    if not raw:
        return None
    if isinstance(raw, str) or not isinstance(raw, Sequence):
        raise ValueError(f"Image references must be a list, got {raw!r}")
    out: list[ImageAttachment] = []
    for item in raw:
        if isinstance(item, str):
            name = _EXTENSION.sub("", PurePosixPath(item).name)
            out.append(ImageAttachment(path=item, name=name or "image"))
        elif isinstance(item, list | tuple) and len(item) >= 2:
            out.append(ImageAttachment(path=str(item[0]), name=str(item[1])))
        else:
            raise ValueError(f"Unrecognized image reference: {item!r}")
    return out


# --------------------------------------------------------------------------- #
# Annotations
# --------------------------------------------------------------------------- #


def to_compact(annotation: Annotation) -> list[Any]:
    """Encode one annotation as its positional list."""
    tag = _TAG_FOR[annotation.type]
    author = annotation.author or None

    item: list[Any]
    if tag == "G":
        item = ["G", annotation.text or "", author]
    elif tag == "D":
        item = ["D", annotation.original_text, author]
    else:
        item = [tag, annotation.original_text, annotation.text or "", author]

    images = to_shareable_images(annotation.images)
    if images is not None:
        item.append(images)
    return item


def _field(item: Sequence[Any], index: int) -> Any:
    return item[index] if len(item) > index else None


def from_compact(item: Sequence[Any], index: int = 0, *, now: int | None = None) -> Annotation:
    """Decode one positional list back into an :class:`Annotation`.

    Parameters
    ----------
    item : Sequence[Any]
        The compact list, e.g. ``["D", "text", None]``.
    index : int
        Position in the shared list; used for the id and to keep ordering.
    now : int | None
        Timestamp base in milliseconds (defaults to the current time).

    Raises
    ------
    ValueError
        If the item is not a list, has an unknown tag, or fails validation.
    """
    if isinstance(item, str | bytes) or not isinstance(item, Sequence) or not item:
        raise ValueError(f"Compact annotation must be a non-empty list, got {item!r}")
    tag = item[0]
    if not isinstance(tag, str) or tag not in _TYPE_FOR:
        raise ValueError(f"Unknown annotation tag: {tag!r}")

    kind = _TYPE_FOR[tag]
    base = now_ms() if now is None else now

    if tag == "G":
        original, text, author, images = "", _field(item, 1), _field(item, 2), _field(item, 3)
    elif tag == "D":
        original, text, author, images = _field(item, 1), None, _field(item, 2), _field(item, 3)
    else:
        original, text, author, images = (
            _field(item, 1),
            _field(item, 2),
            _field(item, 3),
            _field(item, 4),
        )

    if kind in (AnnotationType.COMMENT, AnnotationType.GLOBAL_COMMENT):
        text = text or None
    elif kind in (AnnotationType.INSERTION, AnnotationType.REPLACEMENT) and text is None:
        text = ""

    return Annotation(
        id=f"shared-{index}-{base}",
        type=kind,
        original_text=original or "",
        text=text,
        author=author or None,
        images=from_shareable_images(images),
        created_at=base + index,
    )


def to_shareable(annotations: Sequence[Annotation]) -> list[list[Any]]:
    """Encode a list of annotations, preserving order."""
    return [to_compact(ann) for ann in annotations]


def from_shareable(items: Sequence[Sequence[Any]]) -> list[Annotation]:
    """Decode a list of compact annotations, preserving order."""
    base = now_ms()
    return [from_compact(item, index, now=base) for index, item in enumerate(items)]


__all__ = [
    "from_compact",
    "from_shareable",
    "from_shareable_images",
    "to_compact",
    "to_shareable",
    "to_shareable_images",
]
