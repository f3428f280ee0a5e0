"""Share codec: document + annotations <-> URL-safe text.

Pipeline
--------
compress::

    SharePayload -> compact JSON -> UTF-8 bytes -> raw DEFLATE
                 -> base64 -> base64url ("+"->"-", "/"->"_", no "=")

decompress runs the same steps backwards. Raw DEFLATE means no zlib or gzip
header (``wbits=-15``), which is what browsers produce for ``deflate-raw``.
Padding is recomputed from the length, so stripped fragments decode fine.

Failure model
-------------
Every decoding problem (bad alphabet, bad length, corrupt or truncated
stream, trailing bytes, oversized or too deeply nested JSON, invalid UTF-8,
invalid JSON, wrong envelope shape) is reported as one
exception type, :class:`NoSharedState`. Callers that load a link from a URL
use :func:`open_shared_state`, which turns that into ``None``.
"""

from __future__ import annotations

import base64
import binascii
import json
import zlib
from collections.abc import Sequence
from urllib.parse import urlsplit

from pydantic import ValidationError

from redline.core.contracts.annotation import Annotation, AnchorSpan, ImageAttachment, find_anchor
from redline.core.contracts.share import SharePayload, SharedState
from redline.core.settings import get_logger, load_settings

from .compact import from_shareable, from_shareable_images, to_shareable, to_shareable_images

logger = get_logger(__name__)

_RAW_DEFLATE = -15
# Upper bound on the inflated JSON of one link.
MAX_INFLATED_BYTES = 8 * 1024 * 1024


class NoSharedState(ValueError):
    """The given text does not hold a usable share payload."""


# --------------------------------------------------------------------------- #
# Codec
# --------------------------------------------------------------------------- #


def _to_base64url(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").replace("+", "-").replace("/", "_").rstrip("=")


def _from_base64url(text: str) -> bytes:
    standard = text.strip().replace("-", "+").replace("_", "/")
    standard += "=" * (-len(standard) % 4)
    return base64.b64decode(standard, validate=True)


def compress(payload: SharePayload) -> str:
    """Serialize ``payload`` into a URL-safe string.

    Examples
    --------
    >>> p = SharePayload(document="# A", annotations=[["D", "A", None]])
    >>> decompress(compress(p)) == p
    True
    """
    text = json.dumps(payload.to_json_obj(), ensure_ascii=False, separators=(",", ":"))
    deflater = zlib.compressobj(9, zlib.DEFLATED, _RAW_DEFLATE)
    raw = deflater.compress(text.encode("utf-8")) + deflater.flush()
    return _to_base64url(raw)


def decompress(text: str) -> SharePayload:
    """Reverse :func:`compress`.

    Raises
    ------
    NoSharedState
        On any decoding failure, whatever the stage.
    """
    try:
        raw = _from_base64url(text)
        inflater = zlib.decompressobj(_RAW_DEFLATE)
        data = inflater.decompress(raw, MAX_INFLATED_BYTES)
        if inflater.unconsumed_tail:
            raise NoSharedState(f"decompressed payload exceeds {MAX_INFLATED_BYTES} bytes")
        data += inflater.flush()
        if len(data) > MAX_INFLATED_BYTES:
            raise NoSharedState(f"decompressed payload exceeds {MAX_INFLATED_BYTES} bytes")
        if not inflater.eof:
            raise NoSharedState("compressed stream is truncated")
        if inflater.unused_data:
            raise NoSharedState("unexpected bytes after the compressed stream")
        obj = json.loads(data.decode("utf-8"))
        return SharePayload.model_validate(obj)
    except NoSharedState:
        raise
    except (
        binascii.Error,
        zlib.error,
        UnicodeDecodeError,
        ValidationError,
        ValueError,
        RecursionError,
    ) as exc:
        raise NoSharedState(str(exc)) from exc


# --------------------------------------------------------------------------- #
# Shared state
# --------------------------------------------------------------------------- #


def share_state(
    document: str,
    annotations: Sequence[Annotation],
    global_attachments: Sequence[ImageAttachment] | None = None,
) -> SharePayload:
    """Build the wire envelope for a document and its annotations."""
    return SharePayload(
        document=document,
        annotations=to_shareable(annotations),
        global_attachments=to_shareable_images(global_attachments),
    )


def expand_payload(payload: SharePayload) -> SharedState:
    """Turn a wire envelope into full annotation records.

    Raises
    ------
    NoSharedState
        If an annotation entry cannot be decoded.
    """
    try:
        annotations = from_shareable(payload.annotations)
        attachments = from_shareable_images(payload.global_attachments) or []
    except (ValueError, RecursionError) as exc:
        raise NoSharedState(str(exc)) from exc
    return SharedState(
        document=payload.document,
        annotations=annotations,
        global_attachments=attachments,
    )


def open_shared_state(fragment: str | None) -> SharedState | None:
    """Decode a URL fragment, or return ``None`` when there is nothing usable."""
    if not fragment:
        return None
    try:
        return expand_payload(decompress(fragment.lstrip("#")))
    except NoSharedState as exc:
        logger.warning("Failed to parse share fragment: %s", exc)
        return None


def restore_anchors(state: SharedState) -> dict[str, AnchorSpan | None]:
    """Re-locate every annotation in the decoded document by its anchor text.

    Positions are never shipped in a link; this recomputes them. Global
    comments and anchors that no longer occur map to ``None``.
    """
    return {ann.id: find_anchor(state.document, ann.original_text) for ann in state.annotations}


# --------------------------------------------------------------------------- #
# URLs
# --------------------------------------------------------------------------- #


def generate_share_url(
    markdown: str,
    annotations: Sequence[Annotation],
    global_attachments: Sequence[ImageAttachment] | None = None,
    base_url: str | None = None,
) -> str:
    """Return ``<base_url>/#<fragment>`` for the given review state."""
    base = (base_url or load_settings().share_base_url).rstrip("/")
    fragment = compress(share_state(markdown, annotations, global_attachments))
    return f"{base}/#{fragment}"


def fragment_from_url(url: str) -> str:
    """Return the fragment of ``url``; a bare fragment is returned unchanged."""
    if "#" not in url and "://" not in url:
        return url.strip()
    return urlsplit(url).fragment


def format_url_size(url: str) -> str:
    """Human readable UTF-8 size of ``url`` (``"512 B"``, ``"2.5 KB"``)."""
    size = len(url.encode("utf-8"))
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.1f} KB"


__all__ = [
    "MAX_INFLATED_BYTES",
    "NoSharedState",
    "compress",
    "decompress",
    "expand_payload",
    "format_url_size",
    "fragment_from_url",
    "generate_share_url",
    "open_shared_state",
    "restore_anchors",
    "share_state",
]
