"""Share links: compact annotation encoding and the URL codec."""

from __future__ import annotations

from .codec import (
    NoSharedState,
    compress,
    decompress,
    generate_share_url,
    open_shared_state,
    share_state,
)
from .compact import from_compact, from_shareable, to_compact, to_shareable

__all__ = [
    "NoSharedState",
    "compress",
    "decompress",
    "from_compact",
    "from_shareable",
    "generate_share_url",
    "open_shared_state",
    "share_state",
    "to_compact",
    "to_shareable",
]
