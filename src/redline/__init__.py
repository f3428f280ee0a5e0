"""Redline: review generated spec documents and write approved edits back.

The package is split into the document model (parser, combiner), the
annotation contracts, the share codec and the file patch engine. The API and
CLI layers are thin shells over those pieces.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
