"""Pipeline entry points for Redline.

Currently exposed:

- :func:`detect_context` / :func:`combine_speckit`: build a reviewable
  document from a spec-kit feature directory (``speckit.py``).
"""

from __future__ import annotations

from .speckit import SpeckitContext, SpeckitDocument, combine_speckit, detect_context

__all__ = ["SpeckitContext", "SpeckitDocument", "combine_speckit", "detect_context"]
