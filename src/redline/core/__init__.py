"""Core package initializer for Redline.

Holds configuration (``redline.core.settings``) and the pydantic contracts
(``redline.core.contracts``) shared by every other layer.
"""

from __future__ import annotations

__all__ = ["__doc__"]
