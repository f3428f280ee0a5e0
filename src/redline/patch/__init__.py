"""File patch engine: apply annotations back to the source files."""

from __future__ import annotations

from .engine import TextEdit, WorkingSnapshot, apply_annotations, apply_edits, plan_edits

__all__ = ["TextEdit", "WorkingSnapshot", "apply_annotations", "apply_edits", "plan_edits"]
