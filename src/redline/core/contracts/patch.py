"""PatchResult: the outcome of one "apply annotations" call."""

from __future__ import annotations

from pydantic import Field, computed_field

from .wire import WireModel


class PatchResult(WireModel):
    """Files written and problems met while applying annotations.

    Expected failures (missing anchors, overlapping edits, unreadable or
    unwritable files) end up in ``errors``; the caller decides whether they
    block approval.
    """

    modified_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors


__all__ = ["PatchResult"]
