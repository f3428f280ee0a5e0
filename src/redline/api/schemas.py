"""
Request/response models of the review API.

The shapes follow what the review UI already sends and expects: camelCase
keys, a free-form ``feedback`` string and a list of annotations on approval.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from redline.core.contracts.annotation import Annotation
from redline.core.contracts.wire import WireModel


class ReviewMode(str, Enum):
    SPECKIT = "speckit"
    ANNOTATE = "annotate"


class MappingInfo(WireModel):
    """A file mapping without its content (the UI only needs the ranges)."""

    file_path: str
    start_offset: int
    end_offset: int


class PlanResponse(WireModel):
    plan: str
    origin: str
    mode: ReviewMode
    feature_name: str | None = None
    sharing_enabled: bool = True
    file_mappings: list[MappingInfo] = Field(default_factory=list)


class ApproveRequest(WireModel):
    """Patch submission: optional feedback plus the annotations to apply."""

    feedback: str | None = None
    annotations: list[Annotation] = Field(default_factory=list)


class ApproveResponse(WireModel):
    ok: Literal[True] = True
    modified_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class DenyRequest(WireModel):
    feedback: str | None = None


class AckResponse(WireModel):
    ok: Literal[True] = True


class Decision(WireModel):
    """The reviewer's verdict for a session."""

    approved: bool
    feedback: str | None = None
    modified_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


__all__ = [
    "AckResponse",
    "ApproveRequest",
    "ApproveResponse",
    "Decision",
    "DenyRequest",
    "MappingInfo",
    "PlanResponse",
    "ReviewMode",
]
