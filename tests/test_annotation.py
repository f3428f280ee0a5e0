"""Tests for the annotation contract and anchor lookup."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from redline.core.contracts.annotation import (
    AnchorSpan,
    Annotation,
    AnnotationType,
    ImageAttachment,
    find_anchor,
)


def test_wire_names_are_camel_case() -> None:
    ann = Annotation.model_validate(
        {"type": "REPLACEMENT", "originalText": "old", "text": "new", "createdAt": 5}
    )
    assert ann.original_text == "old"
    wire = ann.to_wire()
    assert wire["originalText"] == "old"
    assert wire["createdAt"] == 5
    assert "original_text" not in wire


def test_anchor_required_except_global_comment() -> None:
    with pytest.raises(ValidationError):
        Annotation(type=AnnotationType.DELETION, original_text="")
    with pytest.raises(ValidationError):
        Annotation(type=AnnotationType.COMMENT)

    glob = Annotation(type=AnnotationType.GLOBAL_COMMENT, text="overall fine")
    assert glob.original_text == ""


def test_text_required_for_insertion_and_replacement() -> None:
    with pytest.raises(ValidationError):
        Annotation(type=AnnotationType.INSERTION, original_text="ctx")
    with pytest.raises(ValidationError):
        Annotation(type=AnnotationType.REPLACEMENT, original_text="old")
    # Empty replacement text is allowed.
    assert Annotation(type=AnnotationType.REPLACEMENT, original_text="old", text="").text == ""


def test_annotations_are_frozen_and_revised_as_new_records() -> None:
    ann = Annotation(
        type=AnnotationType.COMMENT,
        original_text="x",
        text="first",
        images=[ImageAttachment(path="/tmp/a.png", name="a")],
    )
    with pytest.raises(ValidationError):
        ann.text = "changed"  # type: ignore[misc]

    newer = ann.revised(text="second")
    assert newer.id != ann.id
    assert newer.text == "second"
    assert newer.created_at >= ann.created_at
    assert newer.images == ann.images
    assert ann.text == "first"


def test_edits_file_flag() -> None:
    assert AnnotationType.DELETION.edits_file
    assert AnnotationType.INSERTION.edits_file
    assert AnnotationType.REPLACEMENT.edits_file
    assert not AnnotationType.COMMENT.edits_file
    assert not AnnotationType.GLOBAL_COMMENT.edits_file


def test_find_anchor_first_occurrence() -> None:
    assert find_anchor("alpha beta beta", "beta") == AnchorSpan(start=6, end=10)
    assert find_anchor("alpha", "gamma") is None
    assert find_anchor("alpha", "") is None
