"""Unit tests for the document combiner and its offset bookkeeping."""

from __future__ import annotations

from redline.core.contracts.document import SourceDocument
from redline.document.combiner import DocumentBuilder, combine


def test_mappings_slice_back_to_trimmed_content() -> None:
    """Every mapping slices the combined document back to the stripped source."""
    sources = [
        SourceDocument(path="spec.md", content="\n# Spec\n\nBody text\n\n", required=True, label="Specification"),
        SourceDocument(path="plan.md", content="  plan line  ", required=True, label="Technical Plan"),
        SourceDocument(path="notes.md", content="n", label="Notes"),
    ]
    combined = combine(sources)

    assert [m.file_path for m in combined.file_mappings] == ["spec.md", "plan.md", "notes.md"]
    for source, mapping in zip(sources, combined.file_mappings, strict=True):
        assert combined.document[mapping.start_offset : mapping.end_offset] == (source.content or "").strip()
        assert mapping.original_content == (source.content or "").strip()


def test_missing_required_file_gets_placeholder_and_no_mapping() -> None:
    combined = combine(
        [
            SourceDocument(path="spec.md", content="# A", required=True, label="Specification"),
            SourceDocument(path="specs/x/plan.md", content=None, required=True, label="Technical Plan"),
        ]
    )

    assert [m.file_path for m in combined.file_mappings] == ["spec.md"]
    assert combined.missing == ["specs/x/plan.md"]
    assert "## Technical Plan" in combined.document
    assert "*plan.md not found - please create this file*" in combined.document


def test_optional_missing_file_is_skipped() -> None:
    combined = combine(
        [
            SourceDocument(path="spec.md", content="# A", required=True, label="Specification"),
            SourceDocument(path="research.md", content=None, label="Research"),
        ]
    )
    assert "Research" not in combined.document
    assert combined.missing == []


def test_empty_content_counts_as_absent() -> None:
    combined = combine([SourceDocument(path="tasks.md", content="", required=True, label="Tasks")])
    assert combined.file_mappings == []
    assert combined.missing == ["tasks.md"]


def test_layout_and_trailing_whitespace() -> None:
    combined = combine([SourceDocument(path="a.md", content="alpha", label="A")])
    assert combined.document == "## A\n\nalpha\n\n---"


def test_order_is_caller_specified() -> None:
    combined = combine(
        [
            SourceDocument(path="z.md", content="zed", label="Z"),
            SourceDocument(path="a.md", content="ay", label="A"),
        ]
    )
    assert combined.document.index("## Z") < combined.document.index("## A")


def test_builder_offsets_survive_later_appends() -> None:
    """Appending after a mapping was taken never shifts that mapping."""
    builder = DocumentBuilder()
    builder.frontmatter({"feature": "demo"})
    builder.heading("Feature: demo", level=1)
    first = builder.add_source("one.md", " first ", label="One")
    builder.add_placeholder("two.md", label="Two")
    second = builder.add_source("three.md", "third", label="Three", level=3, separator="\n\n")
    builder.rule()
    combined = builder.build()

    assert combined.document.startswith("---\nfeature: demo\n---\n\n# Feature: demo\n\n## One\n\n")
    assert first.excerpt(combined.document) == "first"
    assert second.excerpt(combined.document) == "third"
    assert "### Three" in combined.document
    assert combined.included_files == ["one.md", "three.md"]
    assert combined.mapping_for(first.start_offset) == first
    assert combined.mapping_for(0) is None
