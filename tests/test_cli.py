# tests/test_cli.py
"""
Tests for the Redline command-line interface (CLI).

Scope
-----
1.  **Command Registration**: `--help` lists the commands.
2.  **Argument Validation**: Typer's `exists=True` checks for input files.
3.  **Round trips**: `share` output can be fed back into `open`.
4.  **Error Handling**: missing features and bad links exit with code 1.

We use `typer.testing.CliRunner` to invoke the app in-process. Assertions
check `result.output` (combined stdout/stderr).
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from redline.cli import app


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    return CliRunner()


def test_cli_help_shows_commands(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, result.output
    for command in ("parse", "combine", "share", "open", "apply", "review"):
        assert command in result.output


def test_parse_lists_blocks(runner: CliRunner, tmp_path: Path) -> None:
    md = tmp_path / "doc.md"
    md.write_text("# Title\n\nSome text.\n\n- item\n", encoding="utf-8")

    result = runner.invoke(app, ["parse", str(md)])
    assert result.exit_code == 0, result.output
    assert "3 blocks" in result.output
    assert "heading" in result.output


def test_parse_fails_on_missing_file(runner: CliRunner) -> None:
    result = runner.invoke(app, ["parse", "ghost.md"])
    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_combine_prints_document(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(app, ["combine", "dark-mode", "--root", str(project)])
    assert result.exit_code == 0, result.output
    assert "# Feature: dark-mode" in result.output
    assert "Missing required:" in result.output


def test_combine_writes_output_file(runner: CliRunner, project: Path, tmp_path: Path) -> None:
    out = tmp_path / "combined.md"
    result = runner.invoke(app, ["combine", "dark-mode", "-r", str(project), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8").startswith("---\nfeature: dark-mode\n")


def test_combine_unknown_feature_shows_setup_help(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(app, ["combine", "ghost", "--root", str(project)])
    assert result.exit_code == 1
    assert "No specification directory found" in result.output


def test_share_then_open(runner: CliRunner, tmp_path: Path) -> None:
    md = tmp_path / "plan.md"
    md.write_text("# Plan\n\nDrop this sentence.\n", encoding="utf-8")
    notes = tmp_path / "notes.json"
    notes.write_text(json.dumps([["D", "Drop this sentence.", None]]), encoding="utf-8")

    shared = runner.invoke(
        app, ["share", str(md), "-a", str(notes), "--base-url", "https://example.test"]
    )
    assert shared.exit_code == 0, shared.output
    url = shared.output.splitlines()[0].strip()
    assert url.startswith("https://example.test/#")
    assert "1 annotation(s)" in shared.output

    opened = runner.invoke(app, ["open", url])
    assert opened.exit_code == 0, opened.output
    assert "Plan" in opened.output
    assert "1 annotation(s)" in opened.output


def test_open_rejects_corrupt_link(runner: CliRunner) -> None:
    result = runner.invoke(app, ["open", "https://example.test/#%%%garbage"])
    assert result.exit_code == 1
    assert "No shared state" in result.output


def test_apply_writes_annotations(runner: CliRunner, project: Path, tmp_path: Path) -> None:
    notes = tmp_path / "review.json"
    notes.write_text(
        json.dumps(
            [
                ["D", "Remove me. ", None],
                {"type": "REPLACEMENT", "originalText": "CSS variables", "text": "tokens"},
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["apply", "dark-mode", "-a", str(notes), "--root", str(project)])
    assert result.exit_code == 0, result.output
    spec = (project / "specs/dark-mode/spec.md").read_text(encoding="utf-8")
    assert spec == "# Dark mode\n\nKeep this. Keep that.\n"
    assert (project / "specs/dark-mode/plan.md").read_text(encoding="utf-8") == "Use tokens.\n"


def test_apply_rejects_non_list_file(runner: CliRunner, project: Path, tmp_path: Path) -> None:
    notes = tmp_path / "review.json"
    notes.write_text('{"type": "DELETION"}', encoding="utf-8")

    result = runner.invoke(app, ["apply", "dark-mode", "-a", str(notes), "--root", str(project)])
    assert result.exit_code == 1
    assert "Invalid annotations file" in result.output
