# src/redline/cli.py
"""
Redline Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Commands
--------
- **parse**: show the block structure of a markdown file.
- **combine**: build the combined review document for a spec-kit feature.
- **share**: turn a markdown file (plus annotations) into a share link.
- **open**: decode a share link and render its document and annotations.
- **apply**: write a set of annotations back into a feature's files.
- **review**: serve a feature for review and wait for approve/deny.

Usage
-----
    $ redline combine add-dark-mode --root .
    $ redline apply add-dark-mode --annotations review.json
    $ redline open "https://share.plannotator.ai/#rVJNa9ww..."
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from redline.api.schemas import Decision
from redline.api.server import run_review_server
from redline.api.session import ReviewSession
from redline.core.contracts.annotation import Annotation
from redline.core.contracts.patch import PatchResult
from redline.document.parser import parse_markdown
from redline.patch.engine import apply_annotations
from redline.pipelines.speckit import SpeckitDocument, combine_speckit, detect_context, no_spec_message
from redline.sharing.codec import (
    format_url_size,
    fragment_from_url,
    generate_share_url,
    open_shared_state,
)
from redline.sharing.compact import from_compact

# Ensure env vars (like REDLINE_PORT) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="Redline: annotate generated spec documents and write approved edits back.",
    rich_markup_mode="markdown",
    no_args_is_help=True,
)
console = Console()

RootOption = Annotated[
    Path,
    typer.Option(
        "--root",
        "-r",
        file_okay=False,
        dir_okay=True,
        help="Project root containing specs/ and memory/.",
    ),
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]❌ {message}[/bold red]")
    return typer.Exit(code=1)


def _load_annotations(path: Path) -> list[Annotation]:
    """
    Read annotations from a JSON file.

    The file holds a list whose items are either full annotation objects
    (``{"type": "DELETION", "originalText": ...}``) or compact share lists
    (``["D", "text", null]``).
    """
    data: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("annotations file must contain a JSON list")
    out: list[Annotation] = []
    for index, item in enumerate(data):
        if isinstance(item, list):
            out.append(from_compact(item, index))
        else:
            out.append(Annotation.model_validate(item))
    return out


def _load_feature(root: Path, feature: str) -> SpeckitDocument:
    ctx = detect_context(root, feature)
    if ctx is None:
        console.print(Panel(no_spec_message(feature), border_style="yellow"))
        raise typer.Exit(code=1)
    return combine_speckit(ctx)


def _render_patch_result(result: PatchResult) -> None:
    for path in result.modified_files:
        console.print(f" [green]✔[/green] {path}")
    for error in result.errors:
        console.print(f" [yellow]⚠️ {error}[/yellow]")
    if not result.modified_files and not result.errors:
        console.print("[dim]Nothing to apply.[/dim]")


def _render_decision(decision: Decision) -> None:
    verdict = "[bold green]Approved[/bold green]" if decision.approved else "[bold red]Denied[/bold red]"
    console.print(Panel.fit(verdict, title="Decision"))
    if decision.feedback:
        console.print(Markdown(decision.feedback))
    _render_patch_result(
        PatchResult(modified_files=decision.modified_files, errors=decision.errors)
    )


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def parse(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Markdown file."),
    ],
) -> None:
    """Show the blocks a markdown file parses into."""
    blocks = parse_markdown(file.read_text(encoding="utf-8"))

    table = Table(title=f"{file.name}: {len(blocks)} blocks")
    table.add_column("#", justify="right")
    table.add_column("Line", justify="right")
    table.add_column("Type")
    table.add_column("Level", justify="right")
    table.add_column("Content")
    for block in blocks:
        preview = block.content.splitlines()[0] if block.content else ""
        table.add_row(
            str(block.order),
            str(block.start_line),
            block.type + (f" ({block.language})" if block.language else ""),
            "" if block.level is None else str(block.level),
            preview[:60],
        )
    console.print(table)


@app.command()  # type: ignore[misc]
def combine(
    feature: Annotated[str, typer.Argument(help="Feature (branch) name under specs/.")],
    root: RootOption = Path("."),
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the combined markdown here."),
    ] = None,
) -> None:
    """Combine a spec-kit feature's documents into one markdown document."""
    combined = _load_feature(root, feature)

    if output is not None:
        output.write_text(combined.document + "\n", encoding="utf-8")
        console.print(f"[dim]Saved combined document to: {output}[/dim]")
    else:
        console.print(combined.document, markup=False, highlight=False)

    console.print(f"\n[bold]Included:[/bold] {', '.join(combined.included_files) or '-'}")
    if combined.missing:
        console.print(f"[yellow]Missing required:[/yellow] {', '.join(combined.missing)}")


@app.command()  # type: ignore[misc]
def share(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Markdown file."),
    ],
    annotations: Annotated[
        Path | None,
        typer.Option("--annotations", "-a", exists=True, help="JSON list of annotations."),
    ] = None,
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", help="Override the share base URL."),
    ] = None,
) -> None:
    """Print a share link for a markdown file and its annotations."""
    try:
        items = _load_annotations(annotations) if annotations else []
    except ValueError as e:
        raise _fail(f"Invalid annotations file: {e}") from e

    url = generate_share_url(file.read_text(encoding="utf-8"), items, base_url=base_url)
    console.print(url, markup=False, highlight=False, soft_wrap=True)
    console.print(f"[dim]{len(items)} annotation(s), {format_url_size(url)}[/dim]")


@app.command(name="open")  # type: ignore[misc]
def open_link(
    target: Annotated[str, typer.Argument(help="Share URL or bare fragment.")],
) -> None:
    """Decode a share link and show its document and annotations."""
    state = open_shared_state(fragment_from_url(target))
    if state is None:
        raise _fail("No shared state in this link.")

    console.print(Markdown(state.document))
    if not state.annotations:
        return

    table = Table(title=f"{len(state.annotations)} annotation(s)")
    table.add_column("Type")
    table.add_column("Anchor")
    table.add_column("Text")
    table.add_column("Author")
    for ann in state.annotations:
        table.add_row(
            ann.type.value,
            ann.original_text[:40],
            (ann.text or "")[:40],
            ann.author or "",
        )
    console.print(table)


@app.command()  # type: ignore[misc]
def apply(
    feature: Annotated[str, typer.Argument(help="Feature (branch) name under specs/.")],
    annotations: Annotated[
        Path,
        typer.Option("--annotations", "-a", exists=True, help="JSON list of annotations."),
    ],
    root: RootOption = Path("."),
) -> None:
    """Write annotations back into a feature's source files."""
    combined = _load_feature(root, feature)
    try:
        items = _load_annotations(annotations)
    except ValueError as e:
        raise _fail(f"Invalid annotations file: {e}") from e

    result = apply_annotations(items, combined.file_mappings, root=root)
    _render_patch_result(result)


@app.command()  # type: ignore[misc]
def review(
    feature: Annotated[str, typer.Argument(help="Feature (branch) name under specs/.")],
    root: RootOption = Path("."),
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to bind (default from settings)."),
    ] = None,
) -> None:
    """Serve a feature for review and wait for the reviewer's decision."""
    combined = _load_feature(root, feature)
    session = ReviewSession(combined, root=root, feature_name=combined.feature_name)

    def _announce(url: str) -> None:
        console.print(
            Panel.fit(
                f"Reviewing [bold]{feature}[/bold]\nOpen: [link={url}]{url}[/link]",
                border_style="cyan",
            )
        )

    try:
        decision = run_review_server(session, port=port, on_ready=_announce)
    except RuntimeError as e:
        raise _fail(str(e)) from e

    if decision is None:
        raise _fail("Review ended without a decision.")
    _render_decision(decision)


if __name__ == "__main__":
    app()
