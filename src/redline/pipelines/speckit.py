"""
Spec-kit review layout: one feature directory -> one combined document.

A spec-kit project keeps each feature's documents under ``specs/<feature>/``
and an optional project constitution under ``memory/constitution.md``. This
module finds those files and lays them out as a single markdown document for
review, keeping a :class:`FileMapping` for every file so approved edits can be
written back.

Layout
------
::

    ---
    feature: <name>
    files: spec.md, plan.md, ... (missing: tasks.md)
    ---

    # Feature: <name>

    ## Constitution          (when memory/constitution.md exists)
    ## Specification         spec.md        (required)
    ## Technical Plan        plan.md        (required)
    ## Tasks                 tasks.md       (required)
    ## Research              research.md
    ## Data Model            data-model.md
    ## Quick Start           quickstart.md
    ## API Contracts         contracts/*.md, one "### <stem>" each

The feature name is supplied by the caller (usually the current git branch);
this module does not talk to git.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from redline.core.contracts.document import CombinedDocument
from redline.core.settings import get_logger
from redline.document.combiner import DocumentBuilder
from redline.patch.engine import read_text

logger = get_logger(__name__)

SPECS_DIR = "specs"
CONSTITUTION_PATH = "memory/constitution.md"
CONTRACTS_DIR = "contracts"
DETACHED_HEAD = "HEAD"


@dataclass(frozen=True, slots=True)
class SpecFile:
    name: str
    label: str
    required: bool = False


# Display order of the known feature documents.
SPEC_FILES: tuple[SpecFile, ...] = (
    SpecFile("spec.md", "Specification", required=True),
    SpecFile("plan.md", "Technical Plan", required=True),
    SpecFile("tasks.md", "Tasks", required=True),
    SpecFile("research.md", "Research"),
    SpecFile("data-model.md", "Data Model"),
    SpecFile("quickstart.md", "Quick Start"),
)


@dataclass(frozen=True)
class SpeckitContext:
    """What was found for one feature.

    Attributes
    ----------
    root : Path
        Project root; every other path here is relative to it (POSIX style).
    feature : str
        Feature (branch) name.
    spec_dir : str
        ``specs/<feature>``.
    found_files : list[str]
        Present documents, names relative to ``spec_dir`` (contracts as
        ``contracts/<file>.md``).
    missing_files : list[str]
        Required documents that do not exist.
    """

    root: Path
    feature: str
    spec_dir: str
    constitution_path: str = CONSTITUTION_PATH
    found_files: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)

    def relative(self, name: str) -> str:
        """Path of a feature document relative to the project root."""
        return str(PurePosixPath(self.spec_dir) / name)


class SpeckitDocument(CombinedDocument):
    """Combined spec-kit document plus the feature it was built for."""

    feature_name: str


def _read_optional(path: Path) -> str | None:
    """Return the file content, or ``None`` when it is missing or unreadable."""
    if not path.is_file():
        return None
    try:
        return read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable file %s: %s", path, exc)
        return None


def detect_context(root: Path, feature: str) -> SpeckitContext | None:
    """Look for ``specs/<feature>`` under ``root``.

    Returns ``None`` for a detached HEAD (``feature == "HEAD"``), an empty
    feature name, or when the directory does not exist.
    """
    if not feature or feature == DETACHED_HEAD:
        return None

    spec_dir = PurePosixPath(SPECS_DIR) / feature
    abs_dir = root / spec_dir
    if not abs_dir.is_dir():
        return None

    found: list[str] = []
    missing: list[str] = []
    for spec in SPEC_FILES:
        if (abs_dir / spec.name).exists():
            found.append(spec.name)
        elif spec.required:
            missing.append(spec.name)

    contracts_dir = abs_dir / CONTRACTS_DIR
    if contracts_dir.is_dir():
        found.extend(
            f"{CONTRACTS_DIR}/{p.name}" for p in sorted(contracts_dir.iterdir()) if p.suffix == ".md"
        )

    return SpeckitContext(
        root=root,
        feature=feature,
        spec_dir=str(spec_dir),
        found_files=found,
        missing_files=missing,
    )


def combine_speckit(ctx: SpeckitContext) -> SpeckitDocument:
    """Lay out every document of ``ctx`` as one markdown document with mappings."""
    builder = DocumentBuilder()

    missing = f" (missing: {', '.join(ctx.missing_files)})" if ctx.missing_files else ""
    builder.frontmatter({"feature": ctx.feature, "files": ", ".join(ctx.found_files) + missing})
    builder.heading(f"Feature: {ctx.feature}", level=1)

    constitution = _read_optional(ctx.root / ctx.constitution_path)
    if constitution:
        builder.add_source(ctx.constitution_path, constitution, label="Constitution")

    for spec in SPEC_FILES:
        rel = ctx.relative(spec.name)
        content = _read_optional(ctx.root / rel)
        if content:
            builder.add_source(rel, content, label=spec.label, display_name=spec.name)
        elif spec.required:
            builder.add_placeholder(rel, label=spec.label, name=spec.name)

    contracts = [f for f in ctx.found_files if f.startswith(f"{CONTRACTS_DIR}/")]
    if contracts:
        builder.heading("API Contracts")
        for contract in contracts:
            rel = ctx.relative(contract)
            content = _read_optional(ctx.root / rel)
            if content:
                builder.add_source(
                    rel,
                    content,
                    label=PurePosixPath(contract).stem,
                    level=3,
                    separator="\n\n",
                    display_name=contract,
                )
        builder.rule()

    combined = builder.build()
    logger.info(
        "Combined feature %s: %d file(s), missing %s",
        ctx.feature,
        len(combined.file_mappings),
        ctx.missing_files or "none",
    )
    return SpeckitDocument(
        feature_name=ctx.feature,
        document=combined.document,
        file_mappings=combined.file_mappings,
        missing=combined.missing,
        included_files=combined.included_files,
    )


def no_spec_message(feature: str) -> str:
    """Setup help shown when no spec directory exists for ``feature``."""
    if not feature or feature == DETACHED_HEAD:
        return """Spec Review

Cannot determine feature name from current git state.

Current state: detached HEAD

Please checkout a feature branch that corresponds to a spec directory:
  git checkout <feature-branch>

Or create a new feature branch:
  git checkout -b <feature-name>
  mkdir -p specs/<feature-name>
"""

    return f"""Spec Review

No specification directory found for branch "{feature}".

Expected location: specs/{feature}/

To set up spec-kit for this feature:
1. Create the directory:
   mkdir -p specs/{feature}

2. Add specification files:
   - spec.md (required) - Feature specification
   - plan.md (required) - Technical plan
   - tasks.md (required) - Implementation tasks
   - research.md (optional) - Research notes
   - data-model.md (optional) - Data structures
"""


__all__ = [
    "SPEC_FILES",
    "SpecFile",
    "SpeckitContext",
    "SpeckitDocument",
    "combine_speckit",
    "detect_context",
    "no_spec_message",
]
