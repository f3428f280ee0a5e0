"""
File patch engine: write approved annotations back into their source files.

Flow
----
1. **Snapshot**: read every mapped file once, up front, into an immutable
   :class:`WorkingSnapshot`. No file is written before all reads finish.
2. **Locate**: for each editing annotation, search the snapshots in mapping
   order; the first file containing ``original_text`` wins, at its first
   occurrence. Unanchored annotations are reported and skipped.
3. **Plan**: turn each located annotation into a :class:`TextEdit`
   (deletion and replacement cover the anchor, insertion is a zero-length
   edit right after it). Comments never edit.
4. **Apply**: per file, apply edits from the highest start offset down, so
   earlier offsets stay valid while later text changes length.
5. **Write**: overwrite each modified file in full; one failed write does not
   stop the others.

Expected problems never raise. They are collected in
:attr:`PatchResult.errors` and the caller decides what to do with them.

Overlapping edits
-----------------
Two edits in one file whose ranges overlap cannot both be applied
meaningfully. Edits are accepted in submission order; a later edit that
overlaps an accepted one is rejected with an error. Insertions at the same
point do not overlap and keep their submission order in the output.

The snapshot is not refreshed during a call. If a file changes on disk after
it was read, the edits computed against the old content are written anyway.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from redline.core.contracts.annotation import Annotation, AnnotationType, find_anchor
from redline.core.contracts.document import FileMapping
from redline.core.contracts.patch import PatchResult
from redline.core.settings import get_logger

logger = get_logger(__name__)

_EXCERPT = 50


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``[start, end)`` of one file's content with ``replacement``.

    ``seq`` is the submission index of the annotation that produced the edit.
    """

    start: int
    end: int
    replacement: str
    annotation_id: str
    seq: int

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: TextEdit) -> bool:
        """True when both edits touch the same characters.

        Two insertion points never overlap. An insertion point overlaps an
        edit only when it falls strictly inside that edit's range.
        """
        if self.is_insertion and other.is_insertion:
            return False
        if self.is_insertion:
            return other.start < self.start < other.end
        if other.is_insertion:
            return self.start < other.start < self.end
        return self.start < other.end and other.start < self.end


class WorkingSnapshot(Mapping[str, str]):
    """Immutable ``path -> content`` view taken once at the start of an apply.

    Iteration follows the order the paths were read in (mapping order).
    Looking up a path that was never read raises ``KeyError``.
    """

    __slots__ = ("_contents",)

    def __init__(self, contents: Mapping[str, str]) -> None:
        self._contents: Mapping[str, str] = MappingProxyType(dict(contents))

    def __getitem__(self, path: str) -> str:
        return self._contents[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._contents)

    def __len__(self) -> int:
        return len(self._contents)


# --------------------------------------------------------------------------- #
# File I/O
# --------------------------------------------------------------------------- #


def _resolve(path: str, root: Path | None) -> Path:
    p = Path(path)
    if root is not None and not p.is_absolute():
        return root / p
    return p


def read_text(path: Path) -> str:
    """Read a whole file as UTF-8, keeping line endings untouched."""
    with path.open("r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    """Overwrite a whole file as UTF-8, writing line endings as given."""
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)


def _excerpt(text: str) -> str:
    return f"{text[:_EXCERPT]}..."


# --------------------------------------------------------------------------- #
# Phases
# --------------------------------------------------------------------------- #


def take_snapshot(
    paths: Iterable[str], *, root: Path | None = None
) -> tuple[WorkingSnapshot, list[str]]:
    """Read each distinct path once.

    Returns
    -------
    tuple[WorkingSnapshot, list[str]]
        The snapshot of readable files and one error per unreadable file.
    """
    contents: dict[str, str] = {}
    errors: list[str] = []
    for path in paths:
        if path in contents:
            continue
        try:
            contents[path] = read_text(_resolve(path, root))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            errors.append(f"Failed to read {path}: {exc}")
    return WorkingSnapshot(contents), errors


def edit_for(annotation: Annotation, start: int, seq: int) -> TextEdit | None:
    """Build the edit for ``annotation`` anchored at ``start``; ``None`` for comments."""
    anchor_end = start + len(annotation.original_text)
    if annotation.type is AnnotationType.DELETION:
        return TextEdit(start, anchor_end, "", annotation.id, seq)
    if annotation.type is AnnotationType.REPLACEMENT:
        return TextEdit(start, anchor_end, annotation.text or "", annotation.id, seq)
    if annotation.type is AnnotationType.INSERTION:
        return TextEdit(anchor_end, anchor_end, annotation.text or "", annotation.id, seq)
    return None


def plan_edits(
    annotations: Sequence[Annotation], snapshot: WorkingSnapshot
) -> tuple[dict[str, list[TextEdit]], list[str]]:
    """Locate every editing annotation and group the resulting edits by file.

    Parameters
    ----------
    annotations : Sequence[Annotation]
        Annotations in submission order.
    snapshot : WorkingSnapshot
        Searched in its iteration order; the first file containing the anchor wins.

    Returns
    -------
    tuple[dict[str, list[TextEdit]], list[str]]
        Accepted edits per path (submission order) and the errors met.
    """
    planned: dict[str, list[TextEdit]] = {path: [] for path in snapshot}
    errors: list[str] = []

    for seq, annotation in enumerate(annotations):
        if not annotation.type.edits_file:
            continue

        located: tuple[str, int] | None = None
        for path in snapshot:
            span = find_anchor(snapshot[path], annotation.original_text)
            if span is not None:
                located = (path, span.start)
                break

        if located is None:
            message = f'Could not find text "{_excerpt(annotation.original_text)}" in any source file'
            logger.warning(message)
            errors.append(message)
            continue

        path, start = located
        edit = edit_for(annotation, start, seq)
        if edit is None:
            continue

        if any(edit.overlaps(accepted) for accepted in planned[path]):
            message = (
                f'Skipped overlapping edit for "{_excerpt(annotation.original_text)}" in {path}'
            )
            logger.warning(message)
            errors.append(message)
            continue

        planned[path].append(edit)

    return {path: edits for path, edits in planned.items() if edits}, errors


def apply_edits(content: str, edits: Iterable[TextEdit]) -> str:
    """Apply non-overlapping ``edits`` to ``content`` from the end backwards.

    At one start offset the ranged edit goes first, then the insertions with
    the later submission first. Insertions therefore survive a deletion or
    replacement starting at their point, and keep submission order.
    """
    out = content
    ordered = sorted(edits, key=lambda e: (e.start, not e.is_insertion, e.seq), reverse=True)
    for edit in ordered:
        out = out[: edit.start] + edit.replacement + out[edit.end :]
    return out


def apply_annotations(
    annotations: Sequence[Annotation],
    file_mappings: Sequence[FileMapping],
    *,
    root: Path | None = None,
) -> PatchResult:
    """Apply ``annotations`` to the files named by ``file_mappings``.

    Parameters
    ----------
    annotations : Sequence[Annotation]
        Reviewer annotations in submission order.
    file_mappings : Sequence[FileMapping]
        Mappings from the combined document; their order is the search order.
    root : Path | None
        Base directory for relative mapping paths (default: current directory).

    Returns
    -------
    PatchResult
        Files written and every error met along the way.
    """
    snapshot, errors = take_snapshot((m.file_path for m in file_mappings), root=root)
    planned, plan_errors = plan_edits(annotations, snapshot)
    errors.extend(plan_errors)

    modified: list[str] = []
    for path, edits in planned.items():
        new_content = apply_edits(snapshot[path], edits)
        try:
            write_text(_resolve(path, root), new_content)
        except OSError as exc:
            logger.warning("Failed to write %s: %s", path, exc)
            errors.append(f"Failed to write to {path}: {exc}")
            continue
        modified.append(path)

    logger.info(
        "Applied %d annotation(s): %d file(s) modified, %d error(s)",
        len(annotations),
        len(modified),
        len(errors),
    )
    return PatchResult(modified_files=modified, errors=errors)


__all__ = [
    "TextEdit",
    "WorkingSnapshot",
    "apply_annotations",
    "apply_edits",
    "edit_for",
    "plan_edits",
    "read_text",
    "take_snapshot",
    "write_text",
]
