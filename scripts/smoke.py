# scripts/smoke.py
"""
Smoke Test Script for the Redline review flow.

Usage
-----
1. Run against a throwaway spec-kit project (created in a temp dir):
    $ uv run python scripts/smoke.py

2. Run against a real project, without writing anything back:
    $ uv run python scripts/smoke.py --root . --feature add-dark-mode --dry-run

Steps: detect the feature, combine it, round-trip the document through a share
link, then apply one deletion through the patch engine.
"""

import argparse
import logging
import sys
import tempfile
import traceback
from pathlib import Path

from dotenv import load_dotenv

from redline.core.contracts.annotation import Annotation, AnnotationType
from redline.patch.engine import apply_annotations
from redline.pipelines.speckit import combine_speckit, detect_context, no_spec_message
from redline.sharing.codec import format_url_size, fragment_from_url, generate_share_url, open_shared_state

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Test Data
# --------------------------------------------------------------------------- #
DEMO_FEATURE = "smoke-demo"
DEMO_FILES = {
    "spec.md": "# Smoke demo\n\nUsers can toggle a theme. This sentence goes away.\n",
    "plan.md": "Store the preference in local storage.\n",
    "tasks.md": "- [ ] Add toggle\n- [x] Write plan\n",
    "contracts/theme.md": "GET /theme returns the current theme.\n",
}
DEMO_DELETION = " This sentence goes away."


def _write_demo(root: Path) -> None:
    spec_dir = root / "specs" / DEMO_FEATURE
    for name, content in DEMO_FILES.items():
        path = spec_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    (root / "memory").mkdir(exist_ok=True)
    (root / "memory" / "constitution.md").write_text("Small, reviewable changes.\n", encoding="utf-8")


def run(root: Path, feature: str, *, dry_run: bool) -> int:
    """Execute the smoke test workflow; returns a process exit code."""
    ctx = detect_context(root, feature)
    if ctx is None:
        print(no_spec_message(feature))
        return 1

    # 1. Combine
    combined = combine_speckit(ctx)
    print(f"\n📄 Combined {len(combined.file_mappings)} file(s) for '{feature}'")
    for m in combined.file_mappings:
        ok = combined.document[m.start_offset : m.end_offset] == m.original_content
        print(f"  - {m.file_path} [{m.start_offset}, {m.end_offset}) {'✅' if ok else '❌'}")
    if combined.missing:
        print(f"⚠️  Missing required: {', '.join(combined.missing)}")

    # 2. Share round trip
    annotation = Annotation(
        type=AnnotationType.DELETION,
        original_text=DEMO_DELETION if DEMO_DELETION in combined.document else combined.document[:20],
    )
    url = generate_share_url(combined.document, [annotation])
    state = open_shared_state(fragment_from_url(url))
    if state is None or state.document != combined.document:
        print("❌ Share link did not round-trip")
        return 1
    print(f"\n🔗 Share link OK ({format_url_size(url)}, {len(state.annotations)} annotation(s))")

    # 3. Apply
    if dry_run:
        print("\n⏭️  Dry run: nothing written")
        return 0
    result = apply_annotations(state.annotations, combined.file_mappings, root=root)
    print(f"\n✏️  Modified: {result.modified_files or '-'}")
    for error in result.errors:
        print(f"  ⚠️  {error}")
    return 0 if result.success else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Redline Smoke Test")
    parser.add_argument("--root", "-r", type=str, help="Project root (default: temp demo project)")
    parser.add_argument("--feature", "-f", type=str, default=DEMO_FEATURE, help="Feature name")
    parser.add_argument("--dry-run", action="store_true", help="Skip writing files back")
    args = parser.parse_args()

    try:
        if args.root:
            code = run(Path(args.root), args.feature, dry_run=args.dry_run)
        else:
            with tempfile.TemporaryDirectory() as tmp:
                print(f"\n📂 Using demo project in {tmp}")
                _write_demo(Path(tmp))
                code = run(Path(tmp), DEMO_FEATURE, dry_run=args.dry_run)
    except Exception as exc:
        print(f"\n❌ Smoke run crashed: {exc}")
        traceback.print_exc()
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
