"""Shared fixtures: a small spec-kit project on disk."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from redline.core.settings import load_settings


def _write_feature(root: Path, feature: str, files: dict[str, str]) -> Path:
    """Create ``specs/<feature>/`` under ``root`` holding ``files``."""
    spec_dir = root / "specs" / feature
    spec_dir.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        path = spec_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return spec_dir


@pytest.fixture  # type: ignore[misc]
def project(tmp_path: Path) -> Path:
    """A project with a constitution and a feature missing ``tasks.md``."""
    (tmp_path / "memory").mkdir()
    (tmp_path / "memory" / "constitution.md").write_text("Principles first.\n", encoding="utf-8")
    _write_feature(
        tmp_path,
        "dark-mode",
        {
            "spec.md": "# Dark mode\n\nKeep this. Remove me. Keep that.\n",
            "plan.md": "Use CSS variables.\n",
            "research.md": "\n\nPrior art.\n\n",
            "contracts/theme.md": "GET /theme\n",
            "contracts/api.md": "POST /prefs\n",
            "contracts/notes.txt": "not a contract",
        },
    )
    return tmp_path


@pytest.fixture(autouse=True)  # type: ignore[misc]
def _fresh_settings() -> Iterator[None]:
    """Rebuild settings around each test so env tweaks never leak."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture  # type: ignore[misc]
def write_feature() -> Callable[[Path, str, dict[str, str]], Path]:
    """Factory fixture for laying out extra features in a test's tmp dir."""
    return _write_feature
