"""
In-memory review session.

One review server serves exactly one session: a combined document, the file
mappings needed to patch it, and the reviewer's eventual decision.

Responsibilities
----------------
- **Hold**: the document and mappings, fixed for the lifetime of the session.
- **Claim**: let exactly one approve/deny request proceed; concurrent ones
  are refused before they touch disk.
- **Resolve**: record the first approve/deny decision; later ones are refused.
- **Wait**: let the process that started the server block until a decision
  arrives.

Note on Persistence
-------------------
Nothing is persisted. If the server stops before a decision, the session is
gone and no file has been touched.
"""

from __future__ import annotations

import threading
from pathlib import Path

from redline.api.schemas import Decision, MappingInfo, PlanResponse, ReviewMode
from redline.core.contracts.document import CombinedDocument, FileMapping


class ReviewSession:
    """A single review of one combined document."""

    def __init__(
        self,
        combined: CombinedDocument,
        *,
        root: Path | None = None,
        feature_name: str | None = None,
        origin: str = "redline",
        mode: ReviewMode = ReviewMode.SPECKIT,
        sharing_enabled: bool = True,
    ) -> None:
        self.combined = combined
        self.root = root
        self.feature_name = feature_name
        self.origin = origin
        self.mode = mode
        self.sharing_enabled = sharing_enabled
        self._decision: Decision | None = None
        self._decided = threading.Event()
        self._claimed = False
        self._lock = threading.Lock()

    @property
    def file_mappings(self) -> list[FileMapping]:
        return self.combined.file_mappings

    @property
    def decision(self) -> Decision | None:
        return self._decision

    def plan(self) -> PlanResponse:
        """Describe the session for the UI (mapping ranges only, no file content)."""
        return PlanResponse(
            plan=self.combined.document,
            origin=self.origin,
            mode=self.mode,
            feature_name=self.feature_name,
            sharing_enabled=self.sharing_enabled,
            file_mappings=[
                MappingInfo(
                    file_path=m.file_path,
                    start_offset=m.start_offset,
                    end_offset=m.end_offset,
                )
                for m in self.file_mappings
            ],
        )

    def begin(self) -> bool:
        """Claim the session for one approve/deny request.

        Returns
        -------
        bool
            ``True`` for the single caller that may go on to write files and
            resolve; ``False`` once the session is claimed or decided.
        """
        with self._lock:
            if self._claimed or self._decision is not None:
                return False
            self._claimed = True
        return True

    def release(self) -> None:
        """Give up a claim that did not end in a decision."""
        with self._lock:
            if self._decision is None:
                self._claimed = False

    def resolve(self, decision: Decision) -> bool:
        """Record ``decision`` if none was recorded yet.

        Returns
        -------
        bool
            ``True`` if this call decided the session, ``False`` if it was
            already decided.
        """
        with self._lock:
            if self._decision is not None:
                return False
            self._decision = decision
            self._claimed = True
        self._decided.set()
        return True

    def wait(self, timeout: float | None = None) -> Decision | None:
        """Block until a decision is recorded (or ``timeout`` seconds pass)."""
        self._decided.wait(timeout)
        return self._decision


__all__ = ["ReviewSession"]
