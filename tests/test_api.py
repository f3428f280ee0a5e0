"""
Integration tests for the review API.

Each test builds a real spec-kit project in ``tmp_path``, a session over its
combined document, and drives the app through ``TestClient``. Approvals hit
the real patch engine, so assertions check files on disk.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Final

import httpx
import pytest
from fastapi.testclient import TestClient

from redline import __version__ as PKG_VERSION
from redline.api.app import create_app
from redline.api.server import run_review_server
from redline.api.session import ReviewSession
from redline.pipelines.speckit import combine_speckit, detect_context

ALLOWED_ENVS: Final[set[str]] = {"dev", "test", "prod"}
SPEC = "specs/dark-mode/spec.md"


@pytest.fixture  # type: ignore[misc]
def session(project: Path) -> ReviewSession:
    ctx = detect_context(project, "dark-mode")
    assert ctx is not None
    combined = combine_speckit(ctx)
    return ReviewSession(combined, root=project, feature_name=combined.feature_name)


@pytest.fixture  # type: ignore[misc]
def client(session: ReviewSession) -> TestClient:
    return TestClient(create_app(session))


def _spec(project: Path) -> str:
    return (project / SPEC).read_text(encoding="utf-8")


def test_health_endpoint_contract(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200

    data = resp.json()
    assert data["status"] == "ok"
    assert data["environment"] in ALLOWED_ENVS
    assert data["version"] == PKG_VERSION


def test_plan_exposes_document_and_ranges(client: TestClient, session: ReviewSession) -> None:
    data = client.get("/api/plan").json()

    assert data["plan"] == session.combined.document
    assert data["origin"] == "redline"
    assert data["mode"] == "speckit"
    assert data["featureName"] == "dark-mode"
    assert data["sharingEnabled"] is True

    mappings = data["fileMappings"]
    assert [m["filePath"] for m in mappings][:2] == ["memory/constitution.md", SPEC]
    for m in mappings:
        assert set(m) == {"filePath", "startOffset", "endOffset"}
    spec = mappings[1]
    assert data["plan"][spec["startOffset"] : spec["endOffset"]].startswith("# Dark mode")


def test_approve_writes_files_and_decides(
    client: TestClient, session: ReviewSession, project: Path
) -> None:
    resp = client.post(
        "/api/approve",
        json={
            "feedback": "Looks good",
            "annotations": [
                {"type": "DELETION", "originalText": "Remove me. "},
                {"type": "COMMENT", "originalText": "Keep this.", "text": "nice"},
                {"type": "DELETION", "originalText": "text that is nowhere"},
            ],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["modifiedFiles"] == [SPEC]
    assert len(body["errors"]) == 1
    assert _spec(project) == "# Dark mode\n\nKeep this. Keep that.\n"

    decision = session.decision
    assert decision is not None
    assert decision.approved
    assert decision.feedback == "Looks good"
    assert decision.modified_files == [SPEC]


def test_approve_with_malformed_body_is_empty_approval(
    client: TestClient, session: ReviewSession, project: Path
) -> None:
    before = _spec(project)
    resp = client.post("/api/approve", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "modifiedFiles": [], "errors": []}
    assert _spec(project) == before
    assert session.decision is not None and session.decision.approved


def test_approve_with_invalid_annotation_is_bad_request(
    client: TestClient, session: ReviewSession
) -> None:
    resp = client.post("/api/approve", json={"annotations": [{"type": "DELETION"}]})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Bad Request"
    assert session.decision is None


def test_deny_writes_nothing(client: TestClient, session: ReviewSession, project: Path) -> None:
    before = _spec(project)
    resp = client.post("/api/deny", json={"feedback": "Rethink the plan"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert _spec(project) == before
    decision = session.decision
    assert decision is not None
    assert not decision.approved
    assert decision.feedback == "Rethink the plan"


def test_deny_without_body_uses_default_feedback(
    client: TestClient, session: ReviewSession
) -> None:
    assert client.post("/api/deny").status_code == 200
    assert session.decision is not None
    assert session.decision.feedback == "Spec review denied by user"


def test_second_decision_is_rejected(
    client: TestClient, session: ReviewSession, project: Path
) -> None:
    assert client.post("/api/deny", json={}).status_code == 200
    before = _spec(project)

    resp = client.post(
        "/api/approve",
        json={"annotations": [{"type": "DELETION", "originalText": "Remove me. "}]},
    )
    assert resp.status_code == 409
    assert _spec(project) == before
    assert client.post("/api/deny").status_code == 409
    assert session.decision is not None and not session.decision.approved


def test_session_first_decision_wins(session: ReviewSession) -> None:
    from redline.api.schemas import Decision

    assert session.wait(timeout=0) is None
    assert session.resolve(Decision(approved=False, feedback="no"))
    assert not session.resolve(Decision(approved=True))
    assert session.wait(timeout=0) == Decision(approved=False, feedback="no")


def test_review_server_returns_decision(session: ReviewSession) -> None:
    """Run the real server on a free port and deny over HTTP."""
    urls: list[str] = []

    def deny_over_http(url: str) -> None:
        urls.append(url)
        resp = httpx.post(f"{url}/api/deny", json={"feedback": "from the browser"}, timeout=5)
        assert resp.status_code == 200

    decision = run_review_server(
        session, host="127.0.0.1", port=0, on_ready=deny_over_http, timeout=10
    )

    assert urls and urls[0].startswith("http://127.0.0.1:")
    assert not urls[0].endswith(":0")
    assert decision is not None
    assert decision.feedback == "from the browser"


def test_session_claim_is_exclusive(session: ReviewSession) -> None:
    from redline.api.schemas import Decision

    assert session.begin()
    assert not session.begin()
    session.release()
    assert session.begin()
    assert session.resolve(Decision(approved=True))
    session.release()
    assert not session.begin()


def test_concurrent_approvals_write_once(
    client: TestClient, project: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Two approvals in flight together: one applies, the other gets 409."""
    from redline.api.routers import review

    calls: list[int] = []
    real_apply = review.apply_annotations

    def slow_apply(*args: Any, **kwargs: Any) -> Any:
        calls.append(1)
        time.sleep(0.3)
        return real_apply(*args, **kwargs)

    monkeypatch.setattr(review, "apply_annotations", slow_apply)
    body = {"annotations": [{"type": "INSERTION", "originalText": "Keep that.", "text": " Added."}]}
    assert client.get("/health").status_code == 200

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(client.post, "/api/approve", json=body) for _ in range(2)]
        codes = sorted(f.result().status_code for f in futures)

    assert codes == [200, 409]
    assert calls == [1]
    assert _spec(project) == "# Dark mode\n\nKeep this. Remove me. Keep that. Added.\n"
