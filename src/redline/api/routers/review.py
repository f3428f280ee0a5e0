"""
API Routes for a review session.

Endpoints
---------
- `GET /api/plan`: the combined document and its file mapping ranges.
- `POST /api/approve`: apply annotations to the source files and approve.
- `POST /api/deny`: reject with feedback; nothing is written.

Design Decisions
----------------
- **First decision wins**: the first request claims the session before any
  write; concurrent or later decisions get HTTP 409 and never touch disk.
- **Lenient approve body**: a body that is not JSON counts as an approval
  with no annotations. A JSON body with invalid annotations is a 400.
- **Partial failure is a success**: unanchored annotations or failed writes
  are reported in ``errors`` with HTTP 200; the client decides what to show.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from redline.api.schemas import (
    AckResponse,
    ApproveRequest,
    ApproveResponse,
    Decision,
    DenyRequest,
    PlanResponse,
)
from redline.api.session import ReviewSession
from redline.core.settings import get_logger
from redline.patch.engine import apply_annotations

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Review"])

DEFAULT_DENY_FEEDBACK = "Spec review denied by user"


def get_session(request: Request) -> ReviewSession:
    """Dependency: the session attached to the running app."""
    session: ReviewSession = request.app.state.session
    return session


async def _json_body(request: Request) -> dict[str, Any]:
    """Return the JSON object body, or ``{}`` when the body is empty or not JSON."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Ignoring non-JSON request body on %s", request.url.path)
        return {}
    return data if isinstance(data, dict) else {}


def _claim(session: ReviewSession) -> None:
    """Take the session for this request, or answer 409 if another one has it."""
    if not session.begin():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This review has already been decided",
        )


@router.get("/plan", response_model=PlanResponse, summary="Get the document under review")
async def get_plan(session: ReviewSession = Depends(get_session)) -> PlanResponse:
    return session.plan()


@router.post(
    "/approve",
    response_model=ApproveResponse,
    summary="Approve and write annotations back to the source files",
)
async def approve(
    request: Request,
    session: ReviewSession = Depends(get_session),
) -> ApproveResponse:
    """
    Apply the submitted annotations and record an approval.

    Comments travel back as feedback only; deletions, replacements and
    insertions are written into the mapped files. The session is claimed
    before any write, so a concurrent second approval gets 409 and never
    touches disk.
    """
    body = ApproveRequest.model_validate(await _json_body(request))
    _claim(session)

    try:
        result = await run_in_threadpool(
            apply_annotations,
            body.annotations,
            session.file_mappings,
            root=session.root,
        )
    except BaseException:
        session.release()
        raise

    session.resolve(
        Decision(
            approved=True,
            feedback=body.feedback,
            modified_files=result.modified_files,
            errors=result.errors,
        )
    )
    return ApproveResponse(modified_files=result.modified_files, errors=result.errors)


@router.post("/deny", response_model=AckResponse, summary="Deny with feedback")
async def deny(
    request: Request,
    session: ReviewSession = Depends(get_session),
) -> AckResponse:
    body = DenyRequest.model_validate(await _json_body(request))
    _claim(session)
    session.resolve(Decision(approved=False, feedback=body.feedback or DEFAULT_DENY_FEEDBACK))
    return AckResponse()


__all__ = ["router", "get_session"]
