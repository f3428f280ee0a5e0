"""
FastAPI Application Factory for a review session.

This module builds the ASGI app that serves one :class:`ReviewSession`. It is
responsible for:
1.  **Middleware Setup**: CORS, so a separately served UI can call the API.
2.  **Exception Handling**: every error comes back as structured JSON.
3.  **Routing**: mounting the review router and a health probe.

Design Pattern
--------------
We use an **Application Factory** (`create_app`) that receives the session.
Tests build one app per session; the server runner does the same.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from redline import __version__
from redline.api.routers import review
from redline.api.session import ReviewSession
from redline.core.settings import get_logger, load_settings

logger = get_logger(__name__)


def create_app(session: ReviewSession) -> FastAPI:
    """
    Construct the review API for ``session``.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="Redline Review API",
        description="Annotate a combined spec document and write approved edits back.",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.session = session

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return unhandled exceptions as structured JSON instead of an HTML 500."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map ValueErrors (including pydantic validation errors) to HTTP 400."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(review.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
