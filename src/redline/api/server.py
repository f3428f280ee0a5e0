"""
Review server runner.

Runs Uvicorn for one :class:`ReviewSession` in a background thread, waits for
the reviewer's decision, then shuts the server down and returns the decision.

Usage
-----
    session = ReviewSession(combined, root=Path("."))
    decision = run_review_server(session, on_ready=print)

Port selection comes from settings: ``REDLINE_PORT`` when set, otherwise a
free port locally and the fixed remote port when ``REDLINE_REMOTE`` is on.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import uvicorn

from redline.api.app import create_app
from redline.api.schemas import Decision
from redline.api.session import ReviewSession
from redline.core.settings import get_logger, load_settings

logger = get_logger(__name__)

_STARTUP_TIMEOUT_S = 10.0
_POLL_S = 0.05


def _bound_port(server: uvicorn.Server, fallback: int) -> int:
    """Return the port the server actually bound (useful when asked for port 0)."""
    for srv in server.servers:
        for sock in srv.sockets:
            return int(sock.getsockname()[1])
    return fallback


def run_review_server(
    session: ReviewSession,
    *,
    host: str | None = None,
    port: int | None = None,
    on_ready: Callable[[str], None] | None = None,
    timeout: float | None = None,
) -> Decision | None:
    """Serve ``session`` until it is decided (or ``timeout`` seconds pass).

    Returns
    -------
    Decision | None
        The reviewer's decision, or ``None`` on timeout.

    Raises
    ------
    RuntimeError
        If the server does not start.
    """
    cfg = load_settings()
    config = uvicorn.Config(
        create_app(session),
        host=host or cfg.host,
        port=cfg.server_port() if port is None else port,
        log_level=cfg.log_level.lower(),
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="redline-review", daemon=True)
    thread.start()

    deadline = time.monotonic() + _STARTUP_TIMEOUT_S
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise RuntimeError(f"Review server failed to start on {config.host}:{config.port}")
        time.sleep(_POLL_S)

    url = f"http://{config.host}:{_bound_port(server, config.port)}"
    logger.info("Review server listening on %s", url)
    if on_ready is not None:
        on_ready(url)

    try:
        return session.wait(timeout)
    finally:
        server.should_exit = True
        thread.join(timeout=5)


__all__ = ["run_review_server"]
