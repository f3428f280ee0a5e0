"""Redline configuration (Pydantic Settings v2) and the package logger factory.

Values come from, in order of precedence:
- process environment variables
- `.env`, `.env.local` and `.env.<environment>` files in the working directory

Share-link, review-server and logging options all live on one `Settings`
model. Loggers are built through `get_logger()` so they share one format
and follow `LOG_LEVEL`.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_SHARE_URL = "https://share.plannotator.ai"
# Fixed port used when the review server runs inside a remote/devcontainer session.
REMOTE_PORT = 19432


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `REDLINE_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    share_base_url : str
        Base URL that share fragments are appended to; maps from `REDLINE_SHARE_URL`.
    sharing_enabled : bool
        Whether the review UI may offer share links; maps from `REDLINE_SHARING`.
    host, port : str, int | None
        Bind address of the review server. A ``None`` port means "pick one"
        locally and :data:`REMOTE_PORT` in remote sessions.
    remote : bool
        Remote/devcontainer mode; maps from `REDLINE_REMOTE`.
    """

    environment: EnvName = Field(default="dev", alias="REDLINE_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    share_base_url: str = Field(default=DEFAULT_SHARE_URL, alias="REDLINE_SHARE_URL")
    sharing_enabled: bool = Field(default=True, alias="REDLINE_SHARING")
    host: str = Field(default="127.0.0.1", alias="REDLINE_HOST")
    port: int | None = Field(default=None, alias="REDLINE_PORT")
    remote: bool = Field(default=False, alias="REDLINE_REMOTE")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    def server_port(self) -> int:
        """Return the port the review server should bind.

        ``0`` asks the OS for a free port, which is what local sessions want.
        """
        if self.port is not None:
            return self.port
        return REMOTE_PORT if self.remote else 0

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Build the settings once per process.

    Call `load_settings.cache_clear()` after changing `os.environ` to pick
    up the new values.
    """
    os.environ.setdefault("REDLINE_ENV", "dev")
    return Settings()


# Module-level instance, read at import time.
settings: Settings = load_settings()


def get_logger(name: str = "redline") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
