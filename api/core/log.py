"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)`; this only decides the
level and format once at startup.
"""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def log_level() -> int:
    raw = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    root = logging.getLogger()
    root.setLevel(log_level())
    if root.handlers:
        # uvicorn (or a test runner) already installed handlers.
        return None
    logging.basicConfig(level=log_level(), format=DEFAULT_FORMAT)
