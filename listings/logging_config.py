"""Logging setup for ``python -m listings``."""

from __future__ import annotations

import logging


def setup_logging(level: str = "INFO") -> None:
    """Send service logs to stderr at ``level``; uvicorn reuses the root handler."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )
    # The driver logs every server heartbeat at DEBUG.
    logging.getLogger("pymongo").setLevel(logging.WARNING)
