"""Logging setup for hosts embedding the consistency engine."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Libraries that log every statement or request at INFO.
NOISY_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration", "httpx")


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    ``level`` falls back to ``VISAOPS_LOG_LEVEL`` and then INFO. Store and
    HTTP library chatter is capped at WARNING so repair and diagnostic
    messages stay readable. Pass ``force=True`` to replace existing handlers.
    """

    resolved = level if level is not None else os.getenv("VISAOPS_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
