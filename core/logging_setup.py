"""Logging for the engine packages, all under the ``hearth`` namespace."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT = "hearth"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _resolve_level(level) -> int:
    """Explicit level, else ``HEARTH_LOG_LEVEL``, else INFO; unknown names count as unset."""
    for candidate in (level, os.getenv("HEARTH_LOG_LEVEL")):
        if isinstance(candidate, int):
            return candidate
        if isinstance(candidate, str):
            numeric = logging.getLevelName(candidate.strip().upper())
            if isinstance(numeric, int):
                return numeric
    return logging.INFO


def configure_logging(level=None, *, fmt: str | None = None, stream: IO[str] = sys.stderr) -> None:
    """Attach one stream handler to the ``hearth`` logger; later calls are no-ops."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_ROOT)
    logger.handlers = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or _FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a library module; silent until ``configure_logging`` runs."""
    root = logging.getLogger(_ROOT)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
