"""Logger factory shared by every roaskit module.

Usage::

    from roaskit.utils.logs import report

    logger = report.settings(__file__)

Loggers live under the ``roaskit`` root, which only carries a NullHandler.
Applications (the ``roaskit-plan`` CLI, notebooks) call :func:`configure`
to actually emit records.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "roaskit"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def _logger_name(file: str) -> str:
    path = Path(file)
    parts = list(path.with_suffix("").parts)
    if ROOT_LOGGER in parts:
        idx = len(parts) - 1 - parts[::-1].index(ROOT_LOGGER)
        return ".".join(parts[idx:])
    return f"{ROOT_LOGGER}.{path.stem}"


def settings(file: str) -> logging.Logger:
    """Return the module logger for *file* (pass ``__file__``)."""
    return logging.getLogger(_logger_name(file))


def configure(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the package root logger once.

    *level* falls back to ``ROASKIT_LOG_LEVEL`` and then ``INFO``.
    """
    root = logging.getLogger(ROOT_LOGGER)
    level_name = (level or os.getenv("ROASKIT_LOG_LEVEL") or "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
    return root
