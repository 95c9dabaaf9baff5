from __future__ import annotations

"""Filesystem helpers for locating repo-relative configuration.

This module intentionally has **zero** external dependencies so that it can
be imported early (e.g. from ``roaskit.config`` before logging is set up).
"""

from pathlib import Path
from typing import Sequence


def _looks_like_repo_root(path: Path, markers: Sequence[str]) -> bool:
    """Return ``True`` if *path* contains any of the *marker* files/dirs."""
    for marker in markers:
        if (path / marker).exists():
            return True
    return False


def project_root(markers: Sequence[str] | None = None) -> Path:
    """Return the absolute ``Path`` of the repo root.

    Walks *up* from this file until a directory contains at least one
    *marker* (default: ``pyproject.toml`` or ``.git``). When none is found
    (e.g. an installed wheel) the current working directory is used, so
    relative config paths resolve the way a user running the CLI expects.
    """
    if markers is None:
        markers = ("pyproject.toml", ".git")

    cur = Path(__file__).resolve()
    for parent in [cur] + list(cur.parents):
        if _looks_like_repo_root(parent, markers):
            return parent
    return Path.cwd()


def resolve_config_path(path: Path | str) -> Path:
    """Resolve *path* against the repo root unless it is already absolute."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return project_root() / p


__all__ = [
    "project_root",
    "resolve_config_path",
]
