"""Utility helpers for logging, filesystem setup, and URL slugs."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_WHITESPACE_RE = re.compile(r"\s+")


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure root logging to console and optionally a file."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def ensure_directories(paths: Iterable[Path]) -> None:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def to_url_slug(name: str, separator: str = "_") -> str:
    """Lowercase `name` and replace whitespace runs with `separator`."""
    return _WHITESPACE_RE.sub(separator, name.strip().lower())
