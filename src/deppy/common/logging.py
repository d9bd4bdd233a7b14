"""Shared logging helpers for deppy."""

from __future__ import annotations

import logging
import os


def _level_from_env(default: int) -> int:
    raw = os.getenv("DEPPY_LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    defaults to ``DEPPY_LOG_LEVEL`` (or INFO) and the format is terse enough for a
    long-running service log. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_env(logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
    # retry/cache chatter drowns the update log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("hishel").setLevel(logging.WARNING)
