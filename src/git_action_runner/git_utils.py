"""Provide small git helpers used outside the executors."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from loguru import logger

from .constants import DEFAULT_INSPECT_TIMEOUT_SECONDS
from .process import run_process


def is_git_repository(project_dir: Union[str, Path]) -> bool:
    """Return True if `project_dir` is inside a git work tree."""
    path = Path(project_dir)
    if not path.is_dir():
        return False
    try:
        result = run_process(
            ["git", "rev-parse", "--is-inside-work-tree"],
            path,
            DEFAULT_INSPECT_TIMEOUT_SECONDS,
        )
    except Exception as exc:
        logger.debug("git rev-parse failed in {}: {}", path, exc)
        return False
    return result.ok and result.stdout.strip().lower() == "true"
