"""Spawn a child process and race it against a deadline."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from loguru import logger

from .cancellation import advisory_kill
from .constants import KILL_GRACE_SECONDS
from .context import GitActionContext, resolve_context
from .errors import ActionCancelledError, ProcessTimeoutError
from .models import ProcessResult


def run_process(
    cmd: Sequence[str],
    cwd: Union[str, Path],
    timeout_seconds: float,
    action_id: Optional[str] = None,
    *,
    context: Optional[GitActionContext] = None,
) -> ProcessResult:
    """Run `cmd` in `cwd` and collect its output.

    When `action_id` is given the process is registered with the context's
    cancellation registry for as long as it is alive, so `cancel_git_action`
    can kill it.

    Args:
        cmd: Program and arguments.
        cwd: Working directory.
        timeout_seconds: Deadline for the process to exit.
        action_id: Optional id correlating the process with a cancel request.
        context: Context holding the cancellation registry.

    Returns:
        The captured stdout, stderr and exit code.

    Raises:
        ActionCancelledError: `action_id` was cancelled before spawning.
        ProcessTimeoutError: The deadline passed; the process was killed.
        OSError: The program could not be started.
    """
    ctx = resolve_context(context)
    registry = ctx.registry
    if action_id is not None and registry.is_cancelled(action_id):
        raise ActionCancelledError(action_id)

    command = list(cmd)
    logger.debug("Spawning {} in {} (timeout={}s)", command[0], cwd, timeout_seconds)
    process = subprocess.Popen(
        command,
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=True,
    )

    if action_id is not None:
        registry.register(action_id, process)

    try:
        try:
            stdout, stderr = process.communicate(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("{} timed out after {}s; killing pid {}", command[0], timeout_seconds, process.pid)
            advisory_kill(process)
            try:
                process.communicate(timeout=KILL_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                logger.warning("pid {} did not exit after kill", process.pid)
            raise ProcessTimeoutError(command, timeout_seconds)
    finally:
        if action_id is not None:
            registry.unregister(action_id)

    return ProcessResult(stdout=stdout or "", stderr=stderr or "", exit_code=process.returncode)
