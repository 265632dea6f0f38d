"""Track live action processes so external callers can cancel them."""

from __future__ import annotations

import os
import signal
import threading
from typing import Optional, Protocol

from loguru import logger


class KillableProcess(Protocol):
    def kill(self) -> None: ...


def _kill_process_group(pid: int) -> bool:
    """SIGKILL the group led by `pid`. Returns False if `pid` leads no group of its own."""
    pgid = os.getpgid(pid)
    if pgid != pid:
        return False
    os.killpg(pgid, signal.SIGKILL)
    return True


def advisory_kill(process: KillableProcess) -> bool:
    """Send a kill signal, treating the kill itself as advisory.

    A process started as a session leader is killed together with its process
    group, so tools spawned by the agent cannot keep the output pipes open.
    The process may already have exited or be owned by another user; such
    failures are reported through the return value instead of raising.

    Returns:
        True if the kill signal was delivered.
    """
    pid = getattr(process, "pid", None)
    # A reaped pid may already belong to someone else.
    reaped = getattr(process, "returncode", None) is not None
    if isinstance(pid, int) and not reaped and hasattr(os, "killpg"):
        try:
            if _kill_process_group(pid):
                return True
        except (ProcessLookupError, PermissionError, OSError) as exc:
            logger.debug("Process group kill for pid {} failed: {}", pid, exc)
    try:
        process.kill()
        return True
    except (ProcessLookupError, PermissionError, OSError) as exc:
        logger.debug("Kill signal not delivered: {}", exc)
        return False


class CancellationRegistry:
    """Map action ids to live processes and latch cancellation requests.

    A cancellation mark outlives the process: a request that arrives before
    the process is registered (or after it exited) stays recorded until the
    owning executor consumes it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running: dict[str, KillableProcess] = {}
        self._cancelled: set[str] = set()

    def register(self, action_id: str, process: KillableProcess) -> None:
        with self._lock:
            self._running[action_id] = process

    def unregister(self, action_id: str) -> None:
        with self._lock:
            self._running.pop(action_id, None)

    def is_cancelled(self, action_id: Optional[str]) -> bool:
        if action_id is None:
            return False
        with self._lock:
            return action_id in self._cancelled

    def consume(self, action_id: Optional[str]) -> bool:
        """Clear the cancellation mark for `action_id`, returning whether it was set."""
        if action_id is None:
            return False
        with self._lock:
            if action_id not in self._cancelled:
                return False
            self._cancelled.discard(action_id)
            return True

    def running_action_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._running)

    def request_cancel(self, action_id: str) -> bool:
        """Mark `action_id` cancelled and kill its process if one is live.

        Returns:
            True if a live process was registered under `action_id`.
        """
        with self._lock:
            self._cancelled.add(action_id)
            process = self._running.get(action_id)
        if process is None:
            logger.debug("Cancel latched for action {} (no live process)", action_id)
            return False
        logger.warning("Cancelling action {}", action_id)
        advisory_kill(process)
        return True
