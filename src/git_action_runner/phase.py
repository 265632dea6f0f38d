"""Advisory tracker for the git-mutating workflow currently in flight."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from .models import OperationPhase


class OperationPhaseTracker:
    """Expose which mutating phase is active so other subsystems can avoid racing it.

    The tracker does not reject overlapping workflows; callers that perform
    conflicting git work (branch checkout and the like) are expected to check
    `is_running()` first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._phase = OperationPhase.IDLE

    @property
    def phase(self) -> OperationPhase:
        with self._lock:
            return self._phase

    def is_running(self) -> bool:
        return self.phase is not OperationPhase.IDLE

    def set(self, phase: OperationPhase) -> None:
        with self._lock:
            previous, self._phase = self._phase, phase
        logger.debug("Operation phase {} -> {}", previous.value, phase.value)

    @contextmanager
    def enter(self, phase: OperationPhase) -> Iterator[None]:
        """Hold `phase` for the duration of the block and reset to idle on every exit path."""
        self.set(phase)
        try:
            yield
        finally:
            self.set(OperationPhase.IDLE)
