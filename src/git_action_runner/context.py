"""Explicit holder for the state shared between executors and their observers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from .cancellation import CancellationRegistry
from .phase import OperationPhaseTracker


@dataclass
class GitActionContext:
    """Cancellation registry plus operation phase for one process or request scope.

    Executors write to it; HTTP handlers and other subsystems (branch
    switching, for instance) read from it.
    """

    registry: CancellationRegistry = field(default_factory=CancellationRegistry)
    phases: OperationPhaseTracker = field(default_factory=OperationPhaseTracker)


_default_context: Optional[GitActionContext] = None
_default_lock = threading.Lock()


def get_default_context() -> GitActionContext:
    """Return the process-wide context, creating it on first use."""
    global _default_context
    if _default_context is None:
        with _default_lock:
            if _default_context is None:
                _default_context = GitActionContext()
    return _default_context


def resolve_context(context: Optional[GitActionContext]) -> GitActionContext:
    return context if context is not None else get_default_context()
