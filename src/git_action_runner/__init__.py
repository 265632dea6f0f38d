"""Provide the public `git_action_runner` package exports."""

from __future__ import annotations

from .context import GitActionContext, get_default_context
from .executor import (
    cancel_git_action,
    execute_commit,
    execute_create_pr,
    execute_push,
    execute_update_pr,
    get_operation_phase,
    is_git_operation_running,
)
from .models import GitActionResult, OperationPhase, PRStatusResult, PRSummary, PRView
from .status import get_pr_status

__all__ = [
    "GitActionContext",
    "GitActionResult",
    "OperationPhase",
    "PRStatusResult",
    "PRSummary",
    "PRView",
    "cancel_git_action",
    "execute_commit",
    "execute_create_pr",
    "execute_push",
    "execute_update_pr",
    "get_default_context",
    "get_operation_phase",
    "get_pr_status",
    "is_git_operation_running",
]
