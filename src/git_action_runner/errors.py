"""Exception types raised while orchestrating git actions."""

from __future__ import annotations

from typing import Optional


class GitActionError(Exception):
    """Base error for git action orchestration."""

    pass


class ProcessTimeoutError(GitActionError, TimeoutError):
    """The process outlived its deadline and was killed."""

    def __init__(self, command: list[str], timeout_seconds: float) -> None:
        super().__init__("Command timeout")
        self.command = command
        self.timeout_seconds = timeout_seconds


class ActionCancelledError(GitActionError):
    """The action was cancelled before its process could be spawned."""

    def __init__(self, action_id: str) -> None:
        super().__init__("Operation cancelled")
        self.action_id = action_id


class PRViewParseError(GitActionError, ValueError):
    """`gh pr view` produced output that is not a usable PR snapshot."""

    pass


class RecoveryFailure(GitActionError):
    """Placeholder PR content could not be replaced."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class PromptError(GitActionError):
    """A system prompt file is missing, unreadable, or invalid."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path
