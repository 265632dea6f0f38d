"""Result and snapshot types shared by the executors and their callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class OperationPhase(str, Enum):
    """Which git-mutating workflow is currently in flight."""

    IDLE = "idle"
    COMMITTING = "committing"
    PUSHING = "pushing"
    CREATING_PR = "creating-pr"


@dataclass(frozen=True)
class ProcessResult:
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class GitActionResult:
    """Outcome of one executor call."""

    success: bool
    output: str
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str, output: str = "") -> "GitActionResult":
        return cls(success=False, output=output, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "output": self.output}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class PRView:
    """Minimal snapshot of the pull request for the current branch.

    `body` is None when gh reported no body (or a non-text one), which is
    distinct from an empty description.
    """

    number: int
    url: str
    title: str
    body: Optional[str] = None


@dataclass(frozen=True)
class PRSummary:
    url: str
    number: int
    state: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "number": self.number, "state": self.state, "title": self.title}


@dataclass
class PRStatusResult:
    """Aggregated branch/PR state for a repository."""

    has_pr: bool
    pr: Optional[PRSummary]
    can_create_pr: bool
    base_branch: str
    available_base_branches: list[str] = field(default_factory=list)
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hasPR": self.has_pr,
            "pr": self.pr.to_dict() if self.pr is not None else None,
            "canCreatePR": self.can_create_pr,
            "baseBranch": self.base_branch,
            "availableBaseBranches": list(self.available_base_branches),
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data
