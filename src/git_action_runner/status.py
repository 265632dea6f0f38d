"""Aggregate PR and branch state for the current branch of a repository."""

from __future__ import annotations

import concurrent.futures
import json
import re
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .constants import DEFAULT_BASE_BRANCH, DEFAULT_INSPECT_TIMEOUT_SECONDS, PR_STATUS_FIELDS
from .context import GitActionContext
from .errors import PRViewParseError
from .models import PRStatusResult, PRSummary, ProcessResult
from .pr_view import as_pr_number
from .process import run_process

_DEFAULT_REF_RE = re.compile(r"refs/remotes/origin/(.+)$")
_REMOTE_BRANCH_RE = re.compile(r"^origin/(\S+)")

_PR_VIEW_CMD = ["gh", "pr", "view", "--json", PR_STATUS_FIELDS]
_REMOTE_BRANCHES_CMD = ["git", "branch", "-r", "--list", "origin/*"]
_CURRENT_BRANCH_CMD = ["git", "branch", "--show-current"]
_DEFAULT_BRANCH_CMD = ["git", "symbolic-ref", "refs/remotes/origin/HEAD"]


def parse_current_branch(result: ProcessResult) -> str:
    return result.stdout.strip() if result.ok else ""


def parse_default_branch(result: ProcessResult) -> str:
    if result.ok:
        match = _DEFAULT_REF_RE.search(result.stdout.strip())
        if match:
            return match.group(1)
    return DEFAULT_BASE_BRANCH


def parse_pr_summary(text: str) -> PRSummary:
    """Parse `gh pr view --json url,number,state,title,...` output.

    Raises:
        PRViewParseError: The output is not a JSON object with the expected field types.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PRViewParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PRViewParseError(f"expected object, got {type(data).__name__}")
    number = as_pr_number(data.get("number"))
    url, state, title = data.get("url"), data.get("state"), data.get("title")
    if (
        not isinstance(url, str)
        or number is None
        or not isinstance(state, str)
        or not isinstance(title, str)
    ):
        raise PRViewParseError("missing or mistyped url/number/state/title")
    return PRSummary(url=url, number=number, state=state, title=title)


def parse_pr_result(result: ProcessResult) -> Optional[PRSummary]:
    if not result.ok or not result.stdout.strip():
        return None
    try:
        return parse_pr_summary(result.stdout)
    except PRViewParseError as exc:
        logger.debug("Treating unusable gh pr view output as no PR: {}", exc)
        return None


def parse_remote_branches(result: ProcessResult, default_branch: str) -> list[str]:
    """List remote branch names with the default branch first and the rest sorted.

    `origin/HEAD -> origin/main` style alias lines contribute nothing.
    """
    branches: list[str] = []
    if result.ok:
        for line in result.stdout.splitlines():
            match = _REMOTE_BRANCH_RE.match(line.strip())
            if not match:
                continue
            name = match.group(1)
            if name != "HEAD" and name not in branches:
                branches.append(name)
    return sorted(branches, key=lambda name: (name != default_branch, name))


def _failed_status(message: str) -> PRStatusResult:
    return PRStatusResult(
        has_pr=False,
        pr=None,
        can_create_pr=False,
        base_branch=DEFAULT_BASE_BRANCH,
        available_base_branches=[],
        reason=f"Failed to get PR status: {message}",
    )


def get_pr_status(
    project_path: Union[str, Path],
    *,
    context: Optional[GitActionContext] = None,
    timeout_seconds: float = DEFAULT_INSPECT_TIMEOUT_SECONDS,
) -> PRStatusResult:
    """Inspect the PR, branches and default branch of `project_path`.

    The four inspections run concurrently and are all awaited. Any failure to
    run them collapses to a conservative "cannot create" result; this function
    never raises.
    """
    commands = {
        "pr": _PR_VIEW_CMD,
        "branches": _REMOTE_BRANCHES_CMD,
        "current": _CURRENT_BRANCH_CMD,
        "default": _DEFAULT_BRANCH_CMD,
    }
    try:
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(commands)) as executor:
            futures = {
                key: executor.submit(run_process, cmd, project_path, timeout_seconds, context=context)
                for key, cmd in commands.items()
            }
            concurrent.futures.wait(futures.values())
        results = {key: future.result() for key, future in futures.items()}

        current_branch = parse_current_branch(results["current"])
        default_branch = parse_default_branch(results["default"])
        pr = parse_pr_result(results["pr"])
        branches = parse_remote_branches(results["branches"], default_branch)

        has_pr = pr is not None
        can_create_pr = not has_pr and current_branch != default_branch
        reason: Optional[str] = None
        if has_pr:
            reason = "PR already exists"
        elif current_branch == default_branch:
            reason = "Cannot create PR from default branch"

        return PRStatusResult(
            has_pr=has_pr,
            pr=pr,
            can_create_pr=can_create_pr,
            base_branch=default_branch,
            available_base_branches=branches,
            reason=reason,
        )
    except Exception as exc:
        logger.warning("PR status inspection failed for {}: {}", project_path, exc)
        return _failed_status(str(exc))
