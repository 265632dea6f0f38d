"""Tests for the PR status aggregator."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from git_action_runner.errors import ProcessTimeoutError
from git_action_runner.models import PRSummary, ProcessResult
from git_action_runner.status import get_pr_status, parse_default_branch, parse_remote_branches

PR_JSON = json.dumps(
    {
        "url": "https://github.com/o/r/pull/12",
        "number": 12,
        "state": "OPEN",
        "title": "Add status endpoint",
        "headRefName": "feat",
        "baseRefName": "main",
    }
)
BRANCHES = "  origin/HEAD -> origin/main\n  origin/dev\n  origin/main\n"


def _ok(stdout: str = "") -> ProcessResult:
    return ProcessResult(stdout=stdout, stderr="", exit_code=0)


def _fail(stderr: str = "") -> ProcessResult:
    return ProcessResult(stdout="", stderr=stderr, exit_code=1)


class _Router:
    """Fake run_process that tells the two `git branch` invocations apart."""

    def __init__(self, pr: object, branches: object, current: object, default: object) -> None:
        self.by_key = {"pr": pr, "branches": branches, "current": current, "default": default}
        self.calls: list[list[str]] = []
        self.lock = threading.Lock()

    def __call__(self, cmd, cwd, timeout_seconds, action_id=None, **kwargs):
        with self.lock:
            self.calls.append(list(cmd))
        if cmd[0] == "gh":
            key = "pr"
        elif "--show-current" in cmd:
            key = "current"
        elif "symbolic-ref" in cmd:
            key = "default"
        else:
            key = "branches"
        response = self.by_key[key]
        if isinstance(response, BaseException):
            raise response
        return response


def _route(monkeypatch: pytest.MonkeyPatch, **kwargs: object) -> _Router:
    values = {
        "pr": _fail("no pull requests found"),
        "branches": _ok(BRANCHES),
        "current": _ok("feat\n"),
        "default": _ok("refs/remotes/origin/main\n"),
    }
    values.update(kwargs)
    router = _Router(**values)
    monkeypatch.setattr("git_action_runner.status.run_process", router)
    return router


def test_feature_branch_without_pr_can_create(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch)

    status = get_pr_status(tmp_path)

    assert status.has_pr is False
    assert status.pr is None
    assert status.can_create_pr is True
    assert status.base_branch == "main"
    assert status.available_base_branches == ["main", "dev"]
    assert status.reason is None
    assert "reason" not in status.to_dict()


def test_runs_all_four_inspections(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    router = _route(monkeypatch)

    get_pr_status(tmp_path)

    assert sorted(router.calls) == sorted(
        [
            ["gh", "pr", "view", "--json", "url,number,state,title,headRefName,baseRefName"],
            ["git", "branch", "-r", "--list", "origin/*"],
            ["git", "branch", "--show-current"],
            ["git", "symbolic-ref", "refs/remotes/origin/HEAD"],
        ]
    )


def test_existing_pr_blocks_creation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch, pr=_ok(PR_JSON))

    status = get_pr_status(tmp_path)

    assert status.has_pr is True
    assert status.pr == PRSummary(
        url="https://github.com/o/r/pull/12", number=12, state="OPEN", title="Add status endpoint"
    )
    assert status.can_create_pr is False
    assert status.reason == "PR already exists"
    assert status.to_dict()["hasPR"] is True
    assert status.to_dict()["pr"]["number"] == 12


def test_default_branch_cannot_create(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch, current=_ok("main\n"))

    status = get_pr_status(tmp_path)

    assert status.can_create_pr is False
    assert status.reason == "Cannot create PR from default branch"


def test_malformed_pr_json_counts_as_no_pr(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch, pr=_ok('{"url": "u", "number": "twelve"}'))

    status = get_pr_status(tmp_path)

    assert status.has_pr is False
    assert status.can_create_pr is True


def test_missing_origin_head_falls_back_to_main(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(
        monkeypatch,
        default=_fail("fatal: ref refs/remotes/origin/HEAD is not a symbolic ref"),
        branches=_ok("  origin/zeta\n  origin/alpha\n"),
    )

    status = get_pr_status(tmp_path)

    assert status.base_branch == "main"
    assert status.available_base_branches == ["alpha", "zeta"]


def test_inspection_error_collapses_to_failed_status(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch, branches=ProcessTimeoutError(["git", "branch"], 30))

    status = get_pr_status(tmp_path)

    assert status.has_pr is False
    assert status.pr is None
    assert status.can_create_pr is False
    assert status.base_branch == "main"
    assert status.available_base_branches == []
    assert status.reason == "Failed to get PR status: Command timeout"


def test_parse_default_branch_keeps_slashes() -> None:
    assert parse_default_branch(_ok("refs/remotes/origin/release/2.x\n")) == "release/2.x"
    assert parse_default_branch(_ok("garbage")) == "main"


def test_parse_remote_branches_dedups_and_orders_default_first() -> None:
    raw = "  origin/HEAD -> origin/develop\n  origin/main\n  origin/develop\n  origin/main\n  upstream/x\n"
    assert parse_remote_branches(_ok(raw), "develop") == ["develop", "main"]
    assert parse_remote_branches(_fail(), "main") == []


def test_integral_float_pr_number_is_accepted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _route(monkeypatch, pr=_ok('{"url": "u", "number": 12.0, "state": "OPEN", "title": "t"}'))

    status = get_pr_status(tmp_path)

    assert status.has_pr is True
    assert status.pr is not None and status.pr.number == 12
    assert status.to_dict()["pr"]["number"] == 12
