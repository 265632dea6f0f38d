"""Tests for the commit, push, create-pr and update-pr executors."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pytest

from git_action_runner.constants import PR_PLACEHOLDER_BODY, PR_PLACEHOLDER_TITLE
from git_action_runner.context import GitActionContext
from git_action_runner.executor import (
    ExecutorOptions,
    execute_commit,
    execute_create_pr,
    execute_push,
    execute_update_pr,
)
from git_action_runner.models import GitActionResult, OperationPhase, PRView, ProcessResult
from git_action_runner.prompts import ensure_system_prompt_files

PLACEHOLDER_VIEW = PRView(number=5, url="https://x/5", title=PR_PLACEHOLDER_TITLE, body=PR_PLACEHOLDER_BODY)
GOOD_VIEW = PRView(number=5, url="https://x/5", title="Add PR recovery", body="## Summary\nDone")


class FakeAgent:
    """Replay scripted agent results and record prompts and observed phases."""

    def __init__(self, ctx: GitActionContext, results: list[GitActionResult]) -> None:
        self.ctx = ctx
        self.results = list(results)
        self.prompts: list[str] = []
        self.phases: list[OperationPhase] = []

    def __call__(self, project_path, prompt, action_id=None, **kwargs: Any) -> GitActionResult:
        self.prompts.append(prompt)
        self.phases.append(self.ctx.phases.phase)
        return self.results.pop(0)


class FakeViews:
    def __init__(self, views: list[Optional[PRView]]) -> None:
        self.views = list(views)
        self.calls = 0

    def __call__(self, project_path, **kwargs: Any) -> Optional[PRView]:
        self.calls += 1
        return self.views.pop(0)


@pytest.fixture
def ctx() -> GitActionContext:
    return GitActionContext()


@pytest.fixture
def options(tmp_path: Path) -> ExecutorOptions:
    prompt_dir = tmp_path / "prompts"
    ensure_system_prompt_files(prompt_dir)
    return ExecutorOptions(prompt_dir=prompt_dir)


def _install(monkeypatch: pytest.MonkeyPatch, agent: FakeAgent, views: Optional[FakeViews] = None) -> None:
    monkeypatch.setattr("git_action_runner.executor.run_agent", agent)
    if views is not None:
        monkeypatch.setattr("git_action_runner.executor.fetch_pr_view", views)


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def test_commit_runs_agent_with_commit_prompt(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(ctx, [GitActionResult(success=True, output="Committed")])
    _install(monkeypatch, agent)

    result = execute_commit(tmp_path, "mention the ticket", "c1", context=ctx, options=options)

    assert result == GitActionResult(success=True, output="Committed")
    assert agent.phases == [OperationPhase.COMMITTING]
    assert "<git-action-runner-system-prompt>" in agent.prompts[0]
    assert agent.prompts[0].rstrip().endswith("mention the ticket")
    assert ctx.phases.phase is OperationPhase.IDLE


def test_commit_missing_prompt_file_is_reported(tmp_path, monkeypatch, ctx) -> None:
    agent = FakeAgent(ctx, [])
    _install(monkeypatch, agent)

    result = execute_commit(tmp_path, context=ctx, options=ExecutorOptions(prompt_dir=tmp_path / "empty"))

    assert result.success is False
    assert result.error is not None and result.error.startswith("Failed to execute commit: System prompt file not found")
    assert agent.prompts == []
    assert ctx.phases.phase is OperationPhase.IDLE


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------


def test_push_success_prefers_stderr_output(tmp_path, monkeypatch, ctx, options) -> None:
    calls: list[list[str]] = []

    def _fake(cmd, cwd, timeout_seconds, action_id=None, **kwargs):
        calls.append(list(cmd))
        assert ctx.phases.phase is OperationPhase.PUSHING
        return ProcessResult(stdout="", stderr="To github.com:o/r.git\n   a..b  main -> main\n", exit_code=0)

    monkeypatch.setattr("git_action_runner.executor.run_process", _fake)
    result = execute_push(tmp_path, context=ctx, options=options)

    assert result.success is True
    assert "main -> main" in result.output
    assert calls == [["git", "push"]]
    assert ctx.phases.phase is OperationPhase.IDLE


def test_push_retries_once_when_no_upstream(tmp_path, monkeypatch, ctx, options) -> None:
    calls: list[list[str]] = []
    responses = [
        ProcessResult(stdout="", stderr="fatal: The current branch feat has no upstream branch.", exit_code=128),
        ProcessResult(stdout="branch 'feat' set up to track 'origin/feat'.", stderr="", exit_code=0),
    ]

    def _fake(cmd, cwd, timeout_seconds, action_id=None, **kwargs):
        calls.append(list(cmd))
        return responses.pop(0)

    monkeypatch.setattr("git_action_runner.executor.run_process", _fake)
    result = execute_push(tmp_path, context=ctx, options=options)

    assert calls == [["git", "push"], ["git", "push", "-u", "origin", "HEAD"]]
    assert result.success is True
    assert result.output == "branch 'feat' set up to track 'origin/feat'."


def test_push_failure_without_upstream_marker_does_not_retry(tmp_path, monkeypatch, ctx, options) -> None:
    calls: list[list[str]] = []

    def _fake(cmd, cwd, timeout_seconds, action_id=None, **kwargs):
        calls.append(list(cmd))
        return ProcessResult(stdout="", stderr="", exit_code=1)

    monkeypatch.setattr("git_action_runner.executor.run_process", _fake)
    result = execute_push(tmp_path, context=ctx, options=options)

    assert calls == [["git", "push"]]
    assert result.success is False
    assert result.error == "Git push exited with code 1"


def test_push_timeout_is_reported_and_phase_reset(tmp_path, monkeypatch, ctx, options) -> None:
    def _boom(*args, **kwargs):
        raise TimeoutError("Command timeout")

    monkeypatch.setattr("git_action_runner.executor.run_process", _boom)
    result = execute_push(tmp_path, context=ctx, options=options)

    assert result.success is False
    assert result.error == "Failed to execute push: Command timeout"
    assert ctx.phases.phase is OperationPhase.IDLE


# ---------------------------------------------------------------------------
# Create PR
# ---------------------------------------------------------------------------


def test_create_pr_without_placeholder_skips_recovery(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(ctx, [GitActionResult(success=True, output="https://x/5")])
    views = FakeViews([GOOD_VIEW])
    _install(monkeypatch, agent, views)

    result = execute_create_pr(tmp_path, "develop", "focus on API", "p1", context=ctx, options=options)

    assert result == GitActionResult(success=True, output="https://x/5")
    assert len(agent.prompts) == 1
    assert "Base branch for PR: develop\n\nfocus on API" in agent.prompts[0]
    assert views.calls == 1
    assert agent.phases == [OperationPhase.CREATING_PR]
    assert ctx.phases.phase is OperationPhase.IDLE


def test_create_pr_without_any_pr_returns_initial_result(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(ctx, [GitActionResult(success=True, output="done")])
    _install(monkeypatch, agent, FakeViews([None]))

    result = execute_create_pr(tmp_path, "main", context=ctx, options=options)

    assert result.success is True
    assert len(agent.prompts) == 1


def test_create_pr_initial_failure_returned_verbatim(tmp_path, monkeypatch, ctx, options) -> None:
    failure = GitActionResult(success=False, output="partial", error="gh: not logged in")
    agent = FakeAgent(ctx, [failure])
    views = FakeViews([])
    _install(monkeypatch, agent, views)

    result = execute_create_pr(tmp_path, "main", context=ctx, options=options)

    assert result == failure
    assert views.calls == 0


def test_create_pr_placeholder_auto_fixed(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(
        ctx,
        [
            GitActionResult(success=True, output="Created https://x/5"),
            GitActionResult(success=True, output="Updated https://x/5"),
        ],
    )
    views = FakeViews([PLACEHOLDER_VIEW, GOOD_VIEW])
    _install(monkeypatch, agent, views)

    result = execute_create_pr(tmp_path, "main", "be brief", "p1", context=ctx, options=options)

    assert result.success is True
    assert result.output.startswith("Created https://x/5")
    assert "auto-fixed" in result.output
    assert len(agent.prompts) == 2
    recovery_prompt = agent.prompts[1]
    assert "placeholder content" in recovery_prompt
    assert f'Body must NOT be: "{PR_PLACEHOLDER_BODY}"' in recovery_prompt
    assert "## Summary" in recovery_prompt
    assert "git log main..HEAD --oneline" in recovery_prompt
    assert "Additional user context:\nbe brief" in recovery_prompt
    assert views.calls == 2
    assert ctx.phases.phase is OperationPhase.IDLE


def test_create_pr_placeholder_persists_after_recovery(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(
        ctx,
        [GitActionResult(success=True, output="first"), GitActionResult(success=True, output="second")],
    )
    _install(monkeypatch, agent, FakeViews([PLACEHOLDER_VIEW, PLACEHOLDER_VIEW]))

    result = execute_create_pr(tmp_path, "main", context=ctx, options=options)

    assert result.success is False
    assert result.output == "first\n\nsecond"
    assert result.error == "PR body/title still has placeholder content after recovery attempt"
    assert ctx.phases.phase is OperationPhase.IDLE


def test_create_pr_recovery_failure(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(
        ctx,
        [
            GitActionResult(success=True, output="first"),
            GitActionResult(success=False, output="", error="rate limited"),
        ],
    )
    views = FakeViews([PLACEHOLDER_VIEW])
    _install(monkeypatch, agent, views)

    result = execute_create_pr(tmp_path, "main", context=ctx, options=options)

    assert result.success is False
    assert result.output == "first"
    assert result.error == "PR was created with placeholder content and recovery failed: rate limited"
    assert views.calls == 1


def test_create_pr_cancelled_between_steps(tmp_path, monkeypatch, ctx, options) -> None:
    def _agent(project_path, prompt, action_id=None, **kwargs):
        # The cancel arrives after the agent already reported success.
        ctx.registry.request_cancel(action_id)
        return GitActionResult(success=True, output="Created")

    views = FakeViews([])
    monkeypatch.setattr("git_action_runner.executor.run_agent", _agent)
    monkeypatch.setattr("git_action_runner.executor.fetch_pr_view", views)

    result = execute_create_pr(tmp_path, "main", action_id="p9", context=ctx, options=options)

    assert result == GitActionResult(success=False, output="Created", error="Operation cancelled by user")
    assert views.calls == 0
    assert ctx.registry.is_cancelled("p9") is False


def test_create_pr_unexpected_error_resets_phase(tmp_path, monkeypatch, ctx, options) -> None:
    def _explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("git_action_runner.executor.run_agent", _explode)
    result = execute_create_pr(tmp_path, "main", context=ctx, options=options)

    assert result == GitActionResult(success=False, output="", error="Failed to execute create-pr: boom")
    assert ctx.phases.phase is OperationPhase.IDLE


# ---------------------------------------------------------------------------
# Update PR
# ---------------------------------------------------------------------------


def test_update_pr_without_existing_pr_fails_fast(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(ctx, [])
    _install(monkeypatch, agent, FakeViews([None]))

    result = execute_update_pr(tmp_path, "main", context=ctx, options=options)

    assert result == GitActionResult(success=False, output="", error="No existing PR found for current branch")
    assert agent.prompts == []
    assert ctx.phases.phase is OperationPhase.IDLE


def test_update_pr_runs_update_prompt(tmp_path, monkeypatch, ctx, options) -> None:
    agent = FakeAgent(ctx, [GitActionResult(success=True, output="Updated")])
    _install(monkeypatch, agent, FakeViews([GOOD_VIEW]))

    result = execute_update_pr(tmp_path, "develop", "mention migration", "u1", context=ctx, options=options)

    assert result.success is True
    prompt = agent.prompts[0]
    assert prompt.startswith("Update the existing GitHub PR for the current branch.")
    assert "git log develop..HEAD --oneline" in prompt
    assert "mention migration" in prompt
    assert "placeholder" not in prompt
    assert agent.phases == [OperationPhase.CREATING_PR]
