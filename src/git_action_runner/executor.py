"""Execute git actions (commit, push, create-pr, update-pr).

Commit and the PR actions are delegated to the coding agent; push runs git
directly. Every executor holds its operation phase for the duration of the
call, returns a `GitActionResult` and never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .agent import run_agent
from .config import AgentSettings, Timeouts, get_prompt_dir_override, load_runner_config_or_default
from .constants import AUTO_FIXED_NOTE, CANCELLED_MESSAGE, NO_UPSTREAM_MARKER
from .context import GitActionContext, resolve_context
from .errors import RecoveryFailure
from .models import GitActionResult, OperationPhase
from .pr_view import fetch_pr_view, is_placeholder
from .process import run_process
from .prompts import build_language_instruction, build_pr_recovery_prompt, build_pr_update_prompt, build_prompt

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ExecutorOptions:
    """Agent settings, timeouts and prompt location for one executor call."""

    agent: AgentSettings = field(default_factory=AgentSettings)
    timeouts: Timeouts = field(default_factory=Timeouts)
    prompt_dir: Optional[Path] = None

    @classmethod
    def for_project(cls, project_path: PathLike) -> "ExecutorOptions":
        config = load_runner_config_or_default(Path(project_path))
        return cls(
            agent=AgentSettings.from_config(config),
            timeouts=Timeouts.from_config(config),
            prompt_dir=get_prompt_dir_override(config),
        )


def _options(project_path: PathLike, options: Optional[ExecutorOptions]) -> ExecutorOptions:
    return options if options is not None else ExecutorOptions.for_project(project_path)


def _language(options: ExecutorOptions, output_language: Optional[str]) -> str:
    if output_language and output_language.strip():
        return output_language
    return options.agent.output_language


def execute_commit(
    project_path: PathLike,
    custom_ctx: Optional[str] = None,
    action_id: Optional[str] = None,
    *,
    model: Optional[str] = None,
    output_language: Optional[str] = None,
    context: Optional[GitActionContext] = None,
    options: Optional[ExecutorOptions] = None,
) -> GitActionResult:
    """Have the agent review the staged changes and create a commit."""
    ctx = resolve_context(context)
    with ctx.phases.enter(OperationPhase.COMMITTING):
        try:
            opts = _options(project_path, options)
            logger.info("Commit started in {}", project_path)
            prompt = build_prompt("commit", custom_ctx, _language(opts, output_language), opts.prompt_dir)
            result = run_agent(project_path, prompt, action_id, context=ctx, settings=opts.agent, model=model)
            logger.info("Commit finished (success={})", result.success)
            return result
        except Exception as exc:
            logger.error("Commit failed unexpectedly: {}", exc)
            return GitActionResult.failed(f"Failed to execute commit: {exc}")


def execute_push(
    project_path: PathLike,
    *,
    context: Optional[GitActionContext] = None,
    options: Optional[ExecutorOptions] = None,
) -> GitActionResult:
    """Push the current branch, setting `origin/HEAD` as upstream when none exists."""
    ctx = resolve_context(context)
    with ctx.phases.enter(OperationPhase.PUSHING):
        try:
            timeout = _options(project_path, options).timeouts.push_seconds
            logger.info("Push started in {}", project_path)
            result = run_process(["git", "push"], project_path, timeout, context=ctx)
            if not result.ok and NO_UPSTREAM_MARKER in result.stderr:
                logger.info("No upstream branch; retrying with -u origin HEAD")
                result = run_process(["git", "push", "-u", "origin", "HEAD"], project_path, timeout, context=ctx)

            if result.ok:
                # git reports push progress on stderr even when it succeeds.
                return GitActionResult(success=True, output=result.stderr if result.stderr else result.stdout)
            error = result.stderr if result.stderr else f"Git push exited with code {result.exit_code}"
            return GitActionResult.failed(error, output=result.stdout)
        except Exception as exc:
            logger.error("Push failed: {}", exc)
            return GitActionResult.failed(f"Failed to execute push: {exc}")


def _join_outputs(*outputs: str) -> str:
    return "\n\n".join(outputs).strip()


def _recover_placeholder_pr(
    project_path: PathLike,
    base_branch: str,
    custom_ctx: Optional[str],
    action_id: Optional[str],
    initial: GitActionResult,
    ctx: GitActionContext,
    opts: ExecutorOptions,
    model: Optional[str],
) -> GitActionResult:
    """Replace placeholder PR content and verify the fix.

    Raises:
        RecoveryFailure: The recovery run failed or placeholder content persisted.
    """
    recovery = run_agent(
        project_path,
        build_pr_recovery_prompt(base_branch, custom_ctx),
        action_id,
        context=ctx,
        settings=opts.agent,
        model=model,
    )
    combined = _join_outputs(initial.output, recovery.output)
    if not recovery.success:
        raise RecoveryFailure(
            "PR was created with placeholder content and recovery failed: "
            f"{recovery.error or 'Unknown error'}",
            output=combined,
        )

    verified = fetch_pr_view(project_path, context=ctx, timeout_seconds=opts.timeouts.inspect_seconds)
    if verified is not None and is_placeholder(verified):
        raise RecoveryFailure("PR body/title still has placeholder content after recovery attempt", output=combined)

    return GitActionResult(success=True, output=_join_outputs(initial.output, AUTO_FIXED_NOTE))


def execute_create_pr(
    project_path: PathLike,
    base_branch: str,
    custom_ctx: Optional[str] = None,
    action_id: Optional[str] = None,
    *,
    model: Optional[str] = None,
    output_language: Optional[str] = None,
    context: Optional[GitActionContext] = None,
    options: Optional[ExecutorOptions] = None,
) -> GitActionResult:
    """Have the agent open a PR, then make sure it does not keep placeholder content.

    Steps: run the agent, re-check cancellation, inspect the PR, and only if
    its title or body is still the placeholder run one recovery prompt and
    verify the result.
    """
    ctx = resolve_context(context)
    with ctx.phases.enter(OperationPhase.CREATING_PR):
        try:
            opts = _options(project_path, options)
            logger.info("Create PR started in {} (base={})", project_path, base_branch)
            full_ctx = f"Base branch for PR: {base_branch}"
            if custom_ctx is not None and custom_ctx.strip():
                full_ctx = f"{full_ctx}\n\n{custom_ctx}"
            prompt = build_prompt("create-pr", full_ctx, _language(opts, output_language), opts.prompt_dir)

            initial = run_agent(project_path, prompt, action_id, context=ctx, settings=opts.agent, model=model)
            if not initial.success:
                return initial

            if ctx.registry.consume(action_id):
                return GitActionResult.failed(CANCELLED_MESSAGE, output=initial.output)

            current = fetch_pr_view(project_path, context=ctx, timeout_seconds=opts.timeouts.inspect_seconds)
            if current is None or not is_placeholder(current):
                return initial

            logger.warning("PR #{} still has placeholder content; running recovery", current.number)
            try:
                return _recover_placeholder_pr(
                    project_path, base_branch, custom_ctx, action_id, initial, ctx, opts, model
                )
            except RecoveryFailure as exc:
                logger.warning("PR recovery failed: {}", exc)
                return GitActionResult.failed(str(exc), output=exc.output)
        except Exception as exc:
            logger.error("Create PR failed unexpectedly: {}", exc)
            return GitActionResult.failed(f"Failed to execute create-pr: {exc}")


def execute_update_pr(
    project_path: PathLike,
    base_branch: str,
    custom_ctx: Optional[str] = None,
    action_id: Optional[str] = None,
    *,
    model: Optional[str] = None,
    output_language: Optional[str] = None,
    context: Optional[GitActionContext] = None,
    options: Optional[ExecutorOptions] = None,
) -> GitActionResult:
    """Have the agent rewrite the existing PR to match the latest changes."""
    ctx = resolve_context(context)
    with ctx.phases.enter(OperationPhase.CREATING_PR):
        try:
            opts = _options(project_path, options)
            current = fetch_pr_view(project_path, context=ctx, timeout_seconds=opts.timeouts.inspect_seconds)
            if current is None:
                return GitActionResult.failed("No existing PR found for current branch")
            logger.info("Update PR #{} started in {}", current.number, project_path)
            prompt = "\n\n".join(
                [
                    build_pr_update_prompt(base_branch, custom_ctx),
                    build_language_instruction(_language(opts, output_language)),
                ]
            )
            return run_agent(project_path, prompt, action_id, context=ctx, settings=opts.agent, model=model)
        except Exception as exc:
            logger.error("Update PR failed unexpectedly: {}", exc)
            return GitActionResult.failed(f"Failed to execute update-pr: {exc}")


def cancel_git_action(action_id: str, *, context: Optional[GitActionContext] = None) -> bool:
    """Request cancellation of the action started with `action_id`.

    Returns:
        True if a running process existed and was sent a kill signal.
    """
    return resolve_context(context).registry.request_cancel(action_id)


def get_operation_phase(*, context: Optional[GitActionContext] = None) -> OperationPhase:
    return resolve_context(context).phases.phase


def is_git_operation_running(*, context: Optional[GitActionContext] = None) -> bool:
    """Return True while any git-mutating executor is in flight."""
    return resolve_context(context).phases.is_running()
