"""Invoke the coding-agent CLI non-interactively and map its outcome."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .config import AgentSettings
from .constants import CANCELLED_MESSAGE
from .context import GitActionContext, resolve_context
from .process import run_process
from .models import GitActionResult


def build_agent_command(prompt: str, settings: AgentSettings, model: Optional[str] = None) -> list[str]:
    return [
        settings.command,
        "-p",
        prompt,
        "--permission-mode",
        "bypassPermissions",
        "--model",
        model or settings.model,
        "--tools",
        settings.tools,
        "--no-session-persistence",
        "--output-format",
        "text",
    ]


def run_agent(
    project_path: Union[str, Path],
    prompt: str,
    action_id: Optional[str] = None,
    *,
    context: Optional[GitActionContext] = None,
    settings: Optional[AgentSettings] = None,
    model: Optional[str] = None,
) -> GitActionResult:
    """Run the agent with `prompt` in `project_path`.

    Cancellation is checked after the process returns as well as before it is
    spawned: a kill racing the agent's own exit can leave either outcome, and
    a recorded cancel request always wins over an apparent success.
    """
    ctx = resolve_context(context)
    settings = settings or AgentSettings()
    command = build_agent_command(prompt, settings, model)

    try:
        result = run_process(command, project_path, settings.timeout_seconds, action_id, context=ctx)
    except Exception as exc:
        # Covers ActionCancelledError, ProcessTimeoutError and spawn failures.
        if ctx.registry.consume(action_id):
            logger.warning("Agent run {} cancelled", action_id)
            return GitActionResult.failed(CANCELLED_MESSAGE)
        logger.warning("Agent run failed: {}", exc)
        return GitActionResult.failed(f"Failed to execute claude: {exc}")

    if ctx.registry.consume(action_id):
        logger.warning("Agent run {} finished after cancellation; discarding result", action_id)
        return GitActionResult.failed(CANCELLED_MESSAGE, output=result.stdout)

    if result.ok:
        return GitActionResult(success=True, output=result.stdout)

    error = result.stderr if result.stderr else f"Claude CLI exited with code {result.exit_code}"
    return GitActionResult.failed(error, output=result.stdout)
