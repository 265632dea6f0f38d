"""Load optional runner configuration from `.git_action_runner/config.yaml`."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .constants import (
    CONFIG_FILE,
    DEFAULT_AGENT_COMMAND,
    DEFAULT_AGENT_MODEL,
    DEFAULT_AGENT_TIMEOUT_SECONDS,
    DEFAULT_AGENT_TOOLS,
    DEFAULT_INSPECT_TIMEOUT_SECONDS,
    DEFAULT_OUTPUT_LANGUAGE,
    DEFAULT_PUSH_TIMEOUT_SECONDS,
    PROMPT_DIR_ENV,
    STATE_DIR_NAME,
)
from .io_utils import _load_data_with_error


def load_runner_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional runner config file.

    Args:
        project_dir: Repository root directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = Path(project_dir).resolve() / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def load_runner_config_or_default(project_dir: Path) -> dict[str, Any]:
    config, err = load_runner_config(project_dir)
    if err:
        logger.warning("Ignoring invalid runner config: {}", err)
    return config


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _str_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _seconds_or(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if value > 0 else default


@dataclass(frozen=True)
class AgentSettings:
    """How the coding-agent CLI is invoked."""

    command: str = DEFAULT_AGENT_COMMAND
    model: str = DEFAULT_AGENT_MODEL
    tools: str = DEFAULT_AGENT_TOOLS
    timeout_seconds: float = DEFAULT_AGENT_TIMEOUT_SECONDS
    output_language: str = DEFAULT_OUTPUT_LANGUAGE

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AgentSettings":
        raw = _get_nested(config, "agent")
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            command=_str_or(raw.get("command"), DEFAULT_AGENT_COMMAND),
            model=_str_or(raw.get("model"), DEFAULT_AGENT_MODEL),
            tools=_str_or(raw.get("tools"), DEFAULT_AGENT_TOOLS),
            timeout_seconds=_seconds_or(raw.get("timeout_seconds"), DEFAULT_AGENT_TIMEOUT_SECONDS),
            output_language=_str_or(raw.get("output_language"), DEFAULT_OUTPUT_LANGUAGE),
        )


@dataclass(frozen=True)
class Timeouts:
    push_seconds: float = DEFAULT_PUSH_TIMEOUT_SECONDS
    inspect_seconds: float = DEFAULT_INSPECT_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Timeouts":
        return cls(
            push_seconds=_seconds_or(_get_nested(config, "timeouts", "push_seconds"), DEFAULT_PUSH_TIMEOUT_SECONDS),
            inspect_seconds=_seconds_or(
                _get_nested(config, "timeouts", "inspect_seconds"), DEFAULT_INSPECT_TIMEOUT_SECONDS
            ),
        )


def get_prompt_dir_override(config: Optional[dict[str, Any]] = None) -> Optional[Path]:
    """Resolve a custom prompt directory from the environment or the config.

    The environment variable wins over the config file.
    """
    env_value = os.environ.get(PROMPT_DIR_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    raw = _get_nested(config or {}, "prompts", "dir")
    if isinstance(raw, str) and raw.strip():
        return Path(raw.strip()).expanduser()
    return None
