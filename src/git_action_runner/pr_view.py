"""Read the pull request attached to the current branch and detect placeholder content."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from .constants import DEFAULT_INSPECT_TIMEOUT_SECONDS, PR_PLACEHOLDER_BODY, PR_PLACEHOLDER_TITLE, PR_VIEW_FIELDS
from .context import GitActionContext
from .errors import PRViewParseError
from .models import PRView
from .process import run_process

_PLACEHOLDER_TITLE = PR_PLACEHOLDER_TITLE.strip().lower()
_PLACEHOLDER_BODY = PR_PLACEHOLDER_BODY.strip().lower()


def is_placeholder(view: PRView) -> bool:
    """Return True if the PR title or body is still the agent's placeholder text."""
    title = view.title.strip().lower()
    body = (view.body or "").strip().lower()
    return title == _PLACEHOLDER_TITLE or body == _PLACEHOLDER_BODY


def as_pr_number(value: Any) -> Optional[int]:
    """Return `value` as a PR number, or None if it is not an integral JSON number.

    `5.0` is accepted since JSON does not distinguish integers from floats.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_pr_view(text: str) -> PRView:
    """Parse `gh pr view --json number,url,title,body` output.

    Raises:
        PRViewParseError: The output is not a JSON object with the expected field types.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PRViewParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PRViewParseError(f"expected object, got {type(data).__name__}")
    number, url, title = as_pr_number(data.get("number")), data.get("url"), data.get("title")
    if number is None or not isinstance(url, str) or not isinstance(title, str):
        raise PRViewParseError("missing or mistyped number/url/title")
    body = data.get("body")
    return PRView(number=number, url=url, title=title, body=body if isinstance(body, str) else None)


def fetch_pr_view(
    project_path: Union[str, Path],
    *,
    context: Optional[GitActionContext] = None,
    timeout_seconds: float = DEFAULT_INSPECT_TIMEOUT_SECONDS,
) -> Optional[PRView]:
    """Return the current branch's PR, or None when there is none or gh output is unusable.

    This is a side inspection: it is not tied to an action id and never raises.
    """
    try:
        result = run_process(
            ["gh", "pr", "view", "--json", PR_VIEW_FIELDS],
            project_path,
            timeout_seconds,
            context=context,
        )
    except Exception as exc:
        logger.debug("gh pr view failed: {}", exc)
        return None
    if not result.ok:
        return None
    try:
        return parse_pr_view(result.stdout)
    except PRViewParseError as exc:
        logger.debug("Ignoring unusable gh pr view output: {}", exc)
        return None
