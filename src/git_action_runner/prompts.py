"""Build the text prompts passed to the coding agent for each git action.

The commit and create-pr system prompts live as editable markdown files in
the user's config directory (`~/.config/git-action-runner/prompt/`). The
recovery and update prompts are built here and are not user-editable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_prompt_dir_override
from .constants import APP_NAME, DEFAULT_OUTPUT_LANGUAGE, PR_PLACEHOLDER_BODY, PR_PLACEHOLDER_TITLE
from .errors import PromptError

SYSTEM_PROMPT_NAMES: tuple[str, ...] = ("commit", "create-pr")

_PROMPT_TAG = f"{APP_NAME}-system-prompt"
_LANGUAGE_TAG = f"{APP_NAME}-output-language"

_DEFAULT_COMMIT_PROMPT = """---
name: git-commit
description: Create a git commit for the staged changes.
---

You are creating a git commit for the repository in the current directory.

Steps:
1. Inspect the repository state with `git status` and `git diff --staged`.
   If nothing is staged, stage the modified tracked files with `git add -u`
   and review them with `git diff --staged`.
2. Read `git log --oneline -10` to match the existing commit message style.
3. Write a commit message:
   - Subject line in imperative mood, at most 72 characters.
   - A blank line, then a short body explaining what changed and why when
     the change is not trivial.
4. Run `git commit` with that message. Never use `--no-verify` and never
   amend existing commits.
5. If a pre-commit hook fails, fix the reported problem, re-stage and
   commit again.
6. Print the resulting commit hash and subject.
"""

_DEFAULT_CREATE_PR_PROMPT = f"""---
name: git-pr
description: Create a GitHub pull request for the current branch.
---

You are creating a GitHub pull request for the current branch using the gh CLI.

Steps:
1. Check the branch with `git branch --show-current` and make sure it is
   pushed (`git push -u origin HEAD` when it has no upstream).
2. Analyze the changes against the base branch:
   - `git log <base>..HEAD --oneline`
   - `git diff <base>...HEAD --stat`
3. Write a title (imperative, at most 72 characters) and a body with a
   "## Summary" section and a "## Changes" section that name the concrete
   files and components touched.
4. Create the PR with `gh pr create --base <base> --title ... --body ...`.
   Never leave the title as "{PR_PLACEHOLDER_TITLE}" or the body as
   "{PR_PLACEHOLDER_BODY}".
5. Verify with `gh pr view --json title,body,url` and print the PR URL.
"""

_DEFAULT_PROMPTS: dict[str, str] = {
    "commit": _DEFAULT_COMMIT_PROMPT,
    "create-pr": _DEFAULT_CREATE_PR_PROMPT,
}


def _config_root() -> Path:
    return Path.home() / ".config" / APP_NAME


def get_system_prompt_dir(prompt_dir: Optional[Path] = None) -> Path:
    """Return the directory holding the editable system prompts."""
    if prompt_dir is not None:
        return Path(prompt_dir).expanduser()
    override = get_prompt_dir_override()
    if override is not None:
        return override
    return _config_root() / "prompt"


def _legacy_system_prompt_dir() -> Path:
    return _config_root() / "system-prompt"


def _validate_name(name: str) -> None:
    if name not in SYSTEM_PROMPT_NAMES:
        raise PromptError(f"Unknown system prompt: {name!r}")


def _system_prompt_path(name: str, prompt_dir: Optional[Path] = None) -> Path:
    return get_system_prompt_dir(prompt_dir) / f"{name}.md"


def _legacy_system_prompt_path(name: str) -> Path:
    return _legacy_system_prompt_dir() / f"{name}.md"


def resolve_system_prompt_path(name: str, prompt_dir: Optional[Path] = None) -> Optional[Path]:
    """Return the existing prompt file for `name`, falling back to the legacy location."""
    _validate_name(name)
    primary = _system_prompt_path(name, prompt_dir)
    if primary.exists():
        return primary
    if prompt_dir is None:
        legacy = _legacy_system_prompt_path(name)
        if legacy.exists():
            return legacy
    return None


def strip_frontmatter(content: str) -> str:
    """Remove a leading YAML frontmatter block delimited by `---` lines.

    Content without a complete frontmatter block is returned unchanged.
    """
    lines = content.split("\n")
    first = next((i for i, line in enumerate(lines) if line.strip() == "---"), None)
    if first is None:
        return content
    second = next((i for i, line in enumerate(lines) if i > first and line.strip() == "---"), None)
    if second is None:
        return content
    return "\n".join(lines[second + 1 :]).strip()


def default_system_prompt(name: str) -> str:
    _validate_name(name)
    return strip_frontmatter(_DEFAULT_PROMPTS[name])


def ensure_system_prompt_files(prompt_dir: Optional[Path] = None) -> list[Path]:
    """Create the prompt directory and any missing prompt files.

    A prompt found in the legacy directory is copied over; otherwise the
    bundled default is written.

    Returns:
        Paths of the files that were created.
    """
    directory = get_system_prompt_dir(prompt_dir)
    directory.mkdir(parents=True, exist_ok=True)
    created: list[Path] = []
    for name in SYSTEM_PROMPT_NAMES:
        path = _system_prompt_path(name, prompt_dir)
        if path.exists():
            continue
        legacy = _legacy_system_prompt_path(name)
        if prompt_dir is None and legacy.exists():
            content = legacy.read_text(encoding="utf-8")
            logger.info("Migrating legacy prompt {} -> {}", legacy, path)
        else:
            content = default_system_prompt(name)
        path.write_text(content, encoding="utf-8")
        created.append(path)
    return created


def load_system_prompt(name: str, prompt_dir: Optional[Path] = None) -> str:
    """Read the system prompt called `name`.

    Raises:
        PromptError: The file does not exist or cannot be read.
    """
    path = resolve_system_prompt_path(name, prompt_dir)
    if path is None:
        expected = _system_prompt_path(name, prompt_dir)
        raise PromptError(f"System prompt file not found: {expected}", path=str(expected))
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptError(f"Failed to read system prompt file: {exc}", path=str(path)) from exc


def save_system_prompt(name: str, content: str, prompt_dir: Optional[Path] = None) -> Path:
    _validate_name(name)
    if not isinstance(content, str) or not content.strip():
        raise PromptError("content must be a non-empty string")
    path = _system_prompt_path(name, prompt_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def wrap_system_prompt(content: str) -> str:
    return f"<{_PROMPT_TAG}>\n{content}\n</{_PROMPT_TAG}>"


def build_language_instruction(output_language: Optional[str]) -> str:
    language = output_language.strip() if output_language and output_language.strip() else DEFAULT_OUTPUT_LANGUAGE
    return (
        f"<{_LANGUAGE_TAG}>\n"
        f"Write all user-facing output in {language}.\n"
        "Do not translate code blocks, command names, file paths, or identifiers unless explicitly requested.\n"
        f"</{_LANGUAGE_TAG}>"
    )


def build_prompt(
    name: str,
    custom_ctx: Optional[str] = None,
    output_language: Optional[str] = DEFAULT_OUTPUT_LANGUAGE,
    prompt_dir: Optional[Path] = None,
) -> str:
    """Load a system prompt and combine it with the language instruction and caller context."""
    sections = [
        wrap_system_prompt(load_system_prompt(name, prompt_dir)),
        build_language_instruction(output_language),
    ]
    if custom_ctx is not None and custom_ctx.strip():
        sections.append(custom_ctx)
    return "\n\n".join(sections)


def _user_context_block(custom_ctx: Optional[str]) -> str:
    if custom_ctx is not None and custom_ctx.strip():
        return f"\nAdditional user context:\n{custom_ctx.strip()}\n"
    return ""


def build_pr_recovery_prompt(base_branch: str, custom_ctx: Optional[str] = None) -> str:
    """Build the stricter follow-up prompt that replaces placeholder PR content."""
    return f"""The current branch already has a PR, but it still contains placeholder content.

Your task is to update that PR so it has a complete, reviewer-ready title and description.

Requirements:
- Body must NOT be: "{PR_PLACEHOLDER_BODY}"
- Title must NOT be: "{PR_PLACEHOLDER_TITLE}"
- Body must clearly explain what changed and why
- Include a "## Summary" section and a "## Changes" section
- Include concrete file/component references when possible

Execution steps:
1. Read current PR data: gh pr view --json number,title,body,url,baseRefName,headRefName
2. Analyze changes from GitHub data (not only local assumptions):
   - gh pr diff --name-status
   - gh pr view --json additions,deletions,changedFiles,files
   - git log {base_branch}..HEAD --oneline
3. Generate an improved title/body.
4. Update the PR using gh pr edit.
5. Verify with gh pr view --json title,body that placeholder content is gone.
6. Print final PR URL and the updated title.
{_user_context_block(custom_ctx)}
Do not stop until the PR body is a meaningful description."""


def build_pr_update_prompt(base_branch: str, custom_ctx: Optional[str] = None) -> str:
    """Build the prompt that refreshes an existing PR against the latest changes."""
    return f"""Update the existing GitHub PR for the current branch.

Requirements:
- Body must clearly explain what changed and why
- Include "## Summary" and "## Changes"
- Reflect the latest commits and file changes against {base_branch}

Execution steps:
1. Read current PR: gh pr view --json number,title,body,url,baseRefName,headRefName
2. Analyze latest changes:
   - gh pr diff --name-status
   - gh pr view --json additions,deletions,changedFiles,files
   - git log {base_branch}..HEAD --oneline
3. Generate improved title/body for the current state.
4. Update the PR with gh pr edit.
5. Verify updated title/body with gh pr view --json title,body,url.
6. Print PR URL and updated title.
{_user_context_block(custom_ctx)}
Do not stop until the PR description is updated."""
