from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .constants import LOG_LEVEL_ENV
from .errors import PromptError
from .executor import execute_commit, execute_create_pr, execute_push, execute_update_pr
from .models import GitActionResult
from .prompts import SYSTEM_PROMPT_NAMES, ensure_system_prompt_files, get_system_prompt_dir, load_system_prompt
from .status import get_pr_status


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _emit_result(result: GitActionResult, as_json: bool) -> int:
    if as_json:
        sys.stdout.write(json.dumps(result.to_dict(), indent=2) + "\n")
    else:
        if result.output:
            sys.stdout.write(result.output.rstrip() + "\n")
        if result.error:
            sys.stderr.write(result.error.rstrip() + "\n")
    return 0 if result.success else 1


def _ensure_prompts() -> None:
    for path in ensure_system_prompt_files():
        logger.info("Created default system prompt {}", path)


def _commit(args: argparse.Namespace) -> int:
    _ensure_prompts()
    result = execute_commit(
        _resolve_project_dir(args.project_dir),
        args.context,
        model=args.model,
        output_language=args.language,
    )
    return _emit_result(result, args.json)


def _push(args: argparse.Namespace) -> int:
    return _emit_result(execute_push(_resolve_project_dir(args.project_dir)), args.json)


def _create_pr(args: argparse.Namespace) -> int:
    _ensure_prompts()
    result = execute_create_pr(
        _resolve_project_dir(args.project_dir),
        args.base,
        args.context,
        model=args.model,
        output_language=args.language,
    )
    return _emit_result(result, args.json)


def _update_pr(args: argparse.Namespace) -> int:
    result = execute_update_pr(
        _resolve_project_dir(args.project_dir),
        args.base,
        args.context,
        model=args.model,
        output_language=args.language,
    )
    return _emit_result(result, args.json)


def _pr_status(args: argparse.Namespace) -> int:
    status = get_pr_status(_resolve_project_dir(args.project_dir))
    sys.stdout.write(json.dumps({"status": status.to_dict()}, indent=2) + "\n")
    return 0


def _prompts_init(args: argparse.Namespace) -> int:
    created = ensure_system_prompt_files()
    sys.stdout.write(json.dumps({"dir": str(get_system_prompt_dir()), "created": [str(p) for p in created]}) + "\n")
    return 0


def _prompts_show(args: argparse.Namespace) -> int:
    try:
        sys.stdout.write(load_system_prompt(args.name).rstrip() + "\n")
    except PromptError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    return 0


def _prompts_path(args: argparse.Namespace) -> int:
    sys.stdout.write(str(get_system_prompt_dir()) + "\n")
    return 0


def _serve(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'git-action-runner[server]'\n")
        return 1

    from .server import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def _add_agent_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--context", default=None, help="Extra instructions appended to the prompt")
    parser.add_argument("--model", default=None, help="Override the agent model for this call")
    parser.add_argument("--language", default=None, help="Language for user-facing output (default: English)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Agent-driven git commit, push and pull request actions")
    parser.add_argument("--project-dir", default=None, help="Target repository (default: current working directory)")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "INFO"),
        help=f"Log level (default: INFO, or ${LOG_LEVEL_ENV})",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    commit = subparsers.add_parser("commit", help="Commit staged changes via the agent")
    _add_agent_args(commit)
    commit.set_defaults(func=_commit)

    push = subparsers.add_parser("push", help="Push the current branch")
    push.set_defaults(func=_push)

    create_pr = subparsers.add_parser("create-pr", help="Create a pull request via the agent")
    create_pr.add_argument("--base", required=True, help="Base branch for the pull request")
    _add_agent_args(create_pr)
    create_pr.set_defaults(func=_create_pr)

    update_pr = subparsers.add_parser("update-pr", help="Refresh the existing pull request via the agent")
    update_pr.add_argument("--base", required=True, help="Base branch to compare against")
    _add_agent_args(update_pr)
    update_pr.set_defaults(func=_update_pr)

    status = subparsers.add_parser("pr-status", help="Show PR and branch status")
    status.set_defaults(func=_pr_status)

    prompts = subparsers.add_parser("prompts", help="Manage system prompt files")
    prompts_sub = prompts.add_subparsers(dest="prompts_cmd", required=True)
    pinit = prompts_sub.add_parser("init", help="Write default prompt files if missing")
    pinit.set_defaults(func=_prompts_init)
    pshow = prompts_sub.add_parser("show", help="Print a system prompt")
    pshow.add_argument("name", choices=list(SYSTEM_PROMPT_NAMES))
    pshow.set_defaults(func=_prompts_show)
    ppath = prompts_sub.add_parser("path", help="Print the prompt directory")
    ppath.set_defaults(func=_prompts_path)

    serve = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", default=8000, type=int)
    serve.set_defaults(func=_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
