"""FastAPI routes for git actions (commit, push, create-pr, update-pr).

Commit and the PR actions are agent-driven; push runs git directly. Action
handlers are plain (sync) functions so FastAPI runs them in its thread pool
and `/cancel` stays responsive while an action is blocking.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ..context import GitActionContext, resolve_context
from ..errors import PromptError
from ..executor import (
    cancel_git_action,
    execute_commit,
    execute_create_pr,
    execute_push,
    execute_update_pr,
    get_operation_phase,
    is_git_operation_running,
)
from ..git_utils import is_git_repository
from ..prompts import (
    SYSTEM_PROMPT_NAMES,
    ensure_system_prompt_files,
    load_system_prompt,
    resolve_system_prompt_path,
    save_system_prompt,
)
from ..status import get_pr_status
from .models import CancelRequest, CommitRequest, CreatePRRequest, PushRequest, SavePromptRequest

NOT_A_REPOSITORY_MESSAGE = "Not a git repository. Git operations are not available for this directory."
INVALID_PROMPT_NAME_MESSAGE = "Invalid prompt name: must be " + " or ".join(SYSTEM_PROMPT_NAMES)


def _error(message: str, code: int) -> JSONResponse:
    return JSONResponse({"error": message, "code": code}, status_code=code)


def _is_non_empty(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_project(project_path: Optional[str], field: str = "projectPath") -> Optional[JSONResponse]:
    if not _is_non_empty(project_path):
        return _error(f"{field} must be a non-empty string", 400)
    if not is_git_repository(project_path):
        return _error(NOT_A_REPOSITORY_MESSAGE, 400)
    return None


def create_git_actions_router(context: Optional[GitActionContext] = None) -> APIRouter:
    """Build the `/api/git-actions` router bound to one orchestration context."""
    ctx = resolve_context(context)
    router = APIRouter(prefix="/api/git-actions", tags=["git-actions"])

    @router.get("/operating")
    def operating() -> dict[str, Any]:
        return {
            "operating": is_git_operation_running(context=ctx),
            "phase": get_operation_phase(context=ctx).value,
        }

    @router.post("/commit")
    def commit(body: CommitRequest) -> Any:
        invalid = _validate_project(body.project_path)
        if invalid is not None:
            return invalid
        result = execute_commit(body.project_path, body.custom_ctx, body.action_id, model=body.model, context=ctx)
        return result.to_dict()

    @router.post("/push")
    def push(body: PushRequest) -> Any:
        invalid = _validate_project(body.project_path)
        if invalid is not None:
            return invalid
        return execute_push(body.project_path, context=ctx).to_dict()

    @router.post("/create-pr")
    def create_pr(body: CreatePRRequest) -> Any:
        invalid = _validate_project(body.project_path)
        if invalid is not None:
            return invalid
        if not _is_non_empty(body.base_branch):
            return _error("baseBranch must be a non-empty string", 400)
        result = execute_create_pr(
            body.project_path,
            body.base_branch,
            body.custom_ctx,
            body.action_id,
            model=body.model,
            context=ctx,
        )
        return result.to_dict()

    @router.post("/update-pr")
    def update_pr(body: CreatePRRequest) -> Any:
        invalid = _validate_project(body.project_path)
        if invalid is not None:
            return invalid
        if not _is_non_empty(body.base_branch):
            return _error("baseBranch must be a non-empty string", 400)
        result = execute_update_pr(
            body.project_path,
            body.base_branch,
            body.custom_ctx,
            body.action_id,
            model=body.model,
            context=ctx,
        )
        return result.to_dict()

    @router.post("/cancel")
    def cancel(body: CancelRequest) -> Any:
        if not _is_non_empty(body.action_id):
            return _error("actionId must be a non-empty string", 400)
        cancelled = cancel_git_action(body.action_id, context=ctx)
        return {"success": True, "actionId": body.action_id, "cancelled": cancelled}

    @router.get("/pr-status")
    def pr_status(project_path: Optional[str] = Query(None, alias="projectPath")) -> Any:
        if not _is_non_empty(project_path):
            return _error("projectPath query parameter must be a non-empty string", 400)
        invalid = _validate_project(project_path)
        if invalid is not None:
            return invalid
        return {"status": get_pr_status(project_path, context=ctx).to_dict()}

    @router.get("/prompts/{name}")
    def get_prompt(name: str) -> Any:
        if name not in SYSTEM_PROMPT_NAMES:
            return _error(INVALID_PROMPT_NAME_MESSAGE, 400)
        try:
            content = load_system_prompt(name)
        except PromptError as exc:
            return _error(str(exc), 500)
        path = resolve_system_prompt_path(name)
        return {"name": name, "content": content, "path": str(path) if path else None}

    @router.put("/prompts/{name}")
    def put_prompt(name: str, body: SavePromptRequest) -> Any:
        if name not in SYSTEM_PROMPT_NAMES:
            return _error(INVALID_PROMPT_NAME_MESSAGE, 400)
        try:
            path = save_system_prompt(name, body.content)
        except PromptError as exc:
            return _error(str(exc), 400)
        return {"name": name, "path": str(path)}

    return router


def create_app(
    context: Optional[GitActionContext] = None,
    enable_cors: bool = True,
    ensure_prompts: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Orchestration context shared by all requests.
        enable_cors: Whether to enable CORS.
        ensure_prompts: Write default system prompt files on startup.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Git Action Runner",
        description="Agent-driven commit, push and pull request actions",
        version="0.1.0",
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if ensure_prompts:
        try:
            created = ensure_system_prompt_files()
        except OSError as exc:
            logger.warning("Unable to create system prompt files: {}", exc)
        else:
            for path in created:
                logger.info("Created default system prompt {}", path)

    app.state.git_action_context = resolve_context(context)
    app.include_router(create_git_actions_router(app.state.git_action_context))

    @app.get("/")
    def root() -> dict[str, Any]:
        return {"name": "Git Action Runner", "version": "0.1.0", "status": "running"}

    return app
