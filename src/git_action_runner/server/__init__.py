"""HTTP surface for the git action executors."""

from __future__ import annotations

from .api import create_app, create_git_actions_router

__all__ = ["create_app", "create_git_actions_router"]
