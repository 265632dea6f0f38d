"""Pydantic request models for the git actions API.

Field names follow the camelCase JSON used by the web client.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CommitRequest(_CamelModel):
    project_path: str = Field("", alias="projectPath")
    custom_ctx: Optional[str] = Field(None, alias="customCtx")
    action_id: Optional[str] = Field(None, alias="actionId")
    model: Optional[str] = None


class PushRequest(_CamelModel):
    project_path: str = Field("", alias="projectPath")


class CreatePRRequest(_CamelModel):
    project_path: str = Field("", alias="projectPath")
    base_branch: str = Field("", alias="baseBranch")
    custom_ctx: Optional[str] = Field(None, alias="customCtx")
    action_id: Optional[str] = Field(None, alias="actionId")
    model: Optional[str] = None


class CancelRequest(_CamelModel):
    action_id: str = Field("", alias="actionId")


class SavePromptRequest(_CamelModel):
    content: str = ""
