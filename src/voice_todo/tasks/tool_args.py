# src/voice_todo/tasks/tool_args.py

"""Pydantic models for the arguments the language model sends to each tool."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ToolArgs(BaseModel):
    # Numbers become strings ("identifier": 2 -> "2"); unknown keys are dropped.
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class CreateTaskArgs(ToolArgs):
    title: str
    scheduled_time: Optional[str] = None
    priority: Any = None
    tags: Optional[list[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _single_tag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class GetTasksArgs(ToolArgs):
    query: Optional[str] = None
    priority: Any = None
    scheduled: Optional[str] = None


class UpdateTaskArgs(ToolArgs):
    identifier: str
    title: Optional[str] = None
    scheduled_time: Optional[str] = None
    priority: Any = None
    completed: Optional[bool] = None


class DeleteTaskArgs(ToolArgs):
    identifier: str
