# src/voice_todo/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_api import TaskApiClient
from ..tasks.task_tools import TaskTools
from .ports import LLMClient
from .session import AssistantSession


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: object

    api: TaskApiClient
    tools: TaskTools
    llm: LLMClient
    session: AssistantSession
