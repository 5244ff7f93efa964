# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from voice_todo.core.retry import RetryPolicy
from voice_todo.core.session import AssistantSession, SessionConfig
from voice_todo.core.state import AppState
from voice_todo.tasks.task_api import TaskApiClient
from voice_todo.tasks.task_tools import TaskTools

from .fakes import FakeLLMClient, FakeTaskServer, RecordingNotifier

# Monday, 2024-01-15 10:00 UTC
NOW = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)

FAST_POLICY = RetryPolicy(max_retries=2, initial_delay_ms=1, max_delay_ms=2, timeout_ms=1000)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="voice-todo-test",
        data_dir=tmp_path / "data",
        api_base_url="http://tasks.test",
        llm_models=["test-model"],
        llm_temperature=0.0,
        llm_max_tool_rounds=4,
        user_timezone="UTC",
        greeting="Hi, I'm Sid, how can I assist you today?",
        greeting_play_once=True,
    )


@pytest.fixture()
def server() -> FakeTaskServer:
    return FakeTaskServer()


@pytest.fixture()
def api(server: FakeTaskServer) -> TaskApiClient:
    client = httpx.AsyncClient(transport=server.transport())
    return TaskApiClient("http://tasks.test/", policy=FAST_POLICY, client=client)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def tools(api: TaskApiClient, notifier: RecordingNotifier) -> TaskTools:
    return TaskTools(api, notifier=notifier, clock=lambda: NOW)


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, api: TaskApiClient, tools: TaskTools, llm: FakeLLMClient) -> AppState:
    """AppState wired with the in-memory task server and a scripted LLM."""
    session = AssistantSession(config=SessionConfig.from_settings(settings), tools=tools, llm=llm)
    return AppState(settings=settings, api=api, tools=tools, llm=llm, session=session)
