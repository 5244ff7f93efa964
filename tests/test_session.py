# tests/test_session.py

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from voice_todo.core.persona import build_instructions, resolve_timezone
from voice_todo.core.ports import LLMTurn
from voice_todo.core.session import AssistantSession, SessionConfig, _trim_history, describe
from voice_todo.tasks.task_tools import TOOL_SPECS

from .fakes import FakeLLMClient, tool_turn


class Speaker:
    def __init__(self, fail: bool = False) -> None:
        self.spoken: list[str] = []
        self.fail = fail

    async def __call__(self, text: str) -> None:
        if self.fail:
            raise OSError("audio device unavailable")
        self.spoken.append(text)


class BrokenLLM:
    async def complete(self, messages, tools) -> LLMTurn:
        raise RuntimeError("All LLM models failed.")


# ---- greeting ----


@pytest.mark.asyncio
async def test_greeting_plays_once_per_session(state) -> None:
    speak = Speaker()

    assert await state.session.play_greeting(speak) is True
    assert await state.session.play_greeting(speak) is False

    assert speak.spoken == ["Hi, I'm Sid, how can I assist you today?"]
    assert state.session.greeting_played is True


@pytest.mark.asyncio
async def test_greeting_flag_is_per_session(state) -> None:
    other = AssistantSession(config=state.session.config, tools=state.tools, llm=state.llm)
    speak = Speaker()

    await state.session.play_greeting(speak)
    await other.play_greeting(speak)

    assert len(speak.spoken) == 2


@pytest.mark.asyncio
async def test_greeting_can_repeat_when_configured(state) -> None:
    state.session.config = replace(state.session.config, greeting_play_once=False)
    speak = Speaker()

    await state.session.play_greeting(speak)
    await state.session.play_greeting(speak)

    assert len(speak.spoken) == 2


@pytest.mark.asyncio
async def test_greeting_failure_is_not_fatal(state) -> None:
    assert await state.session.play_greeting(Speaker(fail=True)) is False
    assert state.session.greeting_played is False


@pytest.mark.asyncio
async def test_empty_greeting_is_skipped(state) -> None:
    state.session.config = replace(state.session.config, greeting="")
    speak = Speaker()
    assert await state.session.play_greeting(speak) is False
    assert speak.spoken == []


# ---- tool loop ----


@pytest.mark.asyncio
async def test_tool_call_round_trip(state, server) -> None:
    state.llm.turns = [
        tool_turn("create_task", title="Buy milk", scheduled_time="tomorrow"),
        LLMTurn(content="Done, I added Buy milk for tomorrow."),
    ]

    reply = await state.session.handle_utterance("remind me to buy milk tomorrow")

    assert reply == "Done, I added Buy milk for tomorrow."
    assert [t["title"] for t in server.tasks] == ["Buy milk"]

    first_messages, first_tools = state.llm.calls[0]
    assert first_messages[0]["role"] == "system"
    assert first_messages[-1] == {"role": "user", "content": "remind me to buy milk tomorrow"}
    assert first_tools == TOOL_SPECS

    second_messages, _ = state.llm.calls[1]
    assert second_messages[-1] == {"role": "tool", "tool_call_id": "call_1", "content": "Task created"}
    assert second_messages[-2]["tool_calls"][0]["function"]["name"] == "create_task"

    roles = [m["role"] for m in state.session.history]
    assert roles == ["user", "assistant", "tool", "assistant"]
    assert state.session.turns == 1


@pytest.mark.asyncio
async def test_empty_model_reply_falls_back_to_tool_result(state) -> None:
    state.llm.turns = [tool_turn("get_tasks"), LLMTurn(content="  ")]
    assert await state.session.handle_utterance("what's on my list?") == "No tasks"


@pytest.mark.asyncio
async def test_plain_text_reply(state) -> None:
    state.llm.turns = [LLMTurn(content="Sure, what should the task be called?")]
    reply = await state.session.handle_utterance("add a task")
    assert reply == "Sure, what should the task be called?"
    assert len(state.llm.calls) == 1


@pytest.mark.asyncio
async def test_last_round_withholds_tools(state, server) -> None:
    state.session.config = replace(state.session.config, max_tool_rounds=1)
    server.add("Buy milk")
    state.llm.turns = [tool_turn("get_tasks"), tool_turn("get_tasks", call_id="call_2")]

    reply = await state.session.handle_utterance("show my tasks")

    assert len(state.llm.calls) == 2
    assert state.llm.calls[0][1] == TOOL_SPECS
    assert state.llm.calls[1][1] == []
    assert reply == "Found 1 task"


@pytest.mark.asyncio
async def test_history_is_carried_into_next_turn(state) -> None:
    state.llm.turns = [LLMTurn(content="Hello!"), LLMTurn(content="Still here.")]

    await state.session.handle_utterance("hi")
    await state.session.handle_utterance("are you there?")

    messages, _ = state.llm.calls[1]
    assert [m["content"] for m in messages[1:]] == ["hi", "Hello!", "are you there?"]


@pytest.mark.asyncio
async def test_failed_llm_call_leaves_history_untouched(state) -> None:
    session = AssistantSession(config=state.session.config, tools=state.tools, llm=BrokenLLM())

    with pytest.raises(RuntimeError):
        await session.handle_utterance("hi")

    assert session.history == []
    assert session.turns == 0


def test_trim_history_starts_on_user_message() -> None:
    history = [
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": None, "tool_calls": []},
        {"role": "tool", "tool_call_id": "1", "content": "ok"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": "c"},
        {"role": "assistant", "content": "d"},
    ]
    assert _trim_history(history, 4) == history[4:]
    assert _trim_history(history, 6) == history


# ---- config / persona ----


def _settings(**overrides) -> SimpleNamespace:
    base = dict(
        llm_models=["gpt-4o-mini", "gpt-4o"],
        llm_temperature=0.7,
        llm_max_tool_rounds=3,
        user_timezone="UTC",
        greeting="Hello",
        greeting_play_once=True,
    )
    base.update(overrides)
    return SimpleNamespace(**base)


def test_session_config_from_settings() -> None:
    config = SessionConfig.from_settings(_settings())
    assert config.user_timezone == "UTC"
    assert config.max_tool_rounds == 3
    assert config.greeting == "Hello"


def test_session_config_timezone_from_metadata() -> None:
    config = SessionConfig.from_settings(_settings(), '{"timezone": "Europe/Berlin", "timezoneOffset": -60}')
    assert config.user_timezone == "Europe/Berlin"


@pytest.mark.parametrize("metadata", ["not json", "[]", '{"timezone": ""}', '{"timezone": 5}'])
def test_session_config_ignores_bad_metadata(metadata: str) -> None:
    config = SessionConfig.from_settings(_settings(user_timezone="Asia/Tokyo"), metadata)
    assert config.user_timezone == "Asia/Tokyo"


def test_build_instructions_uses_local_date() -> None:
    # 03:00 UTC on Monday is still Sunday evening in New York.
    now = datetime(2024, 1, 15, 3, 0, tzinfo=UTC)
    text = build_instructions("America/New_York", now=now)

    assert "Today is Sunday, 2024-01-14" in text
    assert '"tomorrow" = 2024-01-15' in text
    assert '"next week" = 2024-01-21' in text
    assert "user timezone: America/New_York" in text


def test_unknown_timezone_falls_back_to_utc() -> None:
    assert resolve_timezone("Mars/Olympus_Mons").key == "UTC"
    assert resolve_timezone(None).key == "UTC"


def test_describe(state) -> None:
    info = describe(state.session)
    assert info == {"timezone": "UTC", "greeting_played": False, "turns": 0, "history": 0}
