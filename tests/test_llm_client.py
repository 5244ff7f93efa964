# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from voice_todo.llm.client import OpenAIToolClient, friendly_llm_error_message
from voice_todo.llm.offline import OfflineLLMClient


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    response = httpx.Response(status, request=httpx.Request("POST", "http://llm.test/v1/chat/completions"))
    return cls(f"status {status}", response=response, body=None)


def _response(content: str | None = None, tool_calls: list | None = None) -> SimpleNamespace:
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    """Mimics client.chat.completions: per-model scripted results (exception or response)."""

    def __init__(self, script: dict) -> None:
        self.script = script
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.script[kwargs["model"]]
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        pass


def _client(script: dict, models: list[str]) -> tuple[OpenAIToolClient, FakeCompletions]:
    completions = FakeCompletions(script)
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions), close=completions.close)
    settings = SimpleNamespace(openai_api_key=None, llm_models=models, llm_temperature=0.2)
    return OpenAIToolClient(settings, client=fake), completions


def test_missing_key_without_client() -> None:
    with pytest.raises(RuntimeError, match="API key is not set"):
        OpenAIToolClient(SimpleNamespace(openai_api_key="  ", llm_models=["m"]))


@pytest.mark.asyncio
async def test_tool_calls_are_converted() -> None:
    call = SimpleNamespace(id="call_9", function=SimpleNamespace(name="get_tasks", arguments=""))
    llm, completions = _client({"m1": _response(tool_calls=[call])}, ["m1"])

    turn = await llm.complete([{"role": "user", "content": "list"}], [{"type": "function"}])

    assert turn.content == ""
    assert [(c.id, c.name, c.arguments) for c in turn.tool_calls] == [("call_9", "get_tasks", "{}")]
    assert completions.calls[0]["temperature"] == 0.2


@pytest.mark.asyncio
async def test_no_tools_are_not_sent() -> None:
    llm, completions = _client({"m1": _response("hi")}, ["m1"])
    await llm.complete([], [])
    assert completions.calls[0]["tools"] is openai.NOT_GIVEN


@pytest.mark.asyncio
async def test_falls_back_and_parks_missing_model() -> None:
    llm, completions = _client(
        {"gone": _status_error(openai.NotFoundError, 404), "ok": _response("hello")},
        ["gone", "ok"],
    )

    assert (await llm.complete([], [])).content == "hello"
    assert (await llm.complete([], [])).content == "hello"
    assert [c["model"] for c in completions.calls] == ["gone", "ok", "ok"]


@pytest.mark.asyncio
async def test_auth_error_fails_fast() -> None:
    llm, completions = _client(
        {"a": _status_error(openai.AuthenticationError, 401), "b": _response("never")},
        ["a", "b"],
    )
    with pytest.raises(RuntimeError, match="authentication failed"):
        await llm.complete([], [])
    assert len(completions.calls) == 1


@pytest.mark.asyncio
async def test_rate_limited_everywhere() -> None:
    llm, _ = _client({"a": _status_error(openai.RateLimitError, 429)}, ["a"])
    with pytest.raises(RuntimeError, match="rate-limited"):
        await llm.complete([], [])


@pytest.mark.asyncio
async def test_empty_model_list() -> None:
    llm, _ = _client({}, [])
    with pytest.raises(RuntimeError) as exc_info:
        await llm.complete([], [])
    assert "no models" in friendly_llm_error_message(exc_info.value)


@pytest.mark.asyncio
async def test_offline_client_echoes_user() -> None:
    turn = await OfflineLLMClient().complete(
        [{"role": "system", "content": "x"}, {"role": "user", "content": "add milk"}], []
    )
    assert turn.tool_calls == []
    assert turn.content.endswith("You said: add milk")
