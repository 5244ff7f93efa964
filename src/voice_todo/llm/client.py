# src/voice_todo/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..core.ports import ChatMessage, LLMTurn, ToolCall

logger = logging.getLogger(__name__)

_BAD_MODEL_PARK_SECONDS = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    # APITimeoutError is a subclass of APIConnectionError.
    return isinstance(exc, openai.APIConnectionError)


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set VOICE_TODO_OPENAI_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set VOICE_TODO_LLM_MODELS in .env."
    return msg


class OpenAIToolClient:
    """
    Chat completions with function calling (OpenAI or any compatible endpoint).

    Behavior:
    - Tries models in the order from settings (VOICE_TODO_LLM_MODELS).
    - 404 (model not available) -> park the model for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).

    The SDK's own retries are disabled so the fallback stays quick.
    """

    def __init__(self, settings, *, client: AsyncOpenAI | None = None) -> None:
        api_key = getattr(settings, "openai_api_key", None)
        if client is None and (not api_key or not str(api_key).strip()):
            raise RuntimeError("LLM API key is not set. Set VOICE_TODO_OPENAI_API_KEY in your .env.")

        self.models: List[str] = [m.strip() for m in (getattr(settings, "llm_models", []) or []) if m.strip()]
        self.temperature = float(getattr(settings, "llm_temperature", 0.7))
        self._bad_models: Dict[str, float] = {}  # model -> retry_at (monotonic)

        self._client = client or AsyncOpenAI(
            api_key=str(api_key),
            base_url=getattr(settings, "openai_base_url", None) or None,
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=10.0, pool=5.0),
            max_retries=0,
        )

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def _to_turn(response: Any) -> LLMTurn:
        message = response.choices[0].message
        calls = [
            ToolCall(id=c.id, name=c.function.name, arguments=c.function.arguments or "{}")
            for c in (message.tool_calls or [])
            if getattr(c, "function", None) is not None
        ]
        return LLMTurn(content=message.content or "", tool_calls=calls)

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> LLMTurn:
        if not self.models:
            raise RuntimeError("LLM model list is empty. Set VOICE_TODO_LLM_MODELS in your .env.")

        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self.models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            t0 = time.monotonic()
            try:
                response = await self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    tools=tools or openai.NOT_GIVEN,
                    temperature=self.temperature,
                )
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError("LLM authentication failed. Check your API key.") from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + _BAD_MODEL_PARK_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            turn = self._to_turn(response)
            logger.info(
                "LLM: model=%s answered in %.2fs (tool_calls=%d)",
                model,
                time.monotonic() - t0,
                len(turn.tool_calls),
            )
            return turn

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")
