# src/voice_todo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The session and the tools depend on Protocols instead of concrete
implementations, so the LLM provider, the visual surface and the speech
output can be swapped (and faked in tests).
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

ChatMessage = dict[str, Any]
# OpenAI-style chat messages: {"role": "...", "content": "...", ...}.

Speak = Callable[[str], Awaitable[None]]
# Speech output (TTS in production, print in the console connector).


@dataclass(slots=True, frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str  # raw JSON text as produced by the model


@dataclass(slots=True)
class LLMTurn:
    """One assistant turn: either text, tool calls, or both."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


class LLMClient(Protocol):
    """Chat completion client with function calling (OpenAI-compatible)."""

    def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> Awaitable[LLMTurn]: ...


class UiNotifier(Protocol):
    """
    Paired visual surface (task list UI).

    Tools publish small events so the screen refreshes or applies filters;
    task content is shown there instead of being read aloud.
    """

    def publish(self, event: str, payload: dict[str, Any] | None = None) -> Awaitable[None]: ...


class LoggingNotifier:
    """UiNotifier for setups without a visual surface: events only go to the log."""

    async def publish(self, event: str, payload: dict[str, Any] | None = None) -> None:
        logger.debug("UI event %s payload=%s", event, payload)
