# src/voice_todo/core/session.py

"""
One voice session: greeting, dialog history and the tool-calling loop.

The session is transport-agnostic. A connector feeds it transcribed user text
and speaks whatever string comes back. Each tool call runs to completion
before the next one starts; there is no shared mutable state between
sessions (the greeting flag lives on the session, not in the process).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_tools import TOOL_SPECS, TaskTools
from .persona import build_instructions
from .ports import ChatMessage, LLMClient, Speak

logger = logging.getLogger(__name__)

MAX_HISTORY_MESSAGES = 40


@dataclass(frozen=True, slots=True)
class SessionConfig:
    user_timezone: str
    greeting: str
    greeting_play_once: bool = True
    max_tool_rounds: int = 4

    @staticmethod
    def from_settings(settings, metadata: str | None = None) -> "SessionConfig":
        """
        Build the session config; JSON job metadata may override the timezone.

        metadata example: '{"timezone": "Europe/Berlin", "timezoneOffset": -60}'
        """
        timezone = str(getattr(settings, "user_timezone", "UTC") or "UTC")
        if metadata:
            try:
                parsed = json.loads(metadata)
            except json.JSONDecodeError:
                logger.warning("Failed to parse session metadata for timezone: %r", metadata)
            else:
                if isinstance(parsed, dict) and isinstance(parsed.get("timezone"), str) and parsed["timezone"]:
                    timezone = parsed["timezone"]
                    logger.info("User timezone from metadata: %s", timezone)

        return SessionConfig(
            user_timezone=timezone,
            greeting=str(getattr(settings, "greeting", "") or ""),
            greeting_play_once=bool(getattr(settings, "greeting_play_once", True)),
            max_tool_rounds=int(getattr(settings, "llm_max_tool_rounds", 4)),
        )


@dataclass
class AssistantSession:
    config: SessionConfig
    tools: TaskTools
    llm: LLMClient

    history: list[ChatMessage] = field(default_factory=list)
    greeting_played: bool = False
    turns: int = 0

    async def play_greeting(self, speak: Speak) -> bool:
        """Speak the greeting; with play-once, only the first call speaks. Failures are non-fatal."""
        if not self.config.greeting:
            return False
        if self.greeting_played and self.config.greeting_play_once:
            logger.info("Greeting already played for this session, skipping")
            return False

        try:
            await speak(self.config.greeting)
        except Exception:
            logger.exception("Failed to play greeting")
            return False

        self.greeting_played = True
        return True

    def _system_message(self) -> ChatMessage:
        return {"role": "system", "content": build_instructions(self.config.user_timezone)}

    async def handle_utterance(self, text: str) -> str:
        """
        Run one user turn through the model, executing tool calls as they come.

        History is committed only when the turn completes, so a failed LLM call
        leaves no half-finished exchange behind.
        """
        user_msg: ChatMessage = {"role": "user", "content": text}
        pending: list[ChatMessage] = [user_msg]
        last_tool_result = ""

        for round_no in range(max(1, self.config.max_tool_rounds) + 1):
            messages = [self._system_message(), *self.history, *pending]
            # The final round withholds tools so the model has to answer in text.
            offer_tools = round_no < self.config.max_tool_rounds
            turn = await self.llm.complete(messages, TOOL_SPECS if offer_tools else [])

            if not turn.tool_calls:
                reply = turn.content.strip() or last_tool_result
                pending.append({"role": "assistant", "content": reply})
                self._commit(pending)
                return reply

            pending.append(
                {
                    "role": "assistant",
                    "content": turn.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": call.arguments},
                        }
                        for call in turn.tool_calls
                    ],
                }
            )
            for call in turn.tool_calls:
                logger.info("Tool call %s(%s)", call.name, call.arguments)
                result = await self.tools.invoke(call.name, call.arguments)
                logger.info("Tool %s -> %s", call.name, result)
                last_tool_result = result
                pending.append({"role": "tool", "tool_call_id": call.id, "content": result})

        logger.warning("Model kept calling tools after %d rounds", self.config.max_tool_rounds)
        self._commit(pending)
        return last_tool_result

    def _commit(self, messages: list[ChatMessage]) -> None:
        self.history.extend(messages)
        self.turns += 1
        if len(self.history) > MAX_HISTORY_MESSAGES:
            self.history = _trim_history(self.history, MAX_HISTORY_MESSAGES)


def _trim_history(history: list[ChatMessage], limit: int) -> list[ChatMessage]:
    """Drop the oldest messages, never starting on a tool result or mid tool exchange."""
    trimmed = history[-limit:]
    while trimmed and trimmed[0].get("role") != "user":
        trimmed = trimmed[1:]
    return trimmed


def describe(session: AssistantSession) -> dict[str, Any]:
    return {
        "timezone": session.config.user_timezone,
        "greeting_played": session.greeting_played,
        "turns": session.turns,
        "history": len(session.history),
    }
