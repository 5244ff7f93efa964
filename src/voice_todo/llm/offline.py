# src/voice_todo/llm/offline.py

from __future__ import annotations

from typing import Any

from ..core.ports import ChatMessage, LLMTurn


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no API key is configured.

    It never calls tools. Slash commands (/tasks, /add, /done, /delete) still
    reach the task API directly.
    """

    async def complete(self, messages: list[ChatMessage], tools: list[dict[str, Any]]) -> LLMTurn:
        user_text = ""
        for m in reversed(messages):
            if m.get("role") == "user":
                user_text = str(m.get("content") or "")
                break

        return LLMTurn(
            content=(
                "Offline demo mode: no language model is configured. "
                "Set VOICE_TODO_OPENAI_API_KEY to enable voice commands, "
                "or use /help for direct commands. "
                f"You said: {user_text}"
            )
        )
