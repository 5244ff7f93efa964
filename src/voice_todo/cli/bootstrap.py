# src/voice_todo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (task API, tools, LLM, session).
"""

from __future__ import annotations

import contextlib
import logging

from ..config import get_settings
from ..core.ports import LLMClient, UiNotifier
from ..core.retry import RetryPolicy
from ..core.session import AssistantSession, SessionConfig
from ..core.state import AppState
from ..llm.client import OpenAIToolClient
from ..llm.offline import OfflineLLMClient
from ..tasks.task_api import TaskApiClient
from ..tasks.task_tools import TaskTools

logger = logging.getLogger(__name__)


def retry_policy_from_settings(settings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=max(0, int(settings.api_max_retries)),
        initial_delay_ms=float(settings.api_initial_delay_ms),
        max_delay_ms=float(settings.api_max_delay_ms),
        backoff_multiplier=float(settings.api_backoff_multiplier),
        timeout_ms=float(settings.api_timeout_ms),
    )


def create_initial_state(
    *,
    settings=None,
    llm: LLMClient | None = None,
    notifier: UiNotifier | None = None,
    api: TaskApiClient | None = None,
    metadata: str | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and collaborators injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    if api is None:
        api = TaskApiClient(settings.api_base_url, policy=retry_policy_from_settings(settings))

    if llm is None:
        try:
            llm = OpenAIToolClient(settings)
        except Exception:
            # Fallback for demos / local runs without an API key.
            logger.info("No LLM configured, using offline client.")
            llm = OfflineLLMClient()

    tools = TaskTools(api, notifier=notifier)
    session = AssistantSession(
        config=SessionConfig.from_settings(settings, metadata=metadata),
        tools=tools,
        llm=llm,
    )
    return AppState(settings=settings, api=api, tools=tools, llm=llm, session=session)


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.api.aclose()
    except Exception:
        logger.debug("Task API client close failed.", exc_info=True)

    close = getattr(state.llm, "aclose", None)
    if close is not None:
        with contextlib.suppress(Exception):
            await close()
