# src/voice_todo/connectors/console_connector.py

"""
Console connector: a typed stand-in for the voice channel.

Each line is treated as one transcribed utterance. Replies are what the
speech channel would say.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..llm.client import friendly_llm_error_message

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    app_name = str(getattr(state.settings, "app_name", "voice-todo"))
    logger.info("Console connector started (api=%s).", state.api.base_url)
    _print_ts("[CONSOLE] Type what you would say. Use /help for commands. Use /exit to quit.\n")

    async def speak(text: str) -> None:
        _print_ts(f"<<< {app_name}: {text}")

    await state.session.play_greeting(speak)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Commands (/help, /tasks, ...)
        try:
            cmd_response = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        try:
            reply = await state.session.handle_utterance(user_input)
        except RuntimeError as e:
            msg = friendly_llm_error_message(e)
            logger.info("LLM runtime error: %s", msg)
            _print_ts(f"[LLM] {msg}")
            continue
        except Exception:
            logger.exception("Console chat handler crashed.")
            _print_ts("Internal error while generating a reply.")
            continue

        if not reply:
            _print_ts("[LLM] No output (model produced no content).")
            continue

        await speak(reply)

    logger.info("Console connector finished.")
