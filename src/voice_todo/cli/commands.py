# src/voice_todo/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.session import describe
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str], str], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """
    Simple slash-command registry used by the console connector.

    Commands call the task tools directly (no language model involved), so
    they work in offline mode and are handy for checking the task API.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        body = line[1:].strip()
        parts = body.split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]
        arg_text = body[len(parts[0]) :].strip()

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, arg_text)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


async def cmd_help(state: AppState, args: list[str], arg_text: str) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str], arg_text: str) -> str:
    info = describe(state.session)
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Task API: {state.api.base_url}\n"
        f"  LLM: {type(state.llm).__name__} (models: {models or '-'})\n"
        f"  Timezone: {info['timezone']}\n"
        f"  Turns: {info['turns']} (history messages: {info['history']})"
    )


async def cmd_tasks(state: AppState, args: list[str], arg_text: str) -> str:
    """
    /tasks            -> count all tasks
    /tasks groceries  -> count tasks whose title matches
    """
    return await state.tools.get_tasks(query=arg_text or None)


async def cmd_add(state: AppState, args: list[str], arg_text: str) -> str:
    """
    /add <title> [| <when>] [| <priority>] [| <tag,tag>]

    e.g. /add Buy milk | tomorrow | high | errands,home
    """
    fields = [f.strip() for f in arg_text.split("|")]
    if not fields or not fields[0]:
        return "Usage: /add <title> [| <when>] [| <priority>] [| <tag,tag>]"

    title = fields[0]
    when = fields[1] if len(fields) > 1 and fields[1] else None
    priority = fields[2] if len(fields) > 2 and fields[2] else None
    tags = [t.strip() for t in fields[3].split(",") if t.strip()] if len(fields) > 3 else None
    return await state.tools.create_task(title, scheduled_time=when, priority=priority, tags=tags)


async def cmd_done(state: AppState, args: list[str], arg_text: str) -> str:
    if not arg_text:
        return "Usage: /done <number | 2nd | title words>"
    return await state.tools.update_task(arg_text, completed=True)


async def cmd_undone(state: AppState, args: list[str], arg_text: str) -> str:
    if not arg_text:
        return "Usage: /undone <number | 2nd | title words>"
    return await state.tools.update_task(arg_text, completed=False)


async def cmd_delete(state: AppState, args: list[str], arg_text: str) -> str:
    if not arg_text:
        return "Usage: /delete <number | 2nd | title words>"
    return await state.tools.delete_task(arg_text)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings (API/LLM/timezone).")
registry.register("tasks", cmd_tasks, help_text="Count tasks: /tasks [title words].", aliases=["ls"])
registry.register(
    "add",
    cmd_add,
    help_text="Create a task: /add <title> [| <when>] [| <priority>] [| <tag,tag>].",
)
registry.register("done", cmd_done, help_text="Mark a task complete: /done <number | 2nd | title words>.")
registry.register("undone", cmd_undone, help_text="Mark a task incomplete: /undone <identifier>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <identifier>.", aliases=["rm"])
