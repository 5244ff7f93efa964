# src/voice_todo/tasks/task_tools.py

"""
LLM-callable task tools.

invoke() checks the raw model arguments against the models in tool_args.py.
Each tool normalises its arguments (dates, priorities, titles), resolves the
target task when needed, calls the API and returns one short string for the
speech channel. Tools never raise:
- parse/validation/resolution errors are returned as their own message,
- transport errors (after retries) go through format_error_for_speech().

Listing only reports a count. Task content is on the visual surface.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Final

from pydantic import ValidationError

from ..core.ports import LoggingNotifier, UiNotifier
from ..core.retry import format_error_for_speech
from ..errors import (
    DateParseError,
    PastDateError,
    PriorityParseError,
    TaskResolutionError,
    TaskValidationError,
)
from ..parsing.dates import parse_natural_date, to_api_timestamp
from ..parsing.priority import coerce_priority
from .resolver import resolve_task
from .task_api import TaskApiClient
from .task_models import MAX_TITLE_LENGTH, UiEvent
from .tool_args import CreateTaskArgs, DeleteTaskArgs, GetTasksArgs, ToolArgs, UpdateTaskArgs

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY: Final[int] = 1

_SCHEDULED_FILTER_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")

# Errors whose message is already a complete sentence for the user.
_SPEAKABLE_ERRORS = (DateParseError, PastDateError, PriorityParseError, TaskValidationError, TaskResolutionError)

_PRIORITY_SCHEMA: Final[dict[str, Any]] = {"type": ["string", "integer", "null"]}

TOOL_SPECS: Final[list[dict[str, Any]]] = [
    {
        "type": "function",
        "function": {
            "name": "create_task",
            "description": (
                "Create a task. Priority can be specified using keywords "
                "(low, normal, high, urgent, critical) or numbers 1-5."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Task title"},
                    "scheduled_time": {
                        "type": ["string", "null"],
                        "description": 'When due (e.g., "tomorrow", "next Monday", ISO 8601)',
                    },
                    "priority": {
                        **_PRIORITY_SCHEMA,
                        "description": "Priority keyword (low, normal, high, urgent, critical) "
                        "or number 1-5 (1=low, 5=critical)",
                    },
                    "tags": {"type": ["array", "null"], "items": {"type": "string"}, "description": "Tags array"},
                },
                "required": ["title"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_tasks",
            "description": (
                "Retrieve and list all tasks or search for specific tasks. Use this when the user asks "
                "to see, show, list or get their tasks. Leave all parameters empty to get all tasks."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": ["string", "null"], "description": "Search by title (empty for all tasks)"},
                    "priority": {
                        **_PRIORITY_SCHEMA,
                        "description": "Filter by priority keyword or number 1-5 (empty for all priorities)",
                    },
                    "scheduled": {
                        "type": ["string", "null"],
                        "description": 'Filter by date in ISO 8601 format (e.g., "2024-12-25"). '
                        "Leave empty for tasks with any or no date.",
                    },
                },
                "required": [],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "update_task",
            "description": (
                "Update task by number or title. Priority can be specified using keywords "
                "(low, normal, high, urgent, critical) or numbers 1-5."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "identifier": {"type": "string", "description": 'Task number (e.g., "4th") or title substring'},
                    "title": {"type": ["string", "null"], "description": "New title"},
                    "scheduled_time": {
                        "type": ["string", "null"],
                        "description": 'New date (e.g., "tomorrow", ISO 8601)',
                    },
                    "priority": {**_PRIORITY_SCHEMA, "description": "New priority keyword or number 1-5"},
                    "completed": {"type": ["boolean", "null"], "description": "Completion status"},
                },
                "required": ["identifier"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "delete_task",
            "description": "Delete task by number or title",
            "parameters": {
                "type": "object",
                "properties": {
                    "identifier": {"type": "string", "description": 'Task number (e.g., "4th") or title substring'},
                },
                "required": ["identifier"],
            },
        },
    },
]


def validate_title(title: Any) -> str:
    text = str(title or "").strip()
    if not text:
        raise TaskValidationError("The task needs a title. What should I call it?")
    if len(text) > MAX_TITLE_LENGTH:
        raise TaskValidationError(
            f"That title is too long. Please keep it under {MAX_TITLE_LENGTH} characters."
        )
    return text


def _given(value: Any) -> bool:
    """Models often send "" for "not provided"."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class TaskTools:
    """The four tools exposed to the language model."""

    def __init__(
        self,
        api: TaskApiClient,
        *,
        notifier: UiNotifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.api = api
        self.notifier: UiNotifier = notifier or LoggingNotifier()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def _notify(self, event: UiEvent, payload: dict[str, Any] | None = None) -> None:
        try:
            await self.notifier.publish(event.value, payload)
            logger.debug("Sent UI event %s", event.value)
        except Exception:
            logger.warning("Failed to send UI event %s", event.value, exc_info=True)

    def _schedule(self, phrase: str) -> str:
        parsed = parse_natural_date(phrase, self._clock())
        logger.info('Parsed date "%s" to %s', phrase, parsed.isoformat())
        return to_api_timestamp(parsed)

    # ---- tools ----

    async def create_task(
        self,
        title: str,
        scheduled_time: str | None = None,
        priority: str | int | None = None,
        tags: list[str] | None = None,
    ) -> str:
        logger.info(
            'Creating task: "%s" (scheduled_time=%s priority=%s tags=%s)', title, scheduled_time, priority, tags
        )
        try:
            body: dict[str, Any] = {"title": validate_title(title)}
            if _given(scheduled_time):
                body["scheduled_time"] = self._schedule(str(scheduled_time))

            priority_value = coerce_priority(priority)
            if priority_value is None:
                logger.info("No priority specified, defaulting to %d", DEFAULT_PRIORITY)
                priority_value = DEFAULT_PRIORITY
            body["priority_index"] = priority_value

            if isinstance(tags, str):
                tags = [tags]
            clean_tags = [str(t).strip() for t in (tags or []) if str(t).strip()]
            if clean_tags:
                body["tags"] = clean_tags
        except _SPEAKABLE_ERRORS as exc:
            logger.info("create_task rejected: %s", exc)
            return str(exc)

        try:
            task = await self.api.create_task(body)
        except Exception as exc:
            logger.exception("Error creating task")
            return format_error_for_speech(exc, "create that task")

        logger.info("Task created successfully: %s", task.id)
        await self._notify(UiEvent.TASK_CREATED)
        return "Task created"

    async def get_tasks(
        self,
        query: str | None = None,
        priority: str | int | None = None,
        scheduled: str | None = None,
    ) -> str:
        logger.info("Fetching tasks with filters: query=%s priority=%s scheduled=%s", query, priority, scheduled)
        query_value = str(query).strip() if _given(query) else None

        try:
            priority_value = coerce_priority(priority)
        except PriorityParseError as exc:
            logger.warning("Invalid priority filter: %r", priority)
            return str(exc)

        scheduled_value: str | None = None
        if _given(scheduled) and str(scheduled).strip().lower() != "all":
            if _SCHEDULED_FILTER_RE.match(str(scheduled).strip()):
                scheduled_value = str(scheduled).strip()
            else:
                logger.warning("Ignoring scheduled filter with invalid format: %r", scheduled)

        try:
            tasks = await self.api.list_tasks(query=query_value, priority=priority_value, scheduled=scheduled_value)
        except Exception as exc:
            logger.exception("Error fetching tasks")
            return format_error_for_speech(exc, "retrieve your tasks")

        logger.info("Retrieved %d tasks", len(tasks))
        await self._notify(
            UiEvent.APPLY_FILTERS,
            {"query": query_value, "priority": priority_value, "scheduled": scheduled_value},
        )

        if not tasks:
            if query_value or priority_value is not None or scheduled_value:
                return "No tasks found"
            return "No tasks"
        return f"Found {len(tasks)} task{'' if len(tasks) == 1 else 's'}"

    async def update_task(
        self,
        identifier: str,
        title: str | None = None,
        scheduled_time: str | None = None,
        priority: str | int | None = None,
        completed: bool | None = None,
    ) -> str:
        logger.info(
            'Updating task: "%s" (title=%s scheduled_time=%s priority=%s completed=%s)',
            identifier,
            title,
            scheduled_time,
            priority,
            completed,
        )
        changes: dict[str, Any] = {}
        try:
            if _given(title):
                changes["title"] = validate_title(title)
            if _given(scheduled_time):
                changes["scheduled_time"] = self._schedule(str(scheduled_time))
            priority_value = coerce_priority(priority)
            if priority_value is not None:
                changes["priority_index"] = priority_value
        except _SPEAKABLE_ERRORS as exc:
            logger.info("update_task rejected: %s", exc)
            return str(exc)

        if completed is not None:
            changes["completed"] = bool(completed)

        if not changes:
            return "No changes specified. Please tell me what you'd like to update."

        try:
            target = await resolve_task(identifier, self.api.list_tasks)
            task = await self.api.update_task(target.id, changes)
        except TaskResolutionError as exc:
            return str(exc)
        except Exception as exc:
            logger.exception("Error updating task")
            return format_error_for_speech(exc, "update that task")

        logger.info("Task updated successfully: %s", task.id)
        await self._notify(UiEvent.TASK_UPDATED)

        if completed is not None:
            return "Marked complete" if task.completed else "Marked incomplete"
        return "Updated"

    async def delete_task(self, identifier: str) -> str:
        logger.info('Deleting task: "%s"', identifier)
        try:
            target = await resolve_task(identifier, self.api.list_tasks)
            task = await self.api.delete_task(target.id)
        except TaskResolutionError as exc:
            return str(exc)
        except Exception as exc:
            logger.exception("Error deleting task")
            return format_error_for_speech(exc, "delete that task")

        logger.info("Task deleted successfully: %s", task.id)
        await self._notify(UiEvent.TASK_DELETED)
        return "Deleted"

    # ---- dispatch ----

    async def invoke(self, name: str, arguments: str | dict[str, Any] | None) -> str:
        """Run a model tool call. Always returns a string."""
        handlers: dict[str, tuple[Callable[..., Awaitable[str]], type[ToolArgs]]] = {
            "create_task": (self.create_task, CreateTaskArgs),
            "get_tasks": (self.get_tasks, GetTasksArgs),
            "update_task": (self.update_task, UpdateTaskArgs),
            "delete_task": (self.delete_task, DeleteTaskArgs),
        }
        entry = handlers.get(name)
        if entry is None:
            logger.warning("Unknown tool requested: %s", name)
            return f"Unknown tool: {name}"

        if isinstance(arguments, dict):
            args = arguments
        else:
            try:
                args = json.loads(arguments or "{}")
            except json.JSONDecodeError:
                logger.warning("Tool %s got invalid JSON arguments: %r", name, arguments)
                return "I couldn't read the request. Please try again."
            if not isinstance(args, dict):
                return "I couldn't read the request. Please try again."

        handler, model = entry
        missing = [key for key, spec in model.model_fields.items() if spec.is_required() and args.get(key) is None]
        if missing:
            return f"Missing {', '.join(missing)}. Please try again."

        try:
            parsed = model.model_validate(args)
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            logger.warning("Tool %s rejected arguments %r: %s", name, args, fields)
            return f"I couldn't understand the {' and '.join(fields) or 'request'} value. Please try again."

        return await handler(**parsed.model_dump(exclude_unset=True))
