# src/voice_todo/tasks/resolver.py

"""
Spoken task references -> one concrete task.

Order (first match wins):
1. plain number      "2"            -> 1-based position in the current list
2. ordinal suffix    "the 4th one"  -> same, using the digits
3. title substring   "groceries"    -> case-insensitive containment

Numbers are tried before titles so a task literally titled "4" never shadows
"task 4". Positions are only meaningful for the list fetched in this call:
every rule fetches a fresh list and nothing is cached between calls.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable

from ..errors import AmbiguousTaskError, TaskNotFoundError
from .task_models import Task

logger = logging.getLogger(__name__)

TaskFetcher = Callable[[], Awaitable[list[Task]]]

_PLAIN_NUMBER_RE = re.compile(r"^\d+$")
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)", re.IGNORECASE)


def _plural(n: int) -> str:
    return f"{n} task{'' if n == 1 else 's'}"


async def _by_position(position: int, fetch_tasks: TaskFetcher) -> Task:
    tasks = await fetch_tasks()
    if position < 1 or position > len(tasks):
        raise TaskNotFoundError(f"Task number {position} doesn't exist. You have {_plural(len(tasks))}.")
    task = tasks[position - 1]
    logger.info('Resolved position %d to task %s - "%s"', position, task.id, task.title)
    return task


async def _by_title(identifier: str, fetch_tasks: TaskFetcher) -> Task:
    tasks = await fetch_tasks()
    needle = identifier.lower()

    matches = [(pos, t) for pos, t in enumerate(tasks, start=1) if needle in t.title.lower()]
    logger.info('Title match for "%s": %d of %d tasks', identifier, len(matches), len(tasks))

    if not matches:
        raise TaskNotFoundError(f'No task found matching "{identifier}". Please try a different description.')

    if len(matches) > 1:
        listing = ", ".join(f"{pos}. {t.title}" for pos, t in matches)
        raise AmbiguousTaskError(
            f'Multiple tasks match "{identifier}": {listing}. '
            "Please be more specific or use a task number.",
            matches=[t for _, t in matches],
        )

    pos, task = matches[0]
    logger.info('Resolved "%s" to task %s - "%s" (position %d)', identifier, task.id, task.title, pos)
    return task


async def resolve_task(identifier: str, fetch_tasks: TaskFetcher) -> Task:
    """
    Resolve a free-form identifier against a freshly fetched task list.

    Raises TaskNotFoundError (no match, position out of range) or
    AmbiguousTaskError (several title matches). Both messages are complete
    sentences meant to be spoken back to the user.
    """
    ident = "" if identifier is None else str(identifier).strip()
    logger.info('Resolving task identifier: "%s"', ident)

    if not ident:
        raise TaskNotFoundError("Which task do you mean? Please say its number or part of its title.")

    if _PLAIN_NUMBER_RE.match(ident):
        return await _by_position(int(ident), fetch_tasks)

    m = _ORDINAL_RE.search(ident)
    if m:
        return await _by_position(int(m.group(1)), fetch_tasks)

    return await _by_title(ident, fetch_tasks)


async def resolve_task_identifier(identifier: str, fetch_tasks: TaskFetcher) -> str:
    task = await resolve_task(identifier, fetch_tasks)
    return task.id
