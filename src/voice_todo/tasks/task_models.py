# src/voice_todo/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Final

MAX_TITLE_LENGTH: Final[int] = 500


class UiEvent(StrEnum):
    """Data messages sent to the paired visual surface."""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    APPLY_FILTERS = "APPLY_FILTERS"


def parse_timestamp(raw: Any) -> datetime | None:
    """Best-effort ISO 8601 -> aware UTC datetime. Unparseable values become None."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(slots=True)
class Task:
    """
    A task as returned by the remote API.

    The API owns these records; this project only reads them and sends
    explicit create/update/delete requests.
    """

    id: str
    title: str
    completed: bool = False
    scheduled_time: datetime | None = None
    priority_index: int | None = None
    tags: list[str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Task:
        priority = raw.get("priority_index")
        tags = raw.get("tags")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            completed=bool(raw.get("completed", False)),
            scheduled_time=parse_timestamp(raw.get("scheduled_time")),
            priority_index=int(priority) if isinstance(priority, (int, float)) else None,
            tags=[str(t) for t in tags] if isinstance(tags, list) else None,
            created_at=parse_timestamp(raw.get("created_at")),
            updated_at=parse_timestamp(raw.get("updated_at")),
        )
