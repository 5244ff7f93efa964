# src/voice_todo/errors.py

"""
Error taxonomy.

User-facing errors (date, priority, resolution, validation) carry complete,
speakable sentences: the tool layer returns str(exc) as-is.

Transport errors carry a structured ErrorKind assigned once at the HTTP
boundary. The retry predicate and the speech formatter read the kind, never
the message text.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class VoiceTodoError(Exception):
    """Base class for all project errors."""


# ---- parsing ----


class DateParseError(VoiceTodoError, ValueError):
    def __init__(self, phrase: str, message: str | None = None) -> None:
        self.phrase = phrase
        super().__init__(
            message
            or (
                f'I couldn\'t understand the date "{phrase}". Try phrases like "tomorrow", '
                '"next Monday", "in 3 days", or a specific date.'
            )
        )


class PastDateError(VoiceTodoError, ValueError):
    def __init__(self, message: str = "Cannot schedule tasks in the past. Please choose a future date.") -> None:
        super().__init__(message)


class PriorityParseError(VoiceTodoError, ValueError):
    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f'I couldn\'t understand the priority "{value}". Please use low, normal, high, '
            "urgent, critical, or a number from 1 to 5."
        )


class TaskValidationError(VoiceTodoError, ValueError):
    """Arguments rejected before anything is sent to the API (e.g. title length)."""


# ---- resolution ----


class TaskResolutionError(VoiceTodoError, LookupError):
    """Base for identifier resolution failures. Messages are returned verbatim."""


class TaskNotFoundError(TaskResolutionError):
    pass


class AmbiguousTaskError(TaskResolutionError):
    def __init__(self, message: str, matches: list[Any] | None = None) -> None:
        super().__init__(message)
        self.matches = list(matches or [])


# ---- transport ----


class ErrorKind(StrEnum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    UNKNOWN = "unknown"


class TransportError(VoiceTodoError):
    """A failed exchange with the task API."""

    def __init__(self, message: str, *, kind: ErrorKind = ErrorKind.UNKNOWN, status: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status


class OperationTimeoutError(TransportError):
    def __init__(self, timeout_ms: float) -> None:
        super().__init__(f"Operation timed out after {timeout_ms:g}ms", kind=ErrorKind.TIMEOUT)
        self.timeout_ms = timeout_ms


def kind_for_status(status: int) -> ErrorKind:
    if 500 <= status <= 599:
        return ErrorKind.SERVER_ERROR
    if 400 <= status <= 499:
        return ErrorKind.CLIENT_ERROR
    return ErrorKind.UNKNOWN


class HttpStatusError(TransportError):
    """Non-2xx response. The status code is kept both in .status and in the message."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(
            f"API request failed with status {status}",
            kind=kind_for_status(status),
            status=status,
        )
        self.body = body
