# src/voice_todo/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Final

LOG_FILE_NAME: Final[str] = "voice-todo.log"

# Console thresholds for our own loggers, longest prefix wins. The console
# shares the terminal with the typed conversation, so the per-request trace
# (tool arguments, resolution steps, each retry attempt) goes to the file
# only. The default applies to every other voice_todo logger.
CONSOLE_LEVELS: Final[dict[str, int]] = {
    "voice_todo": logging.INFO,
    "voice_todo.tasks": logging.WARNING,
    # every failed attempt is logged there and again by core.retry
    "voice_todo.tasks.task_api": logging.ERROR,
    # "Attempt n/m failed" is noise until retries run out
    "voice_todo.core.retry": logging.ERROR,
    "voice_todo.core.session": logging.WARNING,
}

# Third-party loggers whose request logs duplicate ours.
QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "openai")


def console_threshold(name: str) -> int:
    """Minimum console level for a logger name."""
    best = ""
    for prefix in CONSOLE_LEVELS:
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > len(best):
            best = prefix
    if best:
        return CONSOLE_LEVELS[best]
    # Python warnings and any other third-party logger.
    return logging.ERROR


class _ConsoleFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/voice-todo",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console: short lines on stderr, filtered through CONSOLE_LEVELS.
    File: everything at file_level, for following a single voice command end to end.

    Replaces any handlers already on the root logger. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console.addFilter(_ConsoleFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
