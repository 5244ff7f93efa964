# src/voice_todo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console connector until
/exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from ..cli.bootstrap import create_initial_state, shutdown
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voice-todo", description="Voice task assistant (console mode).")
    parser.add_argument(
        "--metadata",
        default=None,
        help='Session metadata JSON, e.g. \'{"timezone": "Europe/Berlin"}\'.',
    )
    return parser.parse_args(argv)


async def _run(settings, metadata: str | None) -> None:
    state = create_initial_state(settings=settings, metadata=metadata)
    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Nothing to run.")
    finally:
        await shutdown(state)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(_run(settings, args.metadata))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
