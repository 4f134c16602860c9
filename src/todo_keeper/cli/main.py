# src/todo_keeper/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console connector.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import level_from_name, setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # Stores use short-lived sqlite connections per call; close() is a no-op hook.
    try:
        state.todo_store.close()
    except Exception:
        logger.debug("TodoStore close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    file_level = level_from_name(getattr(settings, "log_level", "INFO"), logging.INFO)
    console_level = level_from_name(
        getattr(settings, "console_log_level", "WARNING"), logging.WARNING
    )

    log_dir = getattr(settings, "data_dir", ".local/todo_keeper")
    setup_logging(log_dir=log_dir, console_level=console_level, file_level=file_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "todo"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    try:
        if settings.console_enabled:
            asyncio.run(run_console_loop(state))
        else:
            logger.warning("Console disabled (TODO_CONSOLE_ENABLED=false); nothing to run.")
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
