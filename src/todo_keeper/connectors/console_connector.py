# src/todo_keeper/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging

from ..cli.commands import registry as command_registry
from ..cli.commands import render_todos, with_refresh
from ..core.state import AppState

logger = logging.getLogger(__name__)


async def run_console_loop(state: AppState) -> None:
    """
    Interactive front end: every line is a slash command bound to a controller intent.

    Plain text (no leading slash) is a shortcut for /add.
    """
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "todo"))
    logger.info("Console connector started.")

    # First list arrives through the live query.
    await with_refresh(state, state.todo_list.start())

    print(f"[{app_name}] Type /help for commands, /exit to quit.\n")
    print(render_todos(state))

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
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

            line = user_input if user_input.startswith("/") else f"/add {user_input}"

            try:
                reply = await command_registry.handle(state, line)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                print(reply)
    finally:
        await state.todo_list.stop()
        logger.info("Console connector finished.")
