# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
See src/todo_keeper/config.py.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TODO_APP_NAME": "App display name (default: todo).",
    "TODO_LOG_LEVEL": "Log file level (default: INFO).",
    "TODO_CONSOLE_LOG_LEVEL": (
        "Console log level (default: WARNING). Store write logs stay hidden below WARNING."
    ),
    # Connectors
    "TODO_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "TODO_DATA_DIR": "Local data directory (default: .local/todo_keeper).",
    "TODO_TASKS_DB_PATH": "TodoStore SQLite path (default: <data_dir>/todos.sqlite3).",
    "TODO_PREFS_DB_PATH": "PreferencesStore SQLite path (default: <data_dir>/prefs.sqlite3).",
    # Todo list behaviour
    "TODO_UNDO_SECONDS": "How long a deleted task can be restored with /undo (default: 4).",
    "TODO_LIVE_PREFERENCES": (
        "Re-query the open list when sort/hide-completed change (default: false; "
        "otherwise they apply on the next start or /refresh)."
    ),
    "TODO_TIME_FORMAT": "strftime format for creation times (default: %Y-%m-%d %H:%M).",
}
