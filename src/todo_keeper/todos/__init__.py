"""
Todo subsystem.

Components:
- todo_models.py: data structures (Todo, TodoSort)
- todo_store.py: SQLite-backed storage + live query
"""
