"""
Display preferences (sort order, hide-completed, language).

Components:
- prefs_models.py: Preferences + storage keys
- prefs_store.py: SQLite key/value store with an observable stream
"""
