"""
Controllers: state container + intents behind each screen.

- todo_list.py: list, search, sort/hide preferences, delete with undo
- add_todo.py: new todo form
- edit_todo.py: existing todo form
"""
