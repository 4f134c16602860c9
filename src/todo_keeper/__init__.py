"""todo_keeper: a local to-do list with live, sorted and filtered views."""

__version__ = "0.1.0"
