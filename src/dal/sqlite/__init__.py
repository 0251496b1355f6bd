"""SQLite-backed DAL components."""

from .executor import SqliteStatementExecutor

__all__ = ["SqliteStatementExecutor"]
