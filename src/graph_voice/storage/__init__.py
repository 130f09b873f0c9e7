"""Persistent storage backends."""

from graph_voice.storage.database import SqliteActionStore

__all__ = ["SqliteActionStore"]
