"""Clients that carry out confirmed actions on the collaboration platform."""

from graph_voice.remote.base import RemoteActionClient, RemoteActionError
from graph_voice.remote.dry_run import DryRunActionClient

__all__ = [
    "RemoteActionClient",
    "RemoteActionError",
    "DryRunActionClient",
]
