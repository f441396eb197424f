"""State store implementations for projects, chapters and agent logs."""

from .base import StateStore
from .memory import InMemoryStateStore
from .postgres import PostgresStateStore

__all__ = ["StateStore", "InMemoryStateStore", "PostgresStateStore"]
