"""Per-project single-flight guard for generation requests."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import InvalidStateError


class ProjectLockRegistry:
    """Allow at most one generation call per project at a time.

    Acquisition never blocks: a second caller fails immediately with
    ``InvalidStateError`` instead of queueing behind the first.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._active: set[str] = set()

    def is_locked(self, project_id: str) -> bool:
        with self._guard:
            return project_id in self._active

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        with self._guard:
            if project_id in self._active:
                raise InvalidStateError(f"Generation already running for project {project_id}")
            self._active.add(project_id)
        try:
            yield
        finally:
            with self._guard:
                self._active.discard(project_id)
