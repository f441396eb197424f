"""Exceptions raised by the orchestrator and its lifecycle operations."""

from __future__ import annotations


class OrchestratorError(RuntimeError):
    """Base error for orchestrator failures."""


class OwnershipError(OrchestratorError):
    """Project or chapter not found, or not owned by the requester."""


class InvalidStateError(OrchestratorError):
    """Requested lifecycle transition is illegal from the current status."""


class UpstreamError(OrchestratorError):
    """The completion service failed or returned unusable content."""

    def __init__(self, message: str, *, model: str, duration_ms: int = 0) -> None:
        super().__init__(message)
        self.model = model
        self.duration_ms = duration_ms


class ParseError(OrchestratorError):
    """Editor response could not be decoded as the expected JSON object."""


class ProjectValidationError(ValueError):
    """Project input rejected before anything is persisted."""
