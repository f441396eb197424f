"""Document models persisted by the state store."""

from .agent_log import AgentLog
from .chapter import Chapter, ImagePrompt
from .project import DEFAULT_AGENT_MODEL, AgentConfig, OutlineItem, Project

__all__ = [
    "AgentConfig",
    "AgentLog",
    "Chapter",
    "DEFAULT_AGENT_MODEL",
    "ImagePrompt",
    "OutlineItem",
    "Project",
]
