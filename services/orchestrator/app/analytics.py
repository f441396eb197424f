"""Read-side aggregates: chapter progress, token usage and cost estimates."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from content_factory_schemas import AgentLog, Chapter, ChapterStatus, Project

from .errors import ProjectValidationError
from .models import ChapterStats, CostEstimate, ProjectAnalytics, TokenUsage

TOKENS_PER_WORD = 1.3
# Input, output and accumulated context each consume roughly the chapter's size.
CONTEXT_MULTIPLIER = 3
SECONDS_PER_100_TOKENS = 2.5
USD_PER_1000_TOKENS = 0.01


def chapter_stats(chapters: Sequence[Chapter]) -> ChapterStats:
    return ChapterStats(
        total=len(chapters),
        completed=sum(1 for c in chapters if c.status == ChapterStatus.COMPLETED),
        in_progress=sum(
            1 for c in chapters if c.status not in (ChapterStatus.PENDING, ChapterStatus.COMPLETED)
        ),
        pending=sum(1 for c in chapters if c.status == ChapterStatus.PENDING),
    )


def token_usage(logs: Iterable[AgentLog]) -> TokenUsage:
    usage = TokenUsage()
    cost = 0.0
    for log in logs:
        usage.input += log.input_tokens
        usage.output += log.output_tokens
        usage.duration_ms += log.duration_ms
        cost += log.cost_usd or 0.0
        role = log.agent_type.value
        usage.agent_calls[role] = usage.agent_calls.get(role, 0) + 1
    usage.total = usage.input + usage.output
    usage.cost_usd = round(cost, 6)
    return usage


def build_project_analytics(
    project: Project,
    chapters: Sequence[Chapter],
    recent_logs: Sequence[AgentLog],
) -> ProjectAnalytics:
    return ProjectAnalytics(
        project_id=project.id,
        status=project.status,
        chapter_stats=chapter_stats(chapters),
        token_usage=token_usage(recent_logs),
        recent_logs=list(recent_logs),
    )


def estimate_project_cost(
    target_pages: int,
    total_chapters: int,
    *,
    words_per_page: int = 500,
) -> CostEstimate:
    """Rough time, token and cost figures for generating a whole project."""

    if target_pages < 1 or total_chapters < 1:
        raise ProjectValidationError("target pages and chapter count must both be at least 1")

    total_words = target_pages * words_per_page
    total_tokens = total_words * TOKENS_PER_WORD * CONTEXT_MULTIPLIER
    minutes = math.ceil(total_tokens / 100 * SECONDS_PER_100_TOKENS / 60)
    return CostEstimate(
        estimated_minutes=minutes,
        estimated_tokens=math.ceil(total_tokens),
        estimated_cost_usd=round(total_tokens / 1000 * USD_PER_1000_TOKENS, 2),
    )
