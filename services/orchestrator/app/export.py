"""Markdown export of a project's chapters."""

from __future__ import annotations

import math
from typing import Sequence

from content_factory_schemas import Chapter, ChapterStatus, Project, slugify

from .models import ExportStatus, MarkdownExport

EMPTY_CHAPTER_PLACEHOLDER = "(Chapter has no generated content yet)"
FALLBACK_FILENAME = "project"


def render_markdown(project: Project, chapters: Sequence[Chapter]) -> MarkdownExport:
    lines: list[str] = [f"# {project.title}"]
    if project.description:
        lines.extend(["", project.description])
    lines.extend(["", f"Type: {project.type.value}", f"Goal: {project.target_pages} pages", ""])
    lines.extend(["---", ""])

    for chapter in sorted(chapters, key=lambda c: c.order):
        lines.extend([f"## {chapter.order}. {chapter.title}", ""])
        text = chapter.authoritative_content()
        lines.extend([text.strip() if text else EMPTY_CHAPTER_PLACEHOLDER, ""])

    filename = f"{slugify(project.title) or FALLBACK_FILENAME}.md"
    return MarkdownExport(filename=filename, content="\n".join(lines))


def export_status(chapters: Sequence[Chapter], *, words_per_page: int = 500) -> ExportStatus:
    completed = [c for c in chapters if c.status == ChapterStatus.COMPLETED]
    total_words = sum(c.word_count for c in completed)
    return ExportStatus(
        can_export=bool(completed),
        completed_chapters=len(completed),
        total_chapters=len(chapters),
        total_words=total_words,
        estimated_pages=math.ceil(total_words / words_per_page),
    )
