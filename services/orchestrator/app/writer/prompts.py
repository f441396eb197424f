"""Prompt templates for the chapter writer."""

from __future__ import annotations


WRITER_SYSTEM_PROMPT = """
You are a writer who specialises in practical courses and books. Produce one complete, well structured
chapter with an introduction, clearly separated sections, worked examples and a conclusion.
""".strip()


WRITER_CHAPTER_PROMPT = """
Project context:
- Title: {title}
- Type: {content_type}
- Description: {description}
- Page goal: {target_pages}

Chapter to write:
- Order: {order}
- Title: {chapter_title}
{chapter_brief}
Requirements:
- Keep a didactic, professional tone.
- Use basic markdown (headings, lists, subheadings) but no global H1 heading.
- Focus on content a reader can apply immediately in a course or book.
- Aim for roughly {target_words} words (a little above or below is fine when needed).
""".strip()
