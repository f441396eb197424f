"""Prompt templates for the illustration prompt generator."""

from __future__ import annotations


ILLUSTRATOR_SYSTEM_PROMPT = (
    "You are an art director who writes prompts for image generation models. "
    "Produce rich but concise scene descriptions."
)


ILLUSTRATOR_PROMPT = """
Write ONE image prompt (text only) to illustrate the chapter below.

Chapter: {order} - {title}

Context summary:
{snippet}

Image prompt requirements:
- Focus on a single striking scene that represents the content.
- Describe the visual style, framing and atmosphere.
- No markdown, quotes or explanations. Reply with the prompt only, on a single line.
""".strip()

FALLBACK_CONTEXT = "Educational course or book."
