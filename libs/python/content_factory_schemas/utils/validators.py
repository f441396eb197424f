"""Reusable text helpers."""

from __future__ import annotations

import re
import unicodedata


def count_words(value: str | None) -> int:
    """Return the number of whitespace-separated tokens in ``value``."""

    if not value:
        return 0
    return len(value.split())


def slugify(title: str) -> str:
    """Lower-case, accent-free, dash separated form of ``title``."""

    normalised = unicodedata.normalize("NFD", title.lower())
    stripped = "".join(ch for ch in normalised if unicodedata.category(ch) != "Mn")
    cleaned = re.sub(r"[^a-z0-9\s-]", "", stripped).strip()
    return re.sub(r"\s+", "-", cleaned)
