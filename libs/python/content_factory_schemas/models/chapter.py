"""Chapter documents mutated by the pipeline stages."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import TERMINAL_CHAPTER_STATUSES, ChapterStatus
from ..utils.validators import count_words
from .common import new_id, utcnow


class ImagePrompt(BaseModel):
    """Text prompt describing an illustration for the chapter."""

    type: Literal["prompt"] = "prompt"
    prompt: str = Field(..., min_length=1)
    model: str
    created_at: datetime = Field(default_factory=utcnow)


class Chapter(BaseModel):
    """One outline-derived unit of generated content.

    Word count always mirrors the authoritative text, chosen with the
    precedence reviewed > final > draft among the fields that hold text.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    project_id: str
    chapter_key: str = Field(default_factory=new_id)
    order: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    status: ChapterStatus = ChapterStatus.PENDING
    draft_content: Optional[str] = None
    reviewed_content: Optional[str] = None
    final_content: Optional[str] = None
    images: list[ImagePrompt] = Field(default_factory=list)
    word_count: int = Field(0, ge=0)
    context_summary: Optional[str] = None
    key_points: list[str] = Field(default_factory=list)
    connections: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CHAPTER_STATUSES

    def authoritative_content(self) -> Optional[str]:
        return self.reviewed_content or self.final_content or self.draft_content

    def review_source(self) -> str:
        """Text handed to the editor: final, then reviewed, then draft."""

        return self.final_content or self.reviewed_content or self.draft_content or ""

    def recount_words(self) -> int:
        self.word_count = count_words(self.authoritative_content())
        return self.word_count

    def apply_draft(self, content: str) -> None:
        """Store a fresh writer draft, replacing any earlier review and its notes."""

        self.draft_content = content
        self.final_content = content
        self.reviewed_content = None
        self.context_summary = None
        self.key_points = []
        self.connections = []
        self.recount_words()

    def apply_review(
        self,
        content: str,
        *,
        summary: Optional[str] = None,
        key_points: Optional[list[str]] = None,
        connections: Optional[list[str]] = None,
    ) -> None:
        self.reviewed_content = content
        if summary:
            self.context_summary = summary
        if key_points:
            self.key_points = list(key_points)
        if connections:
            self.connections = list(connections)
        self.recount_words()

    def add_image_prompt(self, prompt: str, model: str) -> ImagePrompt:
        entry = ImagePrompt(prompt=prompt, model=model)
        self.images = [*self.images, entry]
        return entry

    def touch(self) -> None:
        self.updated_at = utcnow()
