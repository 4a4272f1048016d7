"""Idea aggregate: the parent of every document."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ideaforge.domain.errors import InvariantViolationError
from ideaforge.domain.user import new_id, utcnow


class IdeaSource(str, Enum):
    MANUAL = "manual"
    FRANKENSTEIN = "frankenstein"


class ProjectStatus(str, Enum):
    IDEA = "idea"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


@dataclass
class Idea:
    id: str
    user_id: str
    idea_text: str
    source: IdeaSource = IdeaSource.MANUAL
    project_status: ProjectStatus = ProjectStatus.IDEA
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.source = IdeaSource(self.source)
        self.project_status = ProjectStatus(self.project_status)
        text = (self.idea_text or "").strip()
        if not text:
            raise InvariantViolationError("Idea text cannot be empty")
        if len(text) < 10:
            raise InvariantViolationError("Idea text must be at least 10 characters long")
        if len(text) > 5000:
            raise InvariantViolationError("Idea text cannot exceed 5000 characters")
        if len(self.notes) > 10000:
            raise InvariantViolationError("Notes cannot exceed 10000 characters")
        if len(self.tags) > 50:
            raise InvariantViolationError("Cannot have more than 50 tags")
        for tag in self.tags:
            if not tag.strip():
                raise InvariantViolationError("Tag cannot be empty")
            if len(tag) > 50:
                raise InvariantViolationError("Tag cannot exceed 50 characters")

    @classmethod
    def create(
        cls,
        user_id: str,
        idea_text: str,
        source: IdeaSource = IdeaSource.MANUAL,
        notes: str = "",
        tags: list[str] | None = None,
    ) -> "Idea":
        return cls(id=new_id(), user_id=user_id, idea_text=idea_text, source=source, notes=notes, tags=list(tags or []))

    def belongs_to_user(self, user_id: str) -> bool:
        return self.user_id == user_id

