from datetime import datetime

from beanie import Document
from pydantic import Field

from ideaforge.domain.user import utcnow


class IdeaRecord(Document):
    id: str
    user_id: str
    idea_text: str
    source: str = "manual"  # manual | frankenstein
    project_status: str = "idea"  # idea | in_progress | completed | archived
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "ideas"
        indexes = [[("user_id", 1), ("updated_at", -1)]]
