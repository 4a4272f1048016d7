from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import Field

from ideaforge.domain.user import utcnow


class DocumentRecord(Document):
    id: str
    idea_id: str
    user_id: str
    document_type: str
    title: str | None = None
    content: Any  # dict for analyses, dict or str for generated documents
    version: int = 1
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "documents"
        indexes = [
            [("idea_id", 1), ("created_at", -1)],
            [("idea_id", 1), ("document_type", 1), ("version", -1)],
        ]
