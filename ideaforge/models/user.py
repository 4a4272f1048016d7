from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field

from ideaforge.domain.user import utcnow


class UserRecord(Document):
    id: str  # domain id (uuid4 string)
    email: Indexed(str, unique=True)
    name: str | None = None
    role: str = "user"  # "user" | "admin"
    credits: int = 0
    is_active: bool = True
    preferences: dict[str, Any] = Field(default_factory=dict)
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"
