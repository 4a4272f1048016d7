"""User aggregate: identity, preferences and the credit balance."""

import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Any

from ideaforge.core.config import get_settings
from ideaforge.domain.errors import (
    BusinessRuleViolationError,
    InsufficientCreditsError,
    InvariantViolationError,
)

THEMES = ("light", "dark", "auto")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class UserPreferences:
    default_locale: str = "en"
    email_notifications: bool = True
    analysis_reminders: bool = True
    theme: str = "auto"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UserPreferences":
        known = {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}
        return cls(**known)


class User:
    """Credits change only through ``deduct_credit`` and ``add_credits``."""

    def __init__(
        self,
        id: str,
        email: str,
        credits: int,
        created_at: datetime,
        updated_at: datetime,
        is_active: bool = True,
        preferences: UserPreferences | None = None,
        name: str | None = None,
        role: str = "user",
        last_login_at: datetime | None = None,
    ):
        self._id = id
        self._email = email
        self._credits = credits
        self._created_at = created_at
        self._updated_at = updated_at
        self._is_active = is_active
        self._preferences = preferences or UserPreferences()
        self._name = name
        self._role = role
        self._last_login_at = last_login_at
        self._validate()

    @classmethod
    def create(
        cls,
        email: str,
        credits: int | None = None,
        name: str | None = None,
        preferences: dict[str, Any] | None = None,
        role: str = "user",
    ) -> "User":
        now = utcnow()
        return cls(
            id=new_id(),
            email=email,
            credits=get_settings().initial_credits if credits is None else credits,
            created_at=now,
            updated_at=now,
            preferences=UserPreferences.from_dict(preferences),
            name=name,
            role=role,
        )

    @classmethod
    def reconstruct(cls, **props: Any) -> "User":
        return cls(**props)

    def _validate(self) -> None:
        if not self._email or "@" not in self._email:
            raise InvariantViolationError("User email must be a valid address")
        if self._name is not None:
            if not self._name.strip():
                raise InvariantViolationError("User name cannot be empty if provided")
            if len(self._name) > 100:
                raise InvariantViolationError("User name cannot exceed 100 characters")
            if len(self._name) < 2:
                raise InvariantViolationError("User name must be at least 2 characters long")
        if isinstance(self._credits, bool) or not isinstance(self._credits, int):
            raise InvariantViolationError("User credits must be an integer")
        if self._credits < 0:
            raise InvariantViolationError("User credits cannot be negative")
        if self._preferences.theme not in THEMES:
            raise InvariantViolationError(f"Theme must be one of: {', '.join(THEMES)}")

    def has_credits(self) -> bool:
        return self._credits > 0

    def deduct_credit(self) -> None:
        """Deduct exactly one credit; raises InsufficientCreditsError at zero."""
        if self._credits <= 0:
            raise InsufficientCreditsError(self._id)
        self._credits -= 1
        self._updated_at = utcnow()

    def add_credits(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise BusinessRuleViolationError("Credit amount must be an integer")
        if amount <= 0:
            raise BusinessRuleViolationError("Credit amount must be positive")
        self._credits += amount
        self._updated_at = utcnow()

    def update_preferences(self, **changes: Any) -> None:
        prefs = replace(self._preferences, **changes)
        if prefs.theme not in THEMES:
            raise BusinessRuleViolationError(f"Theme must be one of: {', '.join(THEMES)}")
        self._preferences = prefs
        self._updated_at = utcnow()

    def deactivate(self) -> None:
        if not self._is_active:
            raise BusinessRuleViolationError("User is already inactive")
        self._is_active = False
        self._updated_at = utcnow()

    def activate(self) -> None:
        if self._is_active:
            raise BusinessRuleViolationError("User is already active")
        self._is_active = True
        self._updated_at = utcnow()

    @property
    def id(self) -> str:
        return self._id

    @property
    def email(self) -> str:
        return self._email

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def display_name(self) -> str:
        return self._name or self._email.split("@", 1)[0]

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def is_admin(self) -> bool:
        return self._role == "admin"

    @property
    def role(self) -> str:
        return self._role

    @property
    def preferences(self) -> UserPreferences:
        return self._preferences

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def last_login_at(self) -> datetime | None:
        return self._last_login_at

    def __repr__(self) -> str:
        return f"User(id={self._id!r}, email={self._email!r}, credits={self._credits})"
