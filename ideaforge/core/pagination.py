"""Offset pagination for list endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    next_offset: int | None = None

    @classmethod
    def from_slice(cls, items: list[T], limit: int, offset: int) -> "Page[T]":
        """A short slice is the last page; a full one may have more behind it."""
        next_offset = offset + limit if len(items) >= limit else None
        return cls(items=items, limit=limit, offset=offset, next_offset=next_offset)


def paginate(limit: int | None, offset: int | None, max_limit: int = MAX_LIMIT) -> tuple[int, int]:
    """Clamp limit/offset; missing values fall back to the first default-sized page."""
    limit = DEFAULT_LIMIT if limit is None else max(1, min(limit, max_limit))
    offset = max(0, offset or 0)
    return limit, offset
