"""Process-local repositories for open-source/local mode and tests.

Each repository keeps plain snapshots and rebuilds entities on read, so a
caller mutating a loaded entity never changes stored state until it writes.
"""

import asyncio
from typing import Any

from ideaforge.core.result import Result, failure, success
from ideaforge.domain.credit_transaction import CreditTransaction
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import ConcurrentUpdateError, DuplicateEntityError, EntityNotFoundError
from ideaforge.domain.idea import Idea
from ideaforge.domain.repositories import (
    CreditTransactionRepository,
    DocumentRepository,
    IdeaRepository,
    UserRepository,
)
from ideaforge.domain.user import User, utcnow


def _user_snapshot(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "credits": user.credits,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "is_active": user.is_active,
        "preferences": user.preferences,
        "name": user.name,
        "role": user.role,
        "last_login_at": user.last_login_at,
    }


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def find_by_id(self, user_id: str) -> Result[User | None]:
        row = self._rows.get(user_id)
        return success(User.reconstruct(**row) if row else None)

    async def save(self, user: User) -> Result[User]:
        async with self._lock:
            self._rows[user.id] = _user_snapshot(user)
        return success(user)

    async def update_credits(self, user_id: str, credits: int, expected: int | None = None) -> Result[None]:
        async with self._lock:
            row = self._rows.get(user_id)
            if row is None:
                return failure(EntityNotFoundError("User", user_id))
            if expected is not None and row["credits"] != expected:
                return failure(ConcurrentUpdateError(user_id, expected))
            row["credits"] = credits
            row["updated_at"] = utcnow()
        return success(None)


class InMemoryIdeaRepository(IdeaRepository):
    def __init__(self) -> None:
        self._ideas: dict[str, Idea] = {}

    async def find_by_id(self, idea_id: str, user_id: str | None = None) -> Result[Idea | None]:
        return success(self._ideas.get(idea_id))

    async def save(self, idea: Idea) -> Result[Idea]:
        self._ideas[idea.id] = idea
        return success(idea)


class InMemoryDocumentRepository(DocumentRepository):
    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()

    def _for_idea(self, idea_id: str, document_type: DocumentType | None = None) -> list[Document]:
        return [
            d for d in self._documents.values()
            if d.idea_id == idea_id and (document_type is None or d.document_type == document_type)
        ]

    async def find_by_idea_id(self, idea_id: str) -> Result[list[Document]]:
        docs = sorted(self._for_idea(idea_id), key=lambda d: (d.created_at, d.version), reverse=True)
        return success(docs)

    async def find_by_id(self, document_id: str, user_id: str | None = None) -> Result[Document | None]:
        return success(self._documents.get(document_id))

    async def save(self, document: Document) -> Result[Document]:
        async with self._lock:
            if document.id in self._documents:
                return failure(DuplicateEntityError("Document", document.id))
            self._documents[document.id] = document
        return success(document)

    async def find_latest_version(self, idea_id: str, document_type: DocumentType) -> Result[Document | None]:
        docs = self._for_idea(idea_id, document_type)
        return success(max(docs, key=lambda d: d.version) if docs else None)

    async def find_all_versions(self, idea_id: str, document_type: DocumentType) -> Result[list[Document]]:
        return success(sorted(self._for_idea(idea_id, document_type), key=lambda d: d.version, reverse=True))


class InMemoryCreditTransactionRepository(CreditTransactionRepository):
    def __init__(self) -> None:
        self._entries: list[CreditTransaction] = []

    async def record_transaction(self, transaction: CreditTransaction) -> Result[None]:
        self._entries.append(transaction)
        return success(None)

    async def get_transaction_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Result[list[CreditTransaction]]:
        mine = [t for t in reversed(self._entries) if t.user_id == user_id]
        return success(mine[offset:offset + limit])

    def all(self) -> list[CreditTransaction]:
        return list(self._entries)
