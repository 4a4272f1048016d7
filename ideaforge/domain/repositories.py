"""Persistence contracts consumed by the use cases.

Implementations return ``Success``/``Failure`` and do not raise for storage
errors; see ``ideaforge.repositories`` for the memory and Mongo backends.
"""

from abc import ABC, abstractmethod

from ideaforge.core.result import Result
from ideaforge.domain.credit_transaction import CreditTransaction
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.idea import Idea
from ideaforge.domain.user import User


class IdeaRepository(ABC):
    @abstractmethod
    async def find_by_id(self, idea_id: str, user_id: str | None = None) -> Result[Idea | None]:
        """Load an idea. ``user_id`` is the requester; ownership is checked by the caller."""
        ...

    @abstractmethod
    async def save(self, idea: Idea) -> Result[Idea]:
        ...


class DocumentRepository(ABC):
    @abstractmethod
    async def find_by_idea_id(self, idea_id: str) -> Result[list[Document]]:
        """All documents of an idea, newest first."""
        ...

    @abstractmethod
    async def find_by_id(self, document_id: str, user_id: str | None = None) -> Result[Document | None]:
        ...

    @abstractmethod
    async def save(self, document: Document) -> Result[Document]:
        """Insert a document. Saving never overwrites another version."""
        ...

    @abstractmethod
    async def find_latest_version(self, idea_id: str, document_type: DocumentType) -> Result[Document | None]:
        ...

    @abstractmethod
    async def find_all_versions(self, idea_id: str, document_type: DocumentType) -> Result[list[Document]]:
        """All versions of one document type for an idea, highest version first."""
        ...


class UserRepository(ABC):
    @abstractmethod
    async def find_by_id(self, user_id: str) -> Result[User | None]:
        ...

    @abstractmethod
    async def save(self, user: User) -> Result[User]:
        ...

    @abstractmethod
    async def update_credits(self, user_id: str, credits: int, expected: int | None = None) -> Result[None]:
        """Write only the balance.

        With ``expected`` set the write is conditional: it applies only when the
        stored balance still equals ``expected`` and fails with
        ``ConcurrentUpdateError`` otherwise.
        """
        ...


class CreditTransactionRepository(ABC):
    @abstractmethod
    async def record_transaction(self, transaction: CreditTransaction) -> Result[None]:
        """Append to the ledger. Entries are never updated or deleted."""
        ...

    @abstractmethod
    async def get_transaction_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Result[list[CreditTransaction]]:
        """Ledger entries for a user, newest first."""
        ...
