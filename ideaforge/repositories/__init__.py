from dataclasses import dataclass
from functools import lru_cache

from ideaforge.core.config import get_settings
from ideaforge.domain.repositories import (
    CreditTransactionRepository,
    DocumentRepository,
    IdeaRepository,
    UserRepository,
)


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    ideas: IdeaRepository
    documents: DocumentRepository
    transactions: CreditTransactionRepository


@lru_cache
def get_repositories() -> Repositories:
    """Backend chosen by REPOSITORY_BACKEND; one set per process."""
    settings = get_settings()
    if settings.repository_backend == "memory":
        from ideaforge.repositories.memory import (
            InMemoryCreditTransactionRepository,
            InMemoryDocumentRepository,
            InMemoryIdeaRepository,
            InMemoryUserRepository,
        )
        return Repositories(
            users=InMemoryUserRepository(),
            ideas=InMemoryIdeaRepository(),
            documents=InMemoryDocumentRepository(),
            transactions=InMemoryCreditTransactionRepository(),
        )
    from ideaforge.repositories.mongo import (
        MongoCreditTransactionRepository,
        MongoDocumentRepository,
        MongoIdeaRepository,
        MongoUserRepository,
    )
    return Repositories(
        users=MongoUserRepository(),
        ideas=MongoIdeaRepository(),
        documents=MongoDocumentRepository(),
        transactions=MongoCreditTransactionRepository(),
    )
