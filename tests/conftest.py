import asyncio
import os
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-memory backend: no database needed for the suite.
os.environ.setdefault("REPOSITORY_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")

from ideaforge.core.result import Result, failure, success  # noqa: E402
from ideaforge.domain.document import Document  # noqa: E402
from ideaforge.domain.document_types import DocumentType  # noqa: E402
from ideaforge.domain.generator import AIDocumentGeneratorService, GenerationContext  # noqa: E402
from ideaforge.domain.idea import Idea  # noqa: E402
from ideaforge.domain.user import User  # noqa: E402
from ideaforge.repositories import Repositories  # noqa: E402
from ideaforge.repositories.memory import (  # noqa: E402
    InMemoryCreditTransactionRepository,
    InMemoryDocumentRepository,
    InMemoryIdeaRepository,
    InMemoryUserRepository,
)
from ideaforge.services.generation import GenerateDocumentUseCase, RegenerateDocumentUseCase  # noqa: E402

IDEA_TEXT = "A marketplace that pairs retired engineers with hardware startups."


class ScriptedGenerator(AIDocumentGeneratorService):
    """Returns a queued outcome per call; records every call."""

    def __init__(self, *outcomes: Any, delay: float = 0.0):
        self.outcomes = list(outcomes) or [success({"markdown": "# Generated\n\nBody"})]
        self.delay = delay
        self.calls: list[tuple[DocumentType, GenerationContext]] = []
        self.started = asyncio.Event()

    async def generate_document(self, document_type: DocumentType, context: GenerationContext) -> Result[Any]:
        self.calls.append((document_type, context))
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FailingTransactionRepository(InMemoryCreditTransactionRepository):
    def __init__(self, raise_error: bool = False):
        super().__init__()
        self.raise_error = raise_error

    async def record_transaction(self, transaction):
        if self.raise_error:
            raise ConnectionError("ledger unavailable")
        return failure(ConnectionError("ledger unavailable"))


class ScriptedUserRepository(InMemoryUserRepository):
    """In-memory users with hooks to simulate another writer or a failing read.

    ``race_on_find`` maps a 1-based find_by_id call number to a credit delta
    applied to the stored row right after that read. ``slow_find_on`` stalls
    that read for ``slow_find_delay`` seconds and sets ``slow_find_started``.
    """

    def __init__(
        self,
        race_on_find: dict[int, int] | None = None,
        fail_find_from: int | None = None,
        slow_find_on: int | None = None,
        slow_find_delay: float = 1.0,
    ):
        super().__init__()
        self.race_on_find = race_on_find or {}
        self.fail_find_from = fail_find_from
        self.slow_find_on = slow_find_on
        self.slow_find_delay = slow_find_delay
        self.slow_find_started = asyncio.Event()
        self.find_calls = 0

    async def find_by_id(self, user_id: str):
        self.find_calls += 1
        if self.find_calls == self.slow_find_on:
            self.slow_find_started.set()
            await asyncio.sleep(self.slow_find_delay)
        if self.fail_find_from is not None and self.find_calls >= self.fail_find_from:
            return failure(ConnectionError("users collection unavailable"))
        result = await super().find_by_id(user_id)
        delta = self.race_on_find.get(self.find_calls)
        if delta and result.ok and result.value is not None:
            self._rows[user_id]["credits"] += delta
        return result


class CountingDocumentRepository(InMemoryDocumentRepository):
    """In-memory documents that count every repository call."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def find_by_idea_id(self, idea_id):
        self.calls += 1
        return await super().find_by_idea_id(idea_id)

    async def find_by_id(self, document_id, user_id=None):
        self.calls += 1
        return await super().find_by_id(document_id, user_id)

    async def save(self, document):
        self.calls += 1
        return await super().save(document)

    async def find_latest_version(self, idea_id, document_type):
        self.calls += 1
        return await super().find_latest_version(idea_id, document_type)

    async def find_all_versions(self, idea_id, document_type):
        self.calls += 1
        return await super().find_all_versions(idea_id, document_type)


def make_repositories(
    users: InMemoryUserRepository | None = None,
    transactions=None,
    documents: InMemoryDocumentRepository | None = None,
) -> Repositories:
    return Repositories(
        users=users or InMemoryUserRepository(),
        ideas=InMemoryIdeaRepository(),
        documents=documents or InMemoryDocumentRepository(),
        transactions=transactions or InMemoryCreditTransactionRepository(),
    )


async def seed_user(repos: Repositories, credits: int = 100, role: str = "user") -> User:
    user = User.create(email=f"{role}-{credits}@example.com", credits=credits, name="Test User", role=role)
    await repos.users.save(user)
    return user


async def seed_idea(repos: Repositories, user: User) -> Idea:
    idea = Idea.create(user_id=user.id, idea_text=IDEA_TEXT)
    await repos.ideas.save(idea)
    return idea


async def seed_document(
    repos: Repositories, idea: Idea, document_type: DocumentType, content: Any, version: int = 1
) -> Document:
    doc = Document.create(
        idea_id=idea.id,
        user_id=idea.user_id,
        document_type=document_type,
        content=content,
        title=f"{document_type.display_name} draft",
        version=version,
    )
    await repos.documents.save(doc)
    return doc


async def balance(repos: Repositories, user_id: str) -> int:
    return (await repos.users.find_by_id(user_id)).value.credits


def generate_use_case(repos: Repositories, ai: AIDocumentGeneratorService, **kwargs) -> GenerateDocumentUseCase:
    return GenerateDocumentUseCase(repos.documents, repos.ideas, repos.users, repos.transactions, ai, **kwargs)


def regenerate_use_case(repos: Repositories, ai: AIDocumentGeneratorService, **kwargs) -> RegenerateDocumentUseCase:
    return RegenerateDocumentUseCase(repos.documents, repos.ideas, repos.users, repos.transactions, ai, **kwargs)


@pytest.fixture
def repos() -> Repositories:
    return make_repositories()


@pytest.fixture
def ai() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest_asyncio.fixture
async def client(repos: Repositories, ai: ScriptedGenerator) -> AsyncGenerator[AsyncClient, None]:
    from ideaforge.deps import get_ai_generator
    from ideaforge.main import app
    from ideaforge.repositories import get_repositories

    app.dependency_overrides[get_repositories] = lambda: repos
    app.dependency_overrides[get_ai_generator] = lambda: ai
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


def login(client: AsyncClient, user: User) -> None:
    from ideaforge.core.security import create_session_cookie
    from ideaforge.deps import SESSION_COOKIE_NAME

    client.cookies.set(SESSION_COOKIE_NAME, create_session_cookie({"user_id": user.id}))
