"""Credit-metered generation: deduction, compensation and the ledger."""

import asyncio

import pytest

from conftest import (
    CountingDocumentRepository,
    FailingTransactionRepository,
    ScriptedGenerator,
    ScriptedUserRepository,
    balance,
    generate_use_case,
    make_repositories,
    seed_document,
    seed_idea,
    seed_user,
)
from ideaforge.core.result import failure, success
from ideaforge.domain.credit_transaction import TransactionType
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import (
    ConcurrentUpdateError,
    EntityNotFoundError,
    IdeaNotFoundError,
    InsufficientCreditsError,
    UnauthorizedAccessError,
)
from ideaforge.domain.idea import Idea
from ideaforge.services.generation import GenerateDocumentCommand, build_generation_context

pytestmark = pytest.mark.asyncio


def command(idea, user, document_type=DocumentType.ROADMAP):
    return GenerateDocumentCommand(idea_id=idea.id, user_id=user.id, document_type=document_type)


async def test_successful_generation_deducts_once_and_persists(repos, ai):
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert result.ok
    doc = result.value
    assert doc.document_type == DocumentType.ROADMAP
    assert doc.version == 1
    assert doc.title.startswith("Roadmap - ")
    assert await balance(repos, user.id) == 50
    txs = repos.transactions.all()
    assert len(txs) == 1
    assert txs[0].type == TransactionType.DEDUCT
    assert txs[0].amount == -50
    assert txs[0].description == "Document generation: Roadmap"
    assert txs[0].metadata["documentType"] == "roadmap"
    assert txs[0].metadata["ideaId"] == idea.id
    stored = (await repos.documents.find_by_idea_id(idea.id)).value
    assert [d.id for d in stored] == [doc.id]


async def test_insufficient_credits_touches_nothing(repos, ai):
    user = await seed_user(repos, credits=40)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert not result.ok
    assert isinstance(result.error, InsufficientCreditsError)
    assert await balance(repos, user.id) == 40
    assert repos.transactions.all() == []
    assert ai.calls == []


async def test_generation_failure_refunds(repos):
    ai = ScriptedGenerator(failure(RuntimeError("model overloaded")))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user, DocumentType.PRD))

    assert not result.ok
    assert str(result.error) == "model overloaded"
    assert await balance(repos, user.id) == 100
    deduct, refund = repos.transactions.all()
    assert deduct.type == TransactionType.DEDUCT and deduct.amount == -50
    assert refund.type == TransactionType.REFUND and refund.amount == 50
    assert refund.description == "Refund for failed document generation"
    assert refund.metadata["reason"] == "model overloaded"
    assert (await repos.documents.find_by_idea_id(idea.id)).value == []


async def test_generator_exception_is_treated_as_failure(repos):
    ai = ScriptedGenerator(ValueError("bad response"))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert isinstance(result.error, ValueError)
    assert await balance(repos, user.id) == 100
    assert [t.type for t in repos.transactions.all()] == [TransactionType.DEDUCT, TransactionType.REFUND]


async def test_idea_owned_by_someone_else(ai):
    users = ScriptedUserRepository()
    documents = CountingDocumentRepository()
    repos = make_repositories(users=users, documents=documents)
    owner = await seed_user(repos, credits=100)
    intruder = await seed_user(repos, credits=100, role="other")
    idea = await seed_idea(repos, owner)

    result = await generate_use_case(repos, ai).execute(command(idea, intruder))

    assert isinstance(result.error, UnauthorizedAccessError)
    assert users.find_calls == 0
    assert documents.calls == 0
    assert await balance(repos, intruder.id) == 100
    assert repos.transactions.all() == []
    assert ai.calls == []


async def test_missing_idea(repos, ai):
    user = await seed_user(repos)
    ghost = Idea.create(user_id=user.id, idea_text="An idea that was never saved anywhere.")

    result = await generate_use_case(repos, ai).execute(command(ghost, user))

    assert isinstance(result.error, IdeaNotFoundError)
    assert repos.transactions.all() == []


async def test_missing_user(repos, ai):
    user = await seed_user(repos)
    idea = Idea.create(user_id="nobody", idea_text="A tool that summarises council meetings.")
    await repos.ideas.save(idea)

    result = await generate_use_case(repos, ai).execute(
        GenerateDocumentCommand(idea_id=idea.id, user_id="nobody", document_type=DocumentType.PRD)
    )

    assert isinstance(result.error, EntityNotFoundError)
    assert result.error.entity_type == "User"
    assert await balance(repos, user.id) == 100
    assert ai.calls == []


async def test_persistence_failure_refunds(repos, ai):
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    async def broken_save(document):
        return failure(ConnectionError("documents collection unavailable"))

    repos.documents.save = broken_save

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert isinstance(result.error, ConnectionError)
    assert await balance(repos, user.id) == 100
    assert [t.type for t in repos.transactions.all()] == [TransactionType.DEDUCT, TransactionType.REFUND]


async def test_invalid_generated_content_refunds(repos):
    ai = ScriptedGenerator(success("   "))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert not result.ok
    assert await balance(repos, user.id) == 100


async def test_timeout_refunds(repos):
    ai = ScriptedGenerator(delay=1.0)
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai, generation_timeout_seconds=0.01).execute(command(idea, user))

    assert isinstance(result.error, TimeoutError)
    assert await balance(repos, user.id) == 100
    assert repos.transactions.all()[-1].type == TransactionType.REFUND


async def test_cancellation_refunds_then_propagates(repos):
    ai = ScriptedGenerator(delay=10.0)
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    task = asyncio.create_task(generate_use_case(repos, ai).execute(command(idea, user)))
    await ai.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await balance(repos, user.id) == 100
    assert [t.type for t in repos.transactions.all()] == [TransactionType.DEDUCT, TransactionType.REFUND]


async def test_cancellation_during_refund_still_refunds(ai):
    users = ScriptedUserRepository(slow_find_on=2)
    repos = make_repositories(users=users)
    ai.outcomes = [failure(RuntimeError("model overloaded"))]
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    task = asyncio.create_task(generate_use_case(repos, ai).execute(command(idea, user)))
    await users.slow_find_started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert repos.users._rows[user.id]["credits"] == 100
    assert [t.type for t in repos.transactions.all()] == [TransactionType.DEDUCT, TransactionType.REFUND]


async def test_explicit_zero_settings_are_kept(repos, ai):
    use_case = generate_use_case(repos, ai, generation_timeout_seconds=0.0, refund_max_attempts=0)

    assert use_case.generation_timeout_seconds == 0.0
    assert use_case.refund_max_attempts == 0


async def test_ledger_failure_does_not_fail_generation(ai):
    repos = make_repositories(transactions=FailingTransactionRepository())
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert result.ok
    assert await balance(repos, user.id) == 50


async def test_ledger_exception_does_not_fail_refund():
    repos = make_repositories(transactions=FailingTransactionRepository(raise_error=True))
    ai = ScriptedGenerator(failure(RuntimeError("boom")))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert str(result.error) == "boom"
    assert await balance(repos, user.id) == 100


async def test_refund_gives_up_when_user_cannot_be_reloaded():
    repos = make_repositories(users=ScriptedUserRepository(fail_find_from=2))
    ai = ScriptedGenerator(failure(RuntimeError("boom")))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert str(result.error) == "boom"
    stored = repos.users._rows[user.id]["credits"]
    assert stored == 50
    assert [t.type for t in repos.transactions.all()] == [TransactionType.DEDUCT]


async def test_lost_race_before_deduction_is_terminal():
    repos = make_repositories(users=ScriptedUserRepository(race_on_find={1: 5}))
    ai = ScriptedGenerator()
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user))

    assert isinstance(result.error, ConcurrentUpdateError)
    assert repos.users._rows[user.id]["credits"] == 105
    assert repos.transactions.all() == []
    assert ai.calls == []


async def test_refund_retries_after_concurrent_write():
    repos = make_repositories(users=ScriptedUserRepository(race_on_find={2: 5}))
    ai = ScriptedGenerator(failure(RuntimeError("boom")))
    user = await seed_user(repos, credits=100)
    idea = await seed_idea(repos, user)

    await generate_use_case(repos, ai).execute(command(idea, user))

    assert repos.users._rows[user.id]["credits"] == 105
    refunds = [t for t in repos.transactions.all() if t.type == TransactionType.REFUND]
    assert len(refunds) == 1


async def test_free_document_type_records_nothing(repos):
    ai = ScriptedGenerator(success({"score": 4.2, "feedback": "Solid"}))
    user = await seed_user(repos, credits=0)
    idea = await seed_idea(repos, user)

    result = await generate_use_case(repos, ai).execute(command(idea, user, DocumentType.STARTUP_ANALYSIS))

    assert result.ok
    assert result.value.content_shape == "summary"
    assert await balance(repos, user.id) == 0
    assert repos.transactions.all() == []


async def test_context_uses_existing_documents(repos, ai):
    user = await seed_user(repos, credits=200)
    idea = await seed_idea(repos, user)
    await seed_document(repos, idea, DocumentType.STARTUP_ANALYSIS, {"score": 3.5, "feedback": "Niche market"})
    await seed_document(repos, idea, DocumentType.PRD, {"markdown": "# PRD"})

    await generate_use_case(repos, ai).execute(command(idea, user, DocumentType.ARCHITECTURE))

    _, context = ai.calls[0]
    assert context.idea_text == idea.idea_text
    assert context.analysis_scores == {"overall": 3.5}
    assert context.analysis_feedback == "Niche market"
    assert context.existing_prd == "# PRD"
    assert context.existing_technical_design == ""


async def test_build_context_is_total(repos):
    user = await seed_user(repos)
    idea = await seed_idea(repos, user)
    legacy = await seed_document(
        repos, idea, DocumentType.STARTUP_ANALYSIS, {"viability": 1, "innovation": 2, "market": 3}
    )
    odd_prd = await seed_document(repos, idea, DocumentType.PRD, {"sections": ["a", "b"]})

    context = build_generation_context(idea.idea_text, [legacy, odd_prd])

    assert context.analysis_scores is None
    assert context.analysis_feedback is None
    assert context.existing_prd == ""
    assert build_generation_context("x" * 10, []).to_dict() == {"ideaText": "x" * 10}
