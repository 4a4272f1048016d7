"""Credit-metered document generation.

Flow: load idea -> load documents -> load user -> authorize -> deduct ->
record -> build context -> generate -> persist. Once credits are deducted,
every failure (including a timeout or an external cancellation) runs the
refund exactly once, from ``execute``. The caller always receives the
original outcome; the refund only changes ledger state.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

from ideaforge.core.config import get_settings
from ideaforge.core.logging import get_logger
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.content import extract_text
from ideaforge.domain.credit_transaction import CreditTransaction, TransactionType
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import (
    ConcurrentUpdateError,
    DocumentNotFoundError,
    EntityNotFoundError,
    IdeaNotFoundError,
    InsufficientCreditsError,
    UnauthorizedAccessError,
)
from ideaforge.domain.generator import AIDocumentGeneratorService, GenerationContext
from ideaforge.domain.idea import Idea
from ideaforge.domain.repositories import (
    CreditTransactionRepository,
    DocumentRepository,
    IdeaRepository,
    UserRepository,
)
from ideaforge.domain.user import User, utcnow

log = get_logger(__name__)

REFUND_DESCRIPTION = "Refund for failed document generation"


@dataclass(frozen=True)
class GenerateDocumentCommand:
    idea_id: str
    user_id: str
    document_type: DocumentType


@dataclass(frozen=True)
class RegenerateDocumentCommand:
    idea_id: str
    user_id: str
    document_type: DocumentType
    document_id: str | None = None


@dataclass
class _Deduction:
    """Saga bookkeeping: set once the new balance is persisted."""
    applied: bool = False
    amount: int = 0


# Generation context

def _latest(documents: list[Document], predicate: Callable[[Document], bool]) -> Document | None:
    matching = [d for d in documents if predicate(d)]
    if not matching:
        return None
    return max(matching, key=lambda d: (d.created_at, d.version))


def _analysis_fields(content: Any) -> tuple[dict[str, float] | None, str | None]:
    if not isinstance(content, dict):
        return None, None
    scores = None
    for key in ("score", "finalScore"):
        value = content.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            scores = {"overall": float(value)}
            break
    feedback = None
    for key in ("feedback", "detailedSummary"):
        value = content.get(key)
        if isinstance(value, str):
            feedback = value
            break
    return scores, feedback


def _document_text(documents: list[Document], document_type: DocumentType) -> str:
    doc = _latest(documents, lambda d: d.document_type == document_type)
    if doc is None:
        return ""
    return extract_text(doc.get_content()) or ""


def build_generation_context(idea_text: str, documents: list[Document]) -> GenerationContext:
    """Pure and total: unreadable document content counts as missing context."""
    scores, feedback = None, None
    analysis = _latest(documents, lambda d: d.document_type.is_analysis)
    if analysis is not None:
        scores, feedback = _analysis_fields(analysis.get_content())
    return GenerationContext(
        idea_text=idea_text,
        analysis_scores=scores,
        analysis_feedback=feedback,
        existing_prd=_document_text(documents, DocumentType.PRD),
        existing_technical_design=_document_text(documents, DocumentType.TECHNICAL_DESIGN),
        existing_architecture=_document_text(documents, DocumentType.ARCHITECTURE),
    )


def document_title(document_type: DocumentType) -> str:
    return f"{document_type.display_name} - {utcnow().date().isoformat()}"


class GenerateDocumentUseCase:
    operation = "generate"

    def __init__(
        self,
        document_repository: DocumentRepository,
        idea_repository: IdeaRepository,
        user_repository: UserRepository,
        transaction_repository: CreditTransactionRepository,
        ai_service: AIDocumentGeneratorService,
        generation_timeout_seconds: float | None = None,
        refund_max_attempts: int | None = None,
    ):
        settings = get_settings()
        self.document_repository = document_repository
        self.idea_repository = idea_repository
        self.user_repository = user_repository
        self.transaction_repository = transaction_repository
        self.ai_service = ai_service
        if generation_timeout_seconds is None:
            generation_timeout_seconds = settings.generation_timeout_seconds
        if refund_max_attempts is None:
            refund_max_attempts = settings.refund_max_attempts
        self.generation_timeout_seconds = generation_timeout_seconds
        self.refund_max_attempts = refund_max_attempts

    async def execute(self, command: GenerateDocumentCommand) -> Result[Document]:
        log.info(
            "document_generation_started",
            operation=self.operation,
            idea_id=command.idea_id,
            user_id=command.user_id,
            document_type=command.document_type.value,
        )
        deduction = _Deduction()
        try:
            result = await self._run(command, deduction)
        except asyncio.CancelledError:
            if deduction.applied:
                await self._compensate(command, deduction, asyncio.CancelledError("Document generation cancelled"))
            raise
        except Exception as e:
            log.exception(
                "document_generation_unexpected_error",
                idea_id=command.idea_id,
                document_type=command.document_type.value,
            )
            result = failure(e)

        if not result.ok and deduction.applied:
            await self._compensate(command, deduction, result.error)
        return result

    async def _compensate(self, command: GenerateDocumentCommand, deduction: _Deduction, error: BaseException) -> None:
        """Run the refund to completion; a cancellation that lands meanwhile is re-raised afterwards."""
        refund = asyncio.ensure_future(self._refund(command, deduction, error))
        cancelled = False
        while not refund.done():
            try:
                await asyncio.shield(refund)
            except asyncio.CancelledError:
                cancelled = True
        if cancelled:
            raise asyncio.CancelledError()

    async def _run(self, command: GenerateDocumentCommand, deduction: _Deduction) -> Result[Document]:
        idea_result = await self._load_idea(command)
        if not idea_result.ok:
            return idea_result
        idea: Idea = idea_result.value

        target = await self._load_target(command)
        if not target.ok:
            return target

        documents = await self.document_repository.find_by_idea_id(command.idea_id)
        if not documents.ok:
            return documents

        user_result = await self.user_repository.find_by_id(command.user_id)
        if not user_result.ok:
            return user_result
        user: User | None = user_result.value
        if user is None:
            return failure(EntityNotFoundError("User", command.user_id))

        cost = command.document_type.credit_cost
        if user.credits < cost:
            log.warning(
                "insufficient_credits",
                user_id=user.id,
                required=cost,
                available=user.credits,
            )
            return failure(InsufficientCreditsError(user.id))

        deducted = await self._deduct(user, cost, command, deduction)
        if not deducted.ok:
            return deducted

        context = build_generation_context(idea.idea_text, documents.value)
        generated = await self._generate(command.document_type, context)
        if not generated.ok:
            log.error(
                "document_generation_failed",
                document_type=command.document_type.value,
                error=str(generated.error),
            )
            return generated

        document = self._build_document(command, target.value, generated.value)
        if not document.ok:
            return document

        saved = await self.document_repository.save(document.value)
        if not saved.ok:
            log.error("document_save_failed", document_id=document.value.id, error=str(saved.error))
            return saved

        log.info(
            "document_generated",
            document_id=saved.value.id,
            document_type=command.document_type.value,
            version=saved.value.version,
        )
        return saved

    async def _load_idea(self, command: GenerateDocumentCommand) -> Result[Idea]:
        found = await self.idea_repository.find_by_id(command.idea_id, command.user_id)
        if not found.ok:
            return found
        idea = found.value
        if idea is None:
            return failure(IdeaNotFoundError(command.idea_id))
        if not idea.belongs_to_user(command.user_id):
            return failure(UnauthorizedAccessError(command.user_id, command.idea_id))
        return success(idea)

    async def _load_target(self, command: GenerateDocumentCommand) -> Result[Document | None]:
        """Existing document the new one derives from; none for a first generation."""
        return success(None)

    def _build_document(
        self, command: GenerateDocumentCommand, previous: Document | None, content: Any
    ) -> Result[Document]:
        try:
            return success(
                Document.create(
                    idea_id=command.idea_id,
                    user_id=command.user_id,
                    document_type=command.document_type,
                    title=document_title(command.document_type),
                    content=content,
                )
            )
        except Exception as e:
            return failure(e)

    async def _deduct(
        self, user: User, cost: int, command: GenerateDocumentCommand, deduction: _Deduction
    ) -> Result[None]:
        if cost == 0:
            return success(None)
        balance_before = user.credits
        try:
            for _ in range(cost):
                user.deduct_credit()
        except InsufficientCreditsError as e:
            return failure(e)

        updated = await self.user_repository.update_credits(user.id, user.credits, expected=balance_before)
        if not updated.ok:
            log.warning("credit_deduction_not_persisted", user_id=user.id, error=str(updated.error))
            return updated

        deduction.applied = True
        deduction.amount = cost

        await self._record(
            CreditTransaction.create(
                user_id=user.id,
                amount=-cost,
                type=TransactionType.DEDUCT,
                description=f"Document generation: {command.document_type.display_name}",
                metadata={
                    "documentType": command.document_type.value,
                    "ideaId": command.idea_id,
                    "operation": self.operation,
                },
            )
        )
        log.info("credits_deducted", user_id=user.id, amount=cost, remaining_credits=user.credits)
        return success(None)

    async def _generate(self, document_type: DocumentType, context: GenerationContext) -> Result[Any]:
        log.info(
            "ai_generation_requested",
            document_type=document_type.value,
            has_analysis=context.analysis_scores is not None or context.analysis_feedback is not None,
            has_prd=bool(context.existing_prd),
            has_technical_design=bool(context.existing_technical_design),
            has_architecture=bool(context.existing_architecture),
        )
        try:
            return await asyncio.wait_for(
                self.ai_service.generate_document(document_type, context),
                timeout=self.generation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            return failure(
                TimeoutError(f"Document generation timed out after {self.generation_timeout_seconds}s")
            )

    async def _record(self, transaction: CreditTransaction) -> None:
        """Ledger write is audit logging: a failure is reported, never propagated."""
        try:
            recorded = await self.transaction_repository.record_transaction(transaction)
        except Exception as e:
            recorded = failure(e)
        if not recorded.ok:
            log.error(
                "credit_transaction_record_failed",
                transaction_id=transaction.id,
                user_id=transaction.user_id,
                type=transaction.type.value,
                amount=transaction.amount,
                error=str(recorded.error),
            )

    async def _refund(self, command: GenerateDocumentCommand, deduction: _Deduction, error: BaseException) -> None:
        reason = str(error) or type(error).__name__
        log.warning("credits_refund_started", user_id=command.user_id, amount=deduction.amount, reason=reason)
        try:
            refunded = await self._restore_balance(command.user_id, deduction.amount)
            if not refunded:
                return
            await self._record(
                CreditTransaction.create(
                    user_id=command.user_id,
                    amount=deduction.amount,
                    type=TransactionType.REFUND,
                    description=REFUND_DESCRIPTION,
                    metadata={
                        "reason": reason,
                        "documentType": command.document_type.value,
                        "ideaId": command.idea_id,
                        "operation": self.operation,
                    },
                )
            )
            log.info("credits_refunded", user_id=command.user_id, amount=deduction.amount)
        except Exception:
            log.exception("credit_refund_failed", user_id=command.user_id, amount=deduction.amount)

    async def _restore_balance(self, user_id: str, amount: int) -> bool:
        for attempt in range(1, self.refund_max_attempts + 1):
            loaded = await self.user_repository.find_by_id(user_id)
            if not loaded.ok or loaded.value is None:
                # Credits stay deducted; the DEDUCT entry without a REFUND marks it in the ledger.
                log.error(
                    "credit_refund_user_load_failed",
                    user_id=user_id,
                    amount=amount,
                    error=str(loaded.error) if not loaded.ok else "user not found",
                )
                return False
            user = loaded.value
            balance_before = user.credits
            user.add_credits(amount)
            updated = await self.user_repository.update_credits(user.id, user.credits, expected=balance_before)
            if updated.ok:
                return True
            if not isinstance(updated.error, ConcurrentUpdateError):
                log.error("credit_refund_failed", user_id=user_id, amount=amount, error=str(updated.error))
                return False
            log.warning("credit_refund_retry", user_id=user_id, attempt=attempt)
        log.error("credit_refund_failed", user_id=user_id, amount=amount, error="balance kept changing")
        return False


class RegenerateDocumentUseCase(GenerateDocumentUseCase):
    """Same saga; the result is saved as the next version of the latest document."""

    operation = "regenerate"

    async def _load_target(self, command: RegenerateDocumentCommand) -> Result[Document | None]:
        latest = await self.document_repository.find_latest_version(command.idea_id, command.document_type)
        if not latest.ok:
            return latest
        current = latest.value
        if current is None:
            return failure(DocumentNotFoundError(f"{command.document_type.value} for idea {command.idea_id}"))
        if command.document_id and current.id != command.document_id:
            return failure(DocumentNotFoundError(command.document_id))
        if not current.belongs_to_user(command.user_id):
            return failure(UnauthorizedAccessError(command.user_id, current.id))
        return success(current)

    def _build_document(
        self, command: RegenerateDocumentCommand, previous: Document | None, content: Any
    ) -> Result[Document]:
        try:
            return success(previous.next_version(content, title=document_title(command.document_type)))
        except Exception as e:
            return failure(e)
