"""Credit balance reads, grants and ledger history."""

from dataclasses import dataclass, field
from typing import Any

from ideaforge.core.logging import get_logger
from ideaforge.core.pagination import paginate
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.credit_transaction import CreditTransaction, TransactionType
from ideaforge.domain.errors import (
    BusinessRuleViolationError,
    ConcurrentUpdateError,
    EntityNotFoundError,
)
from ideaforge.domain.repositories import CreditTransactionRepository, UserRepository
from ideaforge.domain.user import User

log = get_logger(__name__)

# Balance writes that lose a race are re-read and retried this many times.
ADD_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class CreditBalance:
    credits: int
    tier: str = "free"


@dataclass(frozen=True)
class AddCreditsCommand:
    user_id: str
    amount: int
    type: TransactionType = TransactionType.ADD
    description: str = "Credits added"
    metadata: dict[str, Any] = field(default_factory=dict)


class GetCreditBalanceUseCase:
    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def execute(self, user_id: str) -> Result[CreditBalance]:
        found = await self.user_repository.find_by_id(user_id)
        if not found.ok:
            return found
        if found.value is None:
            return failure(EntityNotFoundError("User", user_id))
        return success(CreditBalance(credits=found.value.credits))


class AddCreditsUseCase:
    """Grant credits to a user and append the matching ledger entry.

    Only positive grants go through here (ADD, REFUND, or a positive
    ADMIN_ADJUSTMENT); deductions belong to the generation flow.
    """

    def __init__(self, user_repository: UserRepository, transaction_repository: CreditTransactionRepository):
        self.user_repository = user_repository
        self.transaction_repository = transaction_repository

    async def execute(self, command: AddCreditsCommand) -> Result[User]:
        if command.type == TransactionType.DEDUCT:
            return failure(BusinessRuleViolationError("Deductions cannot be applied as a credit grant"))

        for attempt in range(1, ADD_MAX_ATTEMPTS + 1):
            found = await self.user_repository.find_by_id(command.user_id)
            if not found.ok:
                return found
            user = found.value
            if user is None:
                return failure(EntityNotFoundError("User", command.user_id))

            balance_before = user.credits
            try:
                user.add_credits(command.amount)
            except BusinessRuleViolationError as e:
                return failure(e)

            updated = await self.user_repository.update_credits(user.id, user.credits, expected=balance_before)
            if updated.ok:
                break
            if not isinstance(updated.error, ConcurrentUpdateError) or attempt == ADD_MAX_ATTEMPTS:
                return updated
            log.warning("credit_grant_retry", user_id=user.id, attempt=attempt)

        try:
            transaction = CreditTransaction.create(
                user_id=user.id,
                amount=command.amount,
                type=command.type,
                description=command.description,
                metadata=command.metadata,
            )
            recorded = await self.transaction_repository.record_transaction(transaction)
        except Exception as e:
            recorded = failure(e)
        if not recorded.ok:
            log.error(
                "credit_transaction_record_failed",
                user_id=user.id,
                type=command.type.value,
                amount=command.amount,
                error=str(recorded.error),
            )

        log.info("credits_added", user_id=user.id, amount=command.amount, type=command.type.value, credits=user.credits)
        return success(user)


class GetTransactionHistoryUseCase:
    def __init__(self, transaction_repository: CreditTransactionRepository):
        self.transaction_repository = transaction_repository

    async def execute(self, user_id: str, limit: int = 50, offset: int = 0) -> Result[list[CreditTransaction]]:
        limit, offset = paginate(limit, offset)
        return await self.transaction_repository.get_transaction_history(user_id, limit=limit, offset=offset)
