"""Immutable ledger entry: the only durable record of why a balance changed."""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ideaforge.domain.errors import InvariantViolationError
from ideaforge.domain.user import new_id, utcnow

MAX_DESCRIPTION_LENGTH = 500


class TransactionType(str, Enum):
    DEDUCT = "deduct"
    ADD = "add"
    REFUND = "refund"
    ADMIN_ADJUSTMENT = "admin_adjustment"


@dataclass(frozen=True)
class CreditTransaction:
    id: str
    user_id: str
    amount: int  # negative = debit, positive = credit
    type: TransactionType
    description: str
    timestamp: datetime
    created_at: datetime
    _metadata: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvariantViolationError("Transaction amount must be an integer")
        if self.amount == 0:
            raise InvariantViolationError("Transaction amount cannot be zero")
        if not self.description or not self.description.strip():
            raise InvariantViolationError("Transaction description cannot be empty")
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise InvariantViolationError(
                f"Transaction description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
            )
        if self.type == TransactionType.DEDUCT and self.amount > 0:
            raise InvariantViolationError("DEDUCT transaction must have negative amount")
        if self.type in (TransactionType.ADD, TransactionType.REFUND) and self.amount < 0:
            raise InvariantViolationError(f"{self.type.value.upper()} transaction must have positive amount")
        # Detach from the caller's dict.
        object.__setattr__(self, "_metadata", copy.deepcopy(self._metadata or {}))

    @classmethod
    def create(
        cls,
        user_id: str,
        amount: int,
        type: TransactionType,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> "CreditTransaction":
        now = utcnow()
        return cls(
            id=new_id(),
            user_id=user_id,
            amount=amount,
            type=TransactionType(type),
            description=description,
            timestamp=now,
            created_at=now,
            _metadata=metadata or {},
        )

    @classmethod
    def reconstruct(
        cls,
        id: str,
        user_id: str,
        amount: int,
        type: TransactionType | str,
        description: str,
        timestamp: datetime,
        created_at: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> "CreditTransaction":
        return cls(
            id=id,
            user_id=user_id,
            amount=amount,
            type=TransactionType(type),
            description=description,
            timestamp=timestamp,
            created_at=created_at,
            _metadata=metadata or {},
        )

    @property
    def metadata(self) -> dict[str, Any]:
        return copy.deepcopy(self._metadata)

    def is_deduction(self) -> bool:
        return self.type == TransactionType.DEDUCT

    def is_addition(self) -> bool:
        return self.type in (TransactionType.ADD, TransactionType.REFUND)

    def is_admin_adjustment(self) -> bool:
        return self.type == TransactionType.ADMIN_ADJUSTMENT

    @property
    def absolute_amount(self) -> int:
        return abs(self.amount)

    def summary(self) -> str:
        sign = "+" if self.amount > 0 else ""
        return f"{self.type.value.upper()}: {sign}{self.amount} credits - {self.description}"
