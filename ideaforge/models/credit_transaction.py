from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import Field


class CreditTransactionRecord(Document):
    """Append-only; never updated after insert."""
    id: str
    user_id: str
    amount: int  # positive = credit, negative = debit
    type: str  # deduct, add, refund, admin_adjustment
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    created_at: datetime

    class Settings:
        name = "credit_transactions"
        indexes = [
            [("user_id", 1), ("timestamp", -1)],
        ]
