from ideaforge.models.user import UserRecord
from ideaforge.models.idea import IdeaRecord
from ideaforge.models.document import DocumentRecord
from ideaforge.models.credit_transaction import CreditTransactionRecord

__all__ = [
    "UserRecord",
    "IdeaRecord",
    "DocumentRecord",
    "CreditTransactionRecord",
]
