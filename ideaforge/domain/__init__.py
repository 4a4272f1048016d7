from ideaforge.domain.credit_transaction import CreditTransaction, TransactionType
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DOCUMENT_TYPE_CONFIGS, DocumentType
from ideaforge.domain.idea import Idea, IdeaSource, ProjectStatus
from ideaforge.domain.user import User, UserPreferences

__all__ = [
    "CreditTransaction",
    "TransactionType",
    "Document",
    "DocumentType",
    "DOCUMENT_TYPE_CONFIGS",
    "Idea",
    "IdeaSource",
    "ProjectStatus",
    "User",
    "UserPreferences",
]
