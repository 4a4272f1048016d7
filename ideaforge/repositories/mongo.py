"""MongoDB repositories on Beanie records."""

from typing import Any

from pymongo.errors import DuplicateKeyError, PyMongoError

from ideaforge.core.logging import get_logger
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.credit_transaction import CreditTransaction
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import (
    ConcurrentUpdateError,
    DatabaseError,
    DomainError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from ideaforge.domain.idea import Idea
from ideaforge.domain.repositories import (
    CreditTransactionRepository,
    DocumentRepository,
    IdeaRepository,
    UserRepository,
)
from ideaforge.domain.user import User, UserPreferences, utcnow
from ideaforge.models.credit_transaction import CreditTransactionRecord
from ideaforge.models.document import DocumentRecord
from ideaforge.models.idea import IdeaRecord
from ideaforge.models.user import UserRecord

log = get_logger(__name__)


def _db_failure(operation: str, exc: Exception) -> Result[Any]:
    log.error("db_operation_failed", operation=operation, error=str(exc))
    if isinstance(exc, DomainError):
        return failure(exc)
    return failure(DatabaseError(f"{operation} failed: {exc}"))


# Record <-> entity mapping

def user_from_record(r: UserRecord) -> User:
    return User.reconstruct(
        id=r.id,
        email=r.email,
        credits=r.credits,
        created_at=r.created_at,
        updated_at=r.updated_at,
        is_active=r.is_active,
        preferences=UserPreferences.from_dict(r.preferences),
        name=r.name,
        role=r.role,
        last_login_at=r.last_login_at,
    )


def user_to_record(u: User) -> UserRecord:
    return UserRecord(
        id=u.id,
        email=u.email,
        name=u.name,
        role=u.role,
        credits=u.credits,
        is_active=u.is_active,
        preferences=u.preferences.to_dict(),
        last_login_at=u.last_login_at,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


def idea_from_record(r: IdeaRecord) -> Idea:
    return Idea(
        id=r.id,
        user_id=r.user_id,
        idea_text=r.idea_text,
        source=r.source,
        project_status=r.project_status,
        notes=r.notes,
        tags=list(r.tags),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def idea_to_record(i: Idea) -> IdeaRecord:
    return IdeaRecord(
        id=i.id,
        user_id=i.user_id,
        idea_text=i.idea_text,
        source=i.source.value,
        project_status=i.project_status.value,
        notes=i.notes,
        tags=list(i.tags),
        created_at=i.created_at,
        updated_at=i.updated_at,
    )


def document_from_record(r: DocumentRecord) -> Document:
    return Document.reconstruct(
        id=r.id,
        idea_id=r.idea_id,
        user_id=r.user_id,
        document_type=DocumentType(r.document_type),
        title=r.title,
        content=r.content,
        version=r.version,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def document_to_record(d: Document) -> DocumentRecord:
    return DocumentRecord(
        id=d.id,
        idea_id=d.idea_id,
        user_id=d.user_id,
        document_type=d.document_type.value,
        title=d.title,
        content=d.get_content(),
        version=d.version,
        created_at=d.created_at,
        updated_at=d.updated_at,
    )


def transaction_from_record(r: CreditTransactionRecord) -> CreditTransaction:
    return CreditTransaction.reconstruct(
        id=r.id,
        user_id=r.user_id,
        amount=r.amount,
        type=r.type,
        description=r.description,
        timestamp=r.timestamp,
        created_at=r.created_at,
        metadata=r.metadata,
    )


def transaction_to_record(t: CreditTransaction) -> CreditTransactionRecord:
    return CreditTransactionRecord(
        id=t.id,
        user_id=t.user_id,
        amount=t.amount,
        type=t.type.value,
        description=t.description,
        metadata=t.metadata,
        timestamp=t.timestamp,
        created_at=t.created_at,
    )


class MongoUserRepository(UserRepository):
    async def find_by_id(self, user_id: str) -> Result[User | None]:
        try:
            record = await UserRecord.get(user_id)
            return success(user_from_record(record) if record else None)
        except (PyMongoError, DomainError) as e:
            return _db_failure("users.find_by_id", e)

    async def save(self, user: User) -> Result[User]:
        try:
            await user_to_record(user).save()
            return success(user)
        except DuplicateKeyError:
            return failure(DuplicateEntityError("User", user.email))
        except PyMongoError as e:
            return _db_failure("users.save", e)

    async def update_credits(self, user_id: str, credits: int, expected: int | None = None) -> Result[None]:
        query: dict[str, Any] = {"_id": user_id}
        if expected is not None:
            query["credits"] = expected
        try:
            # Single conditional update: the balance check and the write are one operation.
            result = await UserRecord.get_motor_collection().update_one(
                query,
                {"$set": {"credits": credits, "updated_at": utcnow()}},
            )
            if result.matched_count == 1:
                return success(None)
            if await UserRecord.get(user_id) is None:
                return failure(EntityNotFoundError("User", user_id))
            return failure(ConcurrentUpdateError(user_id, expected if expected is not None else credits))
        except PyMongoError as e:
            return _db_failure("users.update_credits", e)


class MongoIdeaRepository(IdeaRepository):
    async def find_by_id(self, idea_id: str, user_id: str | None = None) -> Result[Idea | None]:
        try:
            record = await IdeaRecord.get(idea_id)
            return success(idea_from_record(record) if record else None)
        except (PyMongoError, DomainError) as e:
            return _db_failure("ideas.find_by_id", e)

    async def save(self, idea: Idea) -> Result[Idea]:
        try:
            await idea_to_record(idea).save()
            return success(idea)
        except PyMongoError as e:
            return _db_failure("ideas.save", e)


class MongoDocumentRepository(DocumentRepository):
    async def find_by_idea_id(self, idea_id: str) -> Result[list[Document]]:
        try:
            records = (
                await DocumentRecord.find(DocumentRecord.idea_id == idea_id)
                .sort(-DocumentRecord.created_at)
                .to_list()
            )
            return success([document_from_record(r) for r in records])
        except (PyMongoError, DomainError) as e:
            return _db_failure("documents.find_by_idea_id", e)

    async def find_by_id(self, document_id: str, user_id: str | None = None) -> Result[Document | None]:
        try:
            record = await DocumentRecord.get(document_id)
            return success(document_from_record(record) if record else None)
        except (PyMongoError, DomainError) as e:
            return _db_failure("documents.find_by_id", e)

    async def save(self, document: Document) -> Result[Document]:
        try:
            await document_to_record(document).insert()
            return success(document)
        except DuplicateKeyError:
            return failure(DuplicateEntityError("Document", document.id))
        except PyMongoError as e:
            return _db_failure("documents.save", e)

    async def find_latest_version(self, idea_id: str, document_type: DocumentType) -> Result[Document | None]:
        try:
            record = await DocumentRecord.find(
                DocumentRecord.idea_id == idea_id,
                DocumentRecord.document_type == document_type.value,
            ).sort(-DocumentRecord.version).first_or_none()
            return success(document_from_record(record) if record else None)
        except (PyMongoError, DomainError) as e:
            return _db_failure("documents.find_latest_version", e)

    async def find_all_versions(self, idea_id: str, document_type: DocumentType) -> Result[list[Document]]:
        try:
            records = await DocumentRecord.find(
                DocumentRecord.idea_id == idea_id,
                DocumentRecord.document_type == document_type.value,
            ).sort(-DocumentRecord.version).to_list()
            return success([document_from_record(r) for r in records])
        except (PyMongoError, DomainError) as e:
            return _db_failure("documents.find_all_versions", e)


class MongoCreditTransactionRepository(CreditTransactionRepository):
    async def record_transaction(self, transaction: CreditTransaction) -> Result[None]:
        try:
            await transaction_to_record(transaction).insert()
            return success(None)
        except PyMongoError as e:
            return _db_failure("credit_transactions.insert", e)

    async def get_transaction_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Result[list[CreditTransaction]]:
        try:
            records = (
                await CreditTransactionRecord.find(CreditTransactionRecord.user_id == user_id)
                .sort(-CreditTransactionRecord.timestamp)
                .skip(offset)
                .limit(limit)
                .to_list()
            )
            return success([transaction_from_record(r) for r in records])
        except (PyMongoError, DomainError) as e:
            return _db_failure("credit_transactions.history", e)
