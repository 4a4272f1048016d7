"""Document queries and edits scoped to the caller's own ideas.

Edits never overwrite a row: an update or a restore saves the next version
and leaves every earlier one in place.
"""

from dataclasses import dataclass
from typing import Any

from ideaforge.core.logging import get_logger
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import (
    DocumentNotFoundError,
    DomainError,
    IdeaNotFoundError,
    UnauthorizedAccessError,
)
from ideaforge.domain.idea import Idea
from ideaforge.domain.repositories import DocumentRepository, IdeaRepository
from ideaforge.services.document_validator import (
    DocumentValidationResult,
    DocumentValidator,
    inputs_from_documents,
)

log = get_logger(__name__)


async def load_owned_idea(ideas: IdeaRepository, idea_id: str, user_id: str) -> Result[Idea]:
    found = await ideas.find_by_id(idea_id, user_id)
    if not found.ok:
        return found
    if found.value is None:
        return failure(IdeaNotFoundError(idea_id))
    if not found.value.belongs_to_user(user_id):
        return failure(UnauthorizedAccessError(user_id, idea_id))
    return found


class GetDocumentVersionsUseCase:
    def __init__(self, document_repository: DocumentRepository, idea_repository: IdeaRepository):
        self.document_repository = document_repository
        self.idea_repository = idea_repository

    async def execute(self, idea_id: str, user_id: str, document_type: DocumentType) -> Result[list[Document]]:
        """All versions of one document type, highest version first."""
        idea = await load_owned_idea(self.idea_repository, idea_id, user_id)
        if not idea.ok:
            return idea
        return await self.document_repository.find_all_versions(idea_id, document_type)


@dataclass(frozen=True)
class UpdateDocumentCommand:
    idea_id: str
    user_id: str
    document_type: DocumentType
    content: Any
    title: str | None = None
    document_id: str | None = None


class UpdateDocumentUseCase:
    """Save edited content as the next version of the latest document."""

    def __init__(self, document_repository: DocumentRepository):
        self.document_repository = document_repository

    async def execute(self, command: UpdateDocumentCommand) -> Result[Document]:
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

        try:
            updated = current.next_version(command.content, title=command.title)
        except DomainError as e:
            return failure(e)

        saved = await self.document_repository.save(updated)
        if not saved.ok:
            log.error("document_update_save_failed", document_id=updated.id, error=str(saved.error))
            return saved
        log.info(
            "document_updated",
            idea_id=command.idea_id,
            document_type=command.document_type.value,
            previous_version=current.version,
            version=updated.version,
        )
        return saved


@dataclass(frozen=True)
class RestoreDocumentVersionCommand:
    idea_id: str
    user_id: str
    document_type: DocumentType
    version: int
    document_id: str | None = None


class RestoreDocumentVersionUseCase:
    """Copy an earlier version's content onto a new latest version."""

    def __init__(self, document_repository: DocumentRepository, idea_repository: IdeaRepository):
        self.document_repository = document_repository
        self.idea_repository = idea_repository

    async def execute(self, command: RestoreDocumentVersionCommand) -> Result[Document]:
        idea = await load_owned_idea(self.idea_repository, command.idea_id, command.user_id)
        if not idea.ok:
            return idea

        versions = await self.document_repository.find_all_versions(command.idea_id, command.document_type)
        if not versions.ok:
            return versions
        if command.document_id and not any(d.id == command.document_id for d in versions.value):
            return failure(DocumentNotFoundError(command.document_id))
        source = next((d for d in versions.value if d.version == command.version), None)
        if source is None:
            return failure(
                DocumentNotFoundError(
                    f"{command.document_type.value} version {command.version} for idea {command.idea_id}"
                )
            )

        latest = await self.document_repository.find_latest_version(command.idea_id, command.document_type)
        if not latest.ok:
            return latest
        if latest.value is None:
            return failure(DocumentNotFoundError(f"{command.document_type.value} for idea {command.idea_id}"))

        restored = latest.value.next_version(source.get_content())
        saved = await self.document_repository.save(restored)
        if not saved.ok:
            log.error("document_restore_save_failed", document_id=restored.id, error=str(saved.error))
            return saved
        log.info(
            "document_version_restored",
            idea_id=command.idea_id,
            document_type=command.document_type.value,
            restored_from=source.version,
            version=restored.version,
        )
        return saved


@dataclass(frozen=True)
class ExportReadiness:
    result: DocumentValidationResult
    message: str


class GetExportReadinessUseCase:
    def __init__(self, document_repository: DocumentRepository, idea_repository: IdeaRepository):
        self.document_repository = document_repository
        self.idea_repository = idea_repository
        self.validator = DocumentValidator()

    async def execute(self, idea_id: str, user_id: str) -> Result[ExportReadiness]:
        idea = await load_owned_idea(self.idea_repository, idea_id, user_id)
        if not idea.ok:
            return idea
        documents = await self.document_repository.find_by_idea_id(idea_id)
        if not documents.ok:
            return documents
        result = self.validator.validate(inputs_from_documents(documents.value))
        return success(ExportReadiness(result=result, message=DocumentValidator.validation_message(result)))
