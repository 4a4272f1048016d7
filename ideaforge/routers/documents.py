from typing import Any

from fastapi import APIRouter, Depends, Path, Query, Response, status
from pydantic import BaseModel, Field

from ideaforge.core.exceptions import raise_for_failure
from ideaforge.deps import (
    get_current_user,
    get_export_use_case,
    get_generate_use_case,
    get_readiness_use_case,
    get_regenerate_use_case,
    get_restore_use_case,
    get_update_use_case,
    get_versions_use_case,
)
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.user import User
from ideaforge.services.documents import (
    GetDocumentVersionsUseCase,
    GetExportReadinessUseCase,
    RestoreDocumentVersionCommand,
    RestoreDocumentVersionUseCase,
    UpdateDocumentCommand,
    UpdateDocumentUseCase,
)
from ideaforge.services.export import ExportDocumentCommand, ExportDocumentUseCase
from ideaforge.services.generation import (
    GenerateDocumentCommand,
    GenerateDocumentUseCase,
    RegenerateDocumentCommand,
    RegenerateDocumentUseCase,
)

router = APIRouter()


class GenerateDocumentRequest(BaseModel):
    document_type: str = Field(alias="documentType")


class RegenerateDocumentRequest(BaseModel):
    document_id: str | None = Field(default=None, alias="documentId")


class UpdateDocumentRequest(BaseModel):
    content: Any
    title: str | None = None
    document_id: str | None = Field(default=None, alias="documentId")


class RestoreVersionRequest(BaseModel):
    document_id: str | None = Field(default=None, alias="documentId")


def document_out(doc: Document) -> dict[str, Any]:
    return {
        "id": doc.id,
        "idea_id": doc.idea_id,
        "document_type": doc.document_type.value,
        "title": doc.title,
        "content": doc.get_content(),
        "version": doc.version,
        "created_at": doc.created_at.isoformat(),
        "updated_at": doc.updated_at.isoformat(),
    }


@router.post("/ideas/{idea_id}/documents", status_code=status.HTTP_201_CREATED)
async def generate_document(
    idea_id: str,
    body: GenerateDocumentRequest,
    user: User = Depends(get_current_user),
    use_case: GenerateDocumentUseCase = Depends(get_generate_use_case),
):
    """Generate a document for an idea; charges the type's credit cost."""
    command = GenerateDocumentCommand(
        idea_id=idea_id,
        user_id=user.id,
        document_type=DocumentType.from_string(body.document_type),
    )
    result = await use_case.execute(command)
    if not result.ok:
        raise_for_failure(result.error)
    return document_out(result.value)


@router.post("/ideas/{idea_id}/documents/{document_type}/regenerate", status_code=status.HTTP_201_CREATED)
async def regenerate_document(
    idea_id: str,
    document_type: str,
    body: RegenerateDocumentRequest | None = None,
    user: User = Depends(get_current_user),
    use_case: RegenerateDocumentUseCase = Depends(get_regenerate_use_case),
):
    """Generate the next version of the latest document of this type."""
    command = RegenerateDocumentCommand(
        idea_id=idea_id,
        user_id=user.id,
        document_type=DocumentType.from_string(document_type),
        document_id=body.document_id if body else None,
    )
    result = await use_case.execute(command)
    if not result.ok:
        raise_for_failure(result.error)
    return document_out(result.value)


@router.get("/ideas/{idea_id}/documents/{document_type}/versions")
async def document_versions(
    idea_id: str,
    document_type: str,
    user: User = Depends(get_current_user),
    use_case: GetDocumentVersionsUseCase = Depends(get_versions_use_case),
):
    result = await use_case.execute(idea_id, user.id, DocumentType.from_string(document_type))
    if not result.ok:
        raise_for_failure(result.error)
    return {"versions": [document_out(d) for d in result.value]}


@router.put("/ideas/{idea_id}/documents/{document_type}")
async def update_document(
    idea_id: str,
    document_type: str,
    body: UpdateDocumentRequest,
    user: User = Depends(get_current_user),
    use_case: UpdateDocumentUseCase = Depends(get_update_use_case),
):
    """Save edited content as a new version; free of charge."""
    command = UpdateDocumentCommand(
        idea_id=idea_id,
        user_id=user.id,
        document_type=DocumentType.from_string(document_type),
        content=body.content,
        title=body.title,
        document_id=body.document_id,
    )
    result = await use_case.execute(command)
    if not result.ok:
        raise_for_failure(result.error)
    return document_out(result.value)


@router.post(
    "/ideas/{idea_id}/documents/{document_type}/versions/{version}/restore",
    status_code=status.HTTP_201_CREATED,
)
async def restore_document_version(
    idea_id: str,
    document_type: str,
    version: int = Path(ge=1),
    body: RestoreVersionRequest | None = None,
    user: User = Depends(get_current_user),
    use_case: RestoreDocumentVersionUseCase = Depends(get_restore_use_case),
):
    command = RestoreDocumentVersionCommand(
        idea_id=idea_id,
        user_id=user.id,
        document_type=DocumentType.from_string(document_type),
        version=version,
        document_id=body.document_id if body else None,
    )
    result = await use_case.execute(command)
    if not result.ok:
        raise_for_failure(result.error)
    return document_out(result.value)


@router.get("/ideas/{idea_id}/export-readiness")
async def export_readiness(
    idea_id: str,
    user: User = Depends(get_current_user),
    use_case: GetExportReadinessUseCase = Depends(get_readiness_use_case),
):
    """Whether every document the setup export needs exists and has content."""
    result = await use_case.execute(idea_id, user.id)
    if not result.ok:
        raise_for_failure(result.error)
    readiness = result.value
    return {
        "is_valid": readiness.result.is_valid,
        "missing_documents": readiness.result.missing_documents,
        "empty_documents": readiness.result.empty_documents,
        "message": readiness.message,
    }


@router.get("/documents/{document_id}/export")
async def export_document(
    document_id: str,
    export_format: str = Query("markdown", alias="format"),
    user: User = Depends(get_current_user),
    use_case: ExportDocumentUseCase = Depends(get_export_use_case),
):
    result = await use_case.execute(
        ExportDocumentCommand(document_id=document_id, user_id=user.id, format=export_format)
    )
    if not result.ok:
        raise_for_failure(result.error)
    exported = result.value
    return Response(
        content=exported.content,
        media_type=exported.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
