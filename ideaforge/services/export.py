"""Single-document export (Markdown, PDF placeholder)."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import orjson

from ideaforge.core.logging import get_logger
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.content import extract_text
from ideaforge.domain.document import Document
from ideaforge.domain.errors import DocumentNotFoundError, UnauthorizedAccessError, ValidationError
from ideaforge.domain.repositories import DocumentRepository
from ideaforge.domain.user import utcnow

log = get_logger(__name__)

EXPORT_FORMATS = ("markdown", "pdf")

_MIME_TYPES = {"markdown": "text/markdown", "pdf": "application/pdf"}
_EXTENSIONS = {"markdown": "md", "pdf": "pdf"}


@dataclass(frozen=True)
class ExportDocumentCommand:
    document_id: str
    user_id: str
    format: str = "markdown"


@dataclass(frozen=True)
class ExportMetadata:
    title: str
    version: int
    export_date: str
    document_type: str


@dataclass(frozen=True)
class ExportResult:
    content: str
    filename: str
    mime_type: str
    metadata: ExportMetadata


def _body(content: Any) -> str:
    text = extract_text(content)
    if text is not None:
        return text
    return orjson.dumps(content, option=orjson.OPT_INDENT_2).decode()


def _header(metadata: ExportMetadata) -> str:
    return (
        "---\n"
        f"title: {metadata.title}\n"
        f"type: {metadata.document_type}\n"
        f"version: {metadata.version}\n"
        f"exported: {metadata.export_date}\n"
        "---"
    )


def export_filename(document: Document, extension: str, exported_at: datetime) -> str:
    title = re.sub(r"[^a-z0-9]", "_", document.title or document.document_type.value, flags=re.IGNORECASE)
    return f"{title.lower()}_v{document.version}_{exported_at.date().isoformat()}.{extension}"


def render_export(document: Document, fmt: str, exported_at: datetime | None = None) -> ExportResult:
    exported_at = exported_at or utcnow()
    metadata = ExportMetadata(
        title=document.title or document.document_type.display_name,
        version=document.version,
        export_date=exported_at.isoformat(),
        document_type=document.document_type.display_name,
    )
    return ExportResult(
        content=f"{_header(metadata)}\n\n{_body(document.get_content())}",
        filename=export_filename(document, _EXTENSIONS[fmt], exported_at),
        mime_type=_MIME_TYPES[fmt],
        metadata=metadata,
    )


class ExportDocumentUseCase:
    def __init__(self, document_repository: DocumentRepository):
        self.document_repository = document_repository

    async def execute(self, command: ExportDocumentCommand) -> Result[ExportResult]:
        log.info(
            "document_export_started",
            document_id=command.document_id,
            format=command.format,
            user_id=command.user_id,
        )
        if command.format not in EXPORT_FORMATS:
            return failure(
                ValidationError(
                    f"Unsupported export format: {command.format}",
                    [f"format must be one of: {', '.join(EXPORT_FORMATS)}"],
                )
            )

        found = await self.document_repository.find_by_id(command.document_id, command.user_id)
        if not found.ok:
            return found
        document = found.value
        if document is None:
            return failure(DocumentNotFoundError(command.document_id))
        if not document.belongs_to_user(command.user_id):
            return failure(UnauthorizedAccessError(command.user_id, command.document_id))

        if command.format == "pdf":
            # Rendered PDF is not produced yet; the Markdown body ships under a PDF name.
            log.warning("pdf_export_placeholder", document_id=document.id)

        try:
            result = render_export(document, command.format)
        except orjson.JSONEncodeError as e:
            log.error("document_export_failed", document_id=document.id, error=str(e))
            return failure(e)

        log.info("document_exported", document_id=document.id, format=command.format, filename=result.filename)
        return success(result)
