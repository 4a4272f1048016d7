"""Readiness check for the project setup export.

The export bundles four documents (PRD, design, tech architecture and
roadmap); each must exist and carry non-blank content.
"""

from dataclasses import dataclass, field

from ideaforge.domain.content import extract_text
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType

PRD = "prd"
DESIGN = "design"
TECH_ARCHITECTURE = "techArchitecture"
ROADMAP = "roadmap"

REQUIRED_DOCUMENT_KINDS = (PRD, DESIGN, TECH_ARCHITECTURE, ROADMAP)

DISPLAY_NAMES = {
    PRD: "PRD",
    DESIGN: "Design Document",
    TECH_ARCHITECTURE: "Tech Architecture",
    ROADMAP: "Roadmap",
}

# Stored document type backing each export slot.
KIND_FOR_TYPE = {
    DocumentType.PRD: PRD,
    DocumentType.TECHNICAL_DESIGN: DESIGN,
    DocumentType.ARCHITECTURE: TECH_ARCHITECTURE,
    DocumentType.ROADMAP: ROADMAP,
}


@dataclass(frozen=True)
class DocumentInput:
    kind: str
    content: str | None
    exists: bool = True


@dataclass
class DocumentValidationResult:
    is_valid: bool
    missing_documents: list[str] = field(default_factory=list)
    empty_documents: list[str] = field(default_factory=list)


def _has_content(content: str | None) -> bool:
    return content is not None and bool(content.strip())


def inputs_from_documents(documents: list[Document]) -> dict[str, DocumentInput]:
    """Map stored documents onto export slots; the highest version of each type wins."""
    latest: dict[str, Document] = {}
    for doc in documents:
        kind = KIND_FOR_TYPE.get(doc.document_type)
        if kind is None:
            continue
        current = latest.get(kind)
        if current is None or (doc.version, doc.created_at) > (current.version, current.created_at):
            latest[kind] = doc
    return {
        kind: DocumentInput(kind=kind, content=extract_text(doc.get_content()), exists=True)
        for kind, doc in latest.items()
    }


class DocumentValidator:
    def validate(self, documents: dict[str, DocumentInput | None]) -> DocumentValidationResult:
        missing: list[str] = []
        empty: list[str] = []
        for kind in REQUIRED_DOCUMENT_KINDS:
            doc = documents.get(kind)
            if doc is None or not doc.exists:
                missing.append(kind)
            elif not _has_content(doc.content):
                empty.append(kind)
        return DocumentValidationResult(
            is_valid=not missing and not empty,
            missing_documents=missing,
            empty_documents=empty,
        )

    @staticmethod
    def display_name(kind: str) -> str:
        return DISPLAY_NAMES[kind]

    @staticmethod
    def validation_message(result: DocumentValidationResult) -> str:
        if result.is_valid:
            return "All required documents are available"
        issues = []
        if result.missing_documents:
            issues.append("Missing: " + ", ".join(DISPLAY_NAMES[k] for k in result.missing_documents))
        if result.empty_documents:
            issues.append("Empty: " + ", ".join(DISPLAY_NAMES[k] for k in result.empty_documents))
        return ". ".join(issues)
