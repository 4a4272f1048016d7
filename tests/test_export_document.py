from datetime import datetime, timezone

import pytest

from conftest import seed_document, seed_idea, seed_user
from ideaforge.domain.document import Document
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import DocumentNotFoundError, UnauthorizedAccessError, ValidationError
from ideaforge.domain.user import utcnow
from ideaforge.services.export import ExportDocumentCommand, ExportDocumentUseCase, render_export


def test_markdown_layout_and_filename():
    doc = Document.create(
        idea_id="i1",
        user_id="u1",
        document_type=DocumentType.PRD,
        content={"markdown": "# Product\n\nBody"},
        title="My PRD: Draft #1",
        version=3,
    )
    exported_at = datetime(2025, 3, 9, 12, 30, tzinfo=timezone.utc)

    result = render_export(doc, "markdown", exported_at)

    assert result.content == (
        "---\n"
        "title: My PRD: Draft #1\n"
        "type: PRD\n"
        "version: 3\n"
        "exported: 2025-03-09T12:30:00+00:00\n"
        "---\n"
        "\n"
        "# Product\n\nBody"
    )
    assert result.filename == "my_prd__draft__1_v3_2025-03-09.md"
    assert result.mime_type == "text/markdown"
    assert result.metadata.document_type == "PRD"


def test_untitled_structured_content_falls_back_to_json():
    doc = Document.create(
        idea_id="i1", user_id="u1", document_type=DocumentType.ROADMAP, content={"milestones": ["MVP"]}
    )
    exported_at = datetime(2025, 1, 2, tzinfo=timezone.utc)

    result = render_export(doc, "pdf", exported_at)

    assert result.metadata.title == "Roadmap"
    assert result.filename == "roadmap_v1_2025-01-02.pdf"
    assert result.mime_type == "application/pdf"
    assert result.content.endswith('{\n  "milestones": [\n    "MVP"\n  ]\n}')


@pytest.mark.asyncio
async def test_export_checks_ownership(repos):
    owner = await seed_user(repos)
    other = await seed_user(repos, role="other")
    idea = await seed_idea(repos, owner)
    doc = await seed_document(repos, idea, DocumentType.PRD, "# PRD")
    use_case = ExportDocumentUseCase(repos.documents)

    mine = await use_case.execute(ExportDocumentCommand(document_id=doc.id, user_id=owner.id))
    theirs = await use_case.execute(ExportDocumentCommand(document_id=doc.id, user_id=other.id))
    missing = await use_case.execute(ExportDocumentCommand(document_id="nope", user_id=owner.id))

    assert mine.ok
    assert mine.value.content.endswith("\n\n# PRD")
    assert mine.value.filename.endswith(f"_v1_{utcnow().date().isoformat()}.md")
    assert isinstance(theirs.error, UnauthorizedAccessError)
    assert isinstance(missing.error, DocumentNotFoundError)


@pytest.mark.asyncio
async def test_unsupported_format(repos):
    result = await ExportDocumentUseCase(repos.documents).execute(
        ExportDocumentCommand(document_id="any", user_id="u1", format="docx")
    )
    assert isinstance(result.error, ValidationError)
