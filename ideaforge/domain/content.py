"""Accepted content shapes per document type.

Analysis producers changed their payload over time, so analysis types accept
more than one shape; stored documents of every shape must keep loading.
Generated document types have exactly one canonical shape.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import InvariantViolationError


class _Shape(BaseModel):
    # Required keys must be present; their values are not constrained here.
    model_config = ConfigDict(extra="allow")


class StartupAnalysisLegacy(_Shape):
    viability: Any
    innovation: Any
    market: Any


class StartupAnalysisSummary(_Shape):
    score: Any
    feedback: Any


class HackathonAnalysisLegacy(_Shape):
    technical: Any
    creativity: Any
    impact: Any


class HackathonAnalysisSummary(_Shape):
    score: Any
    detailedSummary: Any


class HackathonCriteriaAnalysis(_Shape):
    criteriaAnalysis: Any


class HackathonCategoryAnalysis(_Shape):
    categoryAnalysis: Any


# Tried in order; the first variant that validates names the shape.
ANALYSIS_SHAPES: dict[DocumentType, list[tuple[str, type[_Shape]]]] = {
    DocumentType.STARTUP_ANALYSIS: [
        ("legacy", StartupAnalysisLegacy),
        ("summary", StartupAnalysisSummary),
    ],
    DocumentType.HACKATHON_ANALYSIS: [
        ("legacy", HackathonAnalysisLegacy),
        ("summary", HackathonAnalysisSummary),
        ("criteria", HackathonCriteriaAnalysis),
        ("category", HackathonCategoryAnalysis),
    ],
}

_SHAPE_HINTS = {
    DocumentType.STARTUP_ANALYSIS: "viability/innovation/market or score/feedback fields",
    DocumentType.HACKATHON_ANALYSIS: (
        "technical/creativity/impact, score/detailedSummary, criteriaAnalysis, or categoryAnalysis fields"
    ),
}

GENERATED_SHAPE = "generated"


def classify_content(document_type: DocumentType, content: Any) -> str:
    """Return the shape name ``content`` satisfies or raise InvariantViolationError."""
    if content is None:
        raise InvariantViolationError("Document content cannot be null")

    shapes = ANALYSIS_SHAPES.get(document_type)
    if shapes is None:
        if isinstance(content, str):
            if not content.strip():
                raise InvariantViolationError(f"{document_type.display_name} content cannot be empty")
            return GENERATED_SHAPE
        if isinstance(content, Mapping):
            return GENERATED_SHAPE
        raise InvariantViolationError(f"{document_type.display_name} content must be text or an object")

    if not isinstance(content, Mapping):
        raise InvariantViolationError(f"{document_type.display_name} content must be an object")
    for name, model in shapes:
        try:
            model.model_validate(dict(content))
        except PydanticValidationError:
            continue
        return name
    raise InvariantViolationError(
        f"{document_type.display_name} content must include {_SHAPE_HINTS[document_type]}"
    )


def extract_text(content: Any) -> str | None:
    """Text body of generated content: a raw string, else markdown/text/content key."""
    if isinstance(content, str):
        return content
    if isinstance(content, Mapping):
        for key in ("markdown", "text", "content"):
            value = content.get(key)
            if isinstance(value, str):
                return value
    return None
