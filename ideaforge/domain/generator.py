"""Contract for the external AI generation step."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ideaforge.core.result import Result
from ideaforge.domain.document_types import DocumentType


@dataclass(frozen=True)
class GenerationContext:
    idea_text: str
    analysis_scores: dict[str, float] | None = None
    analysis_feedback: str | None = None
    existing_prd: str = ""
    existing_technical_design: str = ""
    existing_architecture: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ideaText": self.idea_text}
        if self.analysis_scores is not None:
            out["analysisScores"] = dict(self.analysis_scores)
        if self.analysis_feedback is not None:
            out["analysisFeedback"] = self.analysis_feedback
        if self.existing_prd:
            out["existingPRD"] = self.existing_prd
        if self.existing_technical_design:
            out["existingTechnicalDesign"] = self.existing_technical_design
        if self.existing_architecture:
            out["existingArchitecture"] = self.existing_architecture
        return out


class AIDocumentGeneratorService(ABC):
    @abstractmethod
    async def generate_document(self, document_type: DocumentType, context: GenerationContext) -> Result[Any]:
        """Produce content for ``document_type`` or a Failure. Treated as opaque."""
        ...
