"""Document types and their static per-type configuration."""

from dataclasses import dataclass
from enum import Enum

from ideaforge.domain.errors import ValidationError


class DocumentType(str, Enum):
    STARTUP_ANALYSIS = "startup_analysis"
    HACKATHON_ANALYSIS = "hackathon_analysis"
    PRD = "prd"
    TECHNICAL_DESIGN = "technical_design"
    ARCHITECTURE = "architecture"
    ROADMAP = "roadmap"

    @classmethod
    def from_string(cls, value: str) -> "DocumentType":
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValidationError(f"Invalid document type: {value}. Must be one of: {allowed}.") from None

    @property
    def is_analysis(self) -> bool:
        return self in (DocumentType.STARTUP_ANALYSIS, DocumentType.HACKATHON_ANALYSIS)

    @property
    def config(self) -> "DocumentTypeConfig":
        return DOCUMENT_TYPE_CONFIGS[self]

    @property
    def display_name(self) -> str:
        return self.config.display_name

    @property
    def credit_cost(self) -> int:
        return self.config.credit_cost


@dataclass(frozen=True)
class DocumentTypeConfig:
    display_name: str
    credit_cost: int


# Static price list; settings never override it.
DOCUMENT_TYPE_CONFIGS: dict[DocumentType, DocumentTypeConfig] = {
    DocumentType.STARTUP_ANALYSIS: DocumentTypeConfig("Startup Analysis", 0),
    DocumentType.HACKATHON_ANALYSIS: DocumentTypeConfig("Hackathon Analysis", 0),
    DocumentType.PRD: DocumentTypeConfig("PRD", 50),
    DocumentType.TECHNICAL_DESIGN: DocumentTypeConfig("Technical Design", 75),
    DocumentType.ARCHITECTURE: DocumentTypeConfig("Architecture", 75),
    DocumentType.ROADMAP: DocumentTypeConfig("Roadmap", 50),
}
