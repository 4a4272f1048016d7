"""OpenAI-backed document generator."""

from typing import Any

import orjson
from openai import AsyncOpenAI, OpenAIError

from ideaforge.core.config import get_settings
from ideaforge.core.logging import get_logger
from ideaforge.core.result import Result, failure, success
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.generator import AIDocumentGeneratorService, GenerationContext

log = get_logger(__name__)

SYSTEM_PROMPT = (
    "You write software project documents in Markdown. "
    "Use the idea and any existing documents supplied as JSON context."
)


class OpenAIDocumentGenerator(AIDocumentGeneratorService):
    def __init__(self, client: AsyncOpenAI | None = None, model: str | None = None):
        settings = get_settings()
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key or None)
        self.model = model or settings.openai_model

    def _messages(self, document_type: DocumentType, context: GenerationContext) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Write the {document_type.display_name} for this idea.\n\n"
                    + orjson.dumps(context.to_dict(), option=orjson.OPT_INDENT_2).decode()
                ),
            },
        ]

    async def generate_document(self, document_type: DocumentType, context: GenerationContext) -> Result[Any]:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(document_type, context),
            )
        except OpenAIError as e:
            log.error("ai_generation_request_failed", document_type=document_type.value, error=str(e))
            return failure(e)

        text = (resp.choices[0].message.content or "") if resp.choices else ""
        if not text.strip():
            return failure(RuntimeError(f"Empty {document_type.display_name} returned by the model"))
        usage = getattr(resp, "usage", None)
        log.info(
            "ai_generation_completed",
            document_type=document_type.value,
            model=self.model,
            total_tokens=getattr(usage, "total_tokens", None),
        )
        return success({"markdown": text})
