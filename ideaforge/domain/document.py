"""Document entity: an analysis or generated artifact tied to one idea."""

import copy
from datetime import datetime
from typing import Any

from ideaforge.domain.content import classify_content
from ideaforge.domain.document_types import DocumentType
from ideaforge.domain.errors import InvariantViolationError
from ideaforge.domain.user import new_id, utcnow

MAX_TITLE_LENGTH = 500


class Document:
    """Content is validated on construction and handed out as deep copies.

    ``idea_id``, ``user_id`` and ``document_type`` never change; a new
    version is a new Document (see ``next_version``).
    """

    def __init__(
        self,
        id: str,
        idea_id: str,
        user_id: str,
        document_type: DocumentType,
        title: str | None,
        content: Any,
        version: int,
        created_at: datetime,
        updated_at: datetime,
    ):
        self._id = id
        self._idea_id = idea_id
        self._user_id = user_id
        self._document_type = DocumentType(document_type)
        self._title = title
        self._content = copy.deepcopy(content)
        self._version = version
        self._created_at = created_at
        self._updated_at = updated_at
        self._content_shape = self._validate()

    @classmethod
    def create(
        cls,
        idea_id: str,
        user_id: str,
        document_type: DocumentType,
        content: Any,
        title: str | None = None,
        version: int = 1,
    ) -> "Document":
        now = utcnow()
        return cls(
            id=new_id(),
            idea_id=idea_id,
            user_id=user_id,
            document_type=document_type,
            title=title or None,
            content=content,
            version=version,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(cls, **props: Any) -> "Document":
        return cls(**props)

    def _validate(self) -> str:
        if self._title is not None and len(self._title) > MAX_TITLE_LENGTH:
            raise InvariantViolationError(f"Document title cannot exceed {MAX_TITLE_LENGTH} characters")
        if isinstance(self._version, bool) or not isinstance(self._version, int) or self._version < 1:
            raise InvariantViolationError("Document version must be a positive integer")
        return classify_content(self._document_type, self._content)

    def next_version(self, content: Any, title: str | None = None) -> "Document":
        """New document carrying the next version number; this one is untouched."""
        return Document.create(
            idea_id=self._idea_id,
            user_id=self._user_id,
            document_type=self._document_type,
            content=content,
            title=title if title is not None else self._title,
            version=self._version + 1,
        )

    def get_content(self) -> Any:
        return copy.deepcopy(self._content)

    @property
    def content(self) -> Any:
        return self.get_content()

    @property
    def content_shape(self) -> str:
        return self._content_shape

    def belongs_to_user(self, user_id: str) -> bool:
        return self._user_id == user_id

    def belongs_to_idea(self, idea_id: str) -> bool:
        return self._idea_id == idea_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def idea_id(self) -> str:
        return self._idea_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def document_type(self) -> DocumentType:
        return self._document_type

    @property
    def title(self) -> str | None:
        return self._title

    @property
    def version(self) -> int:
        return self._version

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def summary(self) -> str:
        title = f": {self._title}" if self._title else ""
        return f"{self._document_type.display_name}{title} (v{self._version})"

    def __repr__(self) -> str:
        return (
            f"Document(id={self._id!r}, type={self._document_type.value!r}, "
            f"idea_id={self._idea_id!r}, version={self._version})"
        )
