"""Domain error taxonomy.

Every error carries a machine-readable ``code``; the HTTP layer maps codes
to status codes (see ``ideaforge.core.exceptions``).
"""


class DomainError(Exception):
    """Base class for all domain errors."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(DomainError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, validation_errors: list[str] | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []


class BusinessRuleViolationError(DomainError):
    code = "BUSINESS_RULE_VIOLATION"


class InvariantViolationError(DomainError):
    code = "INVARIANT_VIOLATION"


class EntityNotFoundError(DomainError):
    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, identifier: str):
        super().__init__(f"{entity_type} with identifier '{identifier}' was not found")
        self.entity_type = entity_type
        self.identifier = identifier


class IdeaNotFoundError(EntityNotFoundError):
    code = "IDEA_NOT_FOUND"

    def __init__(self, idea_id: str):
        super().__init__("Idea", idea_id)


class DocumentNotFoundError(EntityNotFoundError):
    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        super().__init__("Document", document_id)


class DuplicateEntityError(DomainError):
    code = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, identifier: str):
        super().__init__(f"{entity_type} with identifier '{identifier}' already exists")


class AuthorizationError(DomainError):
    code = "AUTHORIZATION_ERROR"


class UnauthorizedAccessError(AuthorizationError):
    code = "UNAUTHORIZED_ACCESS"

    def __init__(self, user_id: str, resource_id: str):
        super().__init__(f"User {user_id} is not authorized to access resource {resource_id}")
        self.user_id = user_id
        self.resource_id = resource_id


class InsufficientCreditsError(DomainError):
    code = "INSUFFICIENT_CREDITS"

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} has insufficient credits to perform this action.")
        self.user_id = user_id


class ConcurrentUpdateError(DomainError):
    """A conditional balance write lost a race with another writer."""

    code = "CONCURRENT_UPDATE"

    def __init__(self, user_id: str, expected: int):
        super().__init__(f"Credit balance for user {user_id} changed concurrently (expected {expected})")
        self.user_id = user_id
        self.expected = expected


class DatabaseError(DomainError):
    code = "DATABASE_ERROR"
