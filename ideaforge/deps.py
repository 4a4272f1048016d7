"""Shared FastAPI dependencies."""

from fastapi import Depends, Request

from ideaforge.core.exceptions import ForbiddenError, UnauthorizedError
from ideaforge.core.logging import bind_user_id
from ideaforge.core.security import load_session_cookie
from ideaforge.domain.generator import AIDocumentGeneratorService
from ideaforge.domain.user import User
from ideaforge.repositories import Repositories, get_repositories
from ideaforge.services.ai_generator import OpenAIDocumentGenerator
from ideaforge.services.credits import AddCreditsUseCase, GetCreditBalanceUseCase, GetTransactionHistoryUseCase
from ideaforge.services.documents import (
    GetDocumentVersionsUseCase,
    GetExportReadinessUseCase,
    RestoreDocumentVersionUseCase,
    UpdateDocumentUseCase,
)
from ideaforge.services.export import ExportDocumentUseCase
from ideaforge.services.generation import GenerateDocumentUseCase, RegenerateDocumentUseCase

SESSION_COOKIE_NAME = "ideaforge_session"


async def get_current_user(request: Request, repos: Repositories = Depends(get_repositories)) -> User:
    """Dependency: load session from cookie and return the domain User."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_cookie(cookie)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid session")
    found = await repos.users.find_by_id(user_id)
    if not found.ok or found.value is None:
        raise UnauthorizedError("User not found")
    user = found.value
    if not user.is_active:
        raise UnauthorizedError("Account disabled")
    bind_user_id(user.id)
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency: require current user to have role admin."""
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user


def get_ai_generator() -> AIDocumentGeneratorService:
    return OpenAIDocumentGenerator()


def get_generate_use_case(
    repos: Repositories = Depends(get_repositories),
    ai: AIDocumentGeneratorService = Depends(get_ai_generator),
) -> GenerateDocumentUseCase:
    return GenerateDocumentUseCase(repos.documents, repos.ideas, repos.users, repos.transactions, ai)


def get_regenerate_use_case(
    repos: Repositories = Depends(get_repositories),
    ai: AIDocumentGeneratorService = Depends(get_ai_generator),
) -> RegenerateDocumentUseCase:
    return RegenerateDocumentUseCase(repos.documents, repos.ideas, repos.users, repos.transactions, ai)


def get_versions_use_case(repos: Repositories = Depends(get_repositories)) -> GetDocumentVersionsUseCase:
    return GetDocumentVersionsUseCase(repos.documents, repos.ideas)


def get_update_use_case(repos: Repositories = Depends(get_repositories)) -> UpdateDocumentUseCase:
    return UpdateDocumentUseCase(repos.documents)


def get_restore_use_case(repos: Repositories = Depends(get_repositories)) -> RestoreDocumentVersionUseCase:
    return RestoreDocumentVersionUseCase(repos.documents, repos.ideas)


def get_readiness_use_case(repos: Repositories = Depends(get_repositories)) -> GetExportReadinessUseCase:
    return GetExportReadinessUseCase(repos.documents, repos.ideas)


def get_export_use_case(repos: Repositories = Depends(get_repositories)) -> ExportDocumentUseCase:
    return ExportDocumentUseCase(repos.documents)


def get_balance_use_case(repos: Repositories = Depends(get_repositories)) -> GetCreditBalanceUseCase:
    return GetCreditBalanceUseCase(repos.users)


def get_add_credits_use_case(repos: Repositories = Depends(get_repositories)) -> AddCreditsUseCase:
    return AddCreditsUseCase(repos.users, repos.transactions)


def get_history_use_case(repos: Repositories = Depends(get_repositories)) -> GetTransactionHistoryUseCase:
    return GetTransactionHistoryUseCase(repos.transactions)
