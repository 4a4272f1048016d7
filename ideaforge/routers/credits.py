from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ideaforge.core.exceptions import BadRequestError, raise_for_failure
from ideaforge.core.pagination import DEFAULT_LIMIT, MAX_LIMIT, Page
from ideaforge.deps import (
    get_add_credits_use_case,
    get_balance_use_case,
    get_current_user,
    get_history_use_case,
    require_admin,
)
from ideaforge.domain.credit_transaction import CreditTransaction, TransactionType
from ideaforge.domain.user import User
from ideaforge.services.credits import (
    AddCreditsCommand,
    AddCreditsUseCase,
    GetCreditBalanceUseCase,
    GetTransactionHistoryUseCase,
)

router = APIRouter()

GRANT_TYPES = (TransactionType.ADD, TransactionType.REFUND, TransactionType.ADMIN_ADJUSTMENT)


class AdminAddCreditsRequest(BaseModel):
    user_id: str
    amount: int = Field(gt=0)
    type: str = TransactionType.ADMIN_ADJUSTMENT.value
    description: str = Field(default="Admin credit adjustment", min_length=1, max_length=500)


def transaction_out(t: CreditTransaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "amount": t.amount,
        "type": t.type.value,
        "description": t.description,
        "metadata": t.metadata,
        "timestamp": t.timestamp.isoformat(),
    }


@router.get("/balance")
async def credits_balance(
    user: User = Depends(get_current_user),
    use_case: GetCreditBalanceUseCase = Depends(get_balance_use_case),
):
    """Return current credit balance."""
    result = await use_case.execute(user.id)
    if not result.ok:
        raise_for_failure(result.error)
    return {"credits": result.value.credits, "tier": result.value.tier}


@router.get("/ledger")
async def credits_ledger(
    user: User = Depends(get_current_user),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    use_case: GetTransactionHistoryUseCase = Depends(get_history_use_case),
):
    """Return ledger entries for current user (newest first)."""
    result = await use_case.execute(user.id, limit=limit, offset=offset)
    if not result.ok:
        raise_for_failure(result.error)
    return Page[dict[str, Any]].from_slice([transaction_out(t) for t in result.value], limit=limit, offset=offset)


@router.post("/admin/add")
async def admin_add_credits(
    body: AdminAddCreditsRequest,
    admin: User = Depends(require_admin),
    use_case: AddCreditsUseCase = Depends(get_add_credits_use_case),
):
    """Grant credits to any user (admin only)."""
    try:
        tx_type = TransactionType(body.type)
    except ValueError:
        raise BadRequestError(f"Invalid transaction type: {body.type}")
    if tx_type not in GRANT_TYPES:
        raise BadRequestError(f"Invalid transaction type: {body.type}")
    result = await use_case.execute(
        AddCreditsCommand(
            user_id=body.user_id,
            amount=body.amount,
            type=tx_type,
            description=body.description,
            metadata={"grantedBy": admin.id},
        )
    )
    if not result.ok:
        raise_for_failure(result.error)
    return {"user_id": result.value.id, "credits": result.value.credits}
