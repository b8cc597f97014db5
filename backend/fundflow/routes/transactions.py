"""
FundFlow Backend — Transaction & Ledger Routes
================================================

Route Inventory (bearer-protected):
    GET    /api/transactions                 paginated, filterable list
    POST   /api/transactions                 create (balance moves)
    GET    /api/transactions/{id}
    PUT    /api/transactions/{id}            owner or admin (balance moves)
    DELETE /api/transactions/{id}            owner or admin (balance restored)
    PATCH  /api/transactions/{id}/approve    admin only
    GET    /api/net-amount                   current balance
    PUT    /api/net-amount                   admin: set an absolute balance
    GET    /api/history                      balance snapshots, newest first

Every mutating call runs in the request's single database transaction, so
the transaction row, the balance and the history snapshot commit together.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import get_db_session
from fundflow.models.finance import TransactionType
from fundflow.models.user import User
from fundflow.pagination import PageParams, page_params
from fundflow.schemas.common import ApiResponse, ErrorResponse, MessageResponse, PaginatedResponse
from fundflow.schemas.finance import (
    HistoryNetAmountResponse,
    NetAmountAdjust,
    NetAmountResponse,
    TransactionApprove,
    TransactionCreate,
    TransactionFilters,
    TransactionResponse,
    TransactionUpdate,
)
from fundflow.security import get_current_user, require_admin
from fundflow.services.ledger_service import ledger_service
from fundflow.services.transaction_service import transaction_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Transactions"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)

_write_errors = {
    403: {"description": "Not the owner and not an admin", "model": ErrorResponse},
    404: {"description": "Transaction not found", "model": ErrorResponse},
}


@router.get(
    "/transactions",
    response_model=PaginatedResponse[TransactionResponse],
    summary="List transactions",
)
async def list_transactions(
    page: PageParams = Depends(page_params),
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    status_approve_id: Optional[int] = Query(default=None, alias="statusApproveId"),
    type: Optional[TransactionType] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=200),
    date_from: Optional[date] = Query(default=None, alias="dateFrom"),
    date_to: Optional[date] = Query(default=None, alias="dateTo"),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[TransactionResponse]:
    filters = TransactionFilters(
        owner_id=owner_id,
        status_approve_id=status_approve_id,
        type=type,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    transactions, pagination = await transaction_service.list_transactions(db, page, filters)
    return PaginatedResponse(
        data=[TransactionResponse.model_validate(t) for t in transactions],
        pagination=pagination,
    )


@router.post(
    "/transactions",
    status_code=201,
    response_model=ApiResponse[TransactionResponse],
    responses={400: {"description": "Invalid items", "model": ErrorResponse}},
    summary="Create a transaction",
)
async def create_transaction(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransactionResponse]:
    transaction = await transaction_service.create(db, user, payload)
    return ApiResponse(
        message="Transaction created",
        data=TransactionResponse.model_validate(transaction),
    )


@router.get(
    "/transactions/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    responses={404: {"description": "Transaction not found", "model": ErrorResponse}},
    summary="Get a transaction",
)
async def get_transaction(
    transaction_id: str,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransactionResponse]:
    transaction = await transaction_service.get(db, transaction_id)
    return ApiResponse(data=TransactionResponse.model_validate(transaction))


@router.put(
    "/transactions/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    responses=_write_errors,
    summary="Edit a transaction",
)
async def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransactionResponse]:
    transaction = await transaction_service.update(db, user, transaction_id, payload)
    return ApiResponse(
        message="Transaction updated",
        data=TransactionResponse.model_validate(transaction),
    )


@router.delete(
    "/transactions/{transaction_id}",
    response_model=MessageResponse,
    responses=_write_errors,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await transaction_service.delete(db, user, transaction_id)
    return MessageResponse(message="Transaction deleted")


@router.patch(
    "/transactions/{transaction_id}/approve",
    response_model=ApiResponse[TransactionResponse],
    responses={
        403: {"description": "Admin role required", "model": ErrorResponse},
        404: {"description": "Transaction or status not found", "model": ErrorResponse},
    },
    summary="Approve or reject a transaction",
)
async def approve_transaction(
    transaction_id: str,
    payload: TransactionApprove,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransactionResponse]:
    transaction = await transaction_service.approve(db, admin, transaction_id, payload.status_approve_id)
    return ApiResponse(
        message="Transaction status updated",
        data=TransactionResponse.model_validate(transaction),
    )


# ── Ledger ────────────────────────────────────────────────────────────────

@router.get("/net-amount", response_model=ApiResponse[NetAmountResponse], summary="Current balance")
async def get_net_amount(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NetAmountResponse]:
    net_amount = await ledger_service.get_net_amount(db)
    return ApiResponse(data=NetAmountResponse.model_validate(net_amount))


@router.put(
    "/net-amount",
    response_model=ApiResponse[HistoryNetAmountResponse],
    responses={403: {"description": "Admin role required", "model": ErrorResponse}},
    summary="Set the balance (admin)",
    description="Records the difference as an ADJUST history row.",
)
async def adjust_net_amount(
    payload: NetAmountAdjust,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[HistoryNetAmountResponse]:
    snapshot = await ledger_service.set_balance(db, payload.amount, note=payload.note)
    logger.info("Net amount set to %s by %s", snapshot.amount, admin.id)
    return ApiResponse(
        message="Net amount updated",
        data=HistoryNetAmountResponse.model_validate(snapshot),
    )


@router.get(
    "/history",
    response_model=PaginatedResponse[HistoryNetAmountResponse],
    summary="Balance history",
)
async def list_history(
    page: PageParams = Depends(page_params),
    transaction_id: Optional[str] = Query(default=None, alias="transactionId"),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[HistoryNetAmountResponse]:
    rows, pagination = await ledger_service.list_history(db, page, transaction_id)
    return PaginatedResponse(
        data=[HistoryNetAmountResponse.model_validate(r) for r in rows],
        pagination=pagination,
    )
