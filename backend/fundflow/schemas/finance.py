"""
FundFlow Backend — Finance Schemas
====================================

What:  Transaction payloads, ledger views and history rows.

Amounts on input are Decimal (JSON numbers or numeric strings). The
transaction amount is never accepted from clients; it is derived from the
items.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from fundflow.models.finance import TransactionType
from fundflow.schemas.approval import StatusApproveResponse
from fundflow.schemas.auth import UserSummary
from fundflow.schemas.common import CamelModel, Money


class TransactionItemIn(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    quantity: Decimal = Field(default=Decimal("1"), gt=0, decimal_places=2)
    price: Decimal = Field(ge=0, decimal_places=2)


class TransactionFileIn(CamelModel):
    url: str = Field(min_length=1, max_length=500)
    public_id: Optional[str] = None
    file_name: Optional[str] = None


class TransactionCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: TransactionType = TransactionType.EXPENSE
    items: List[TransactionItemIn] = Field(min_length=1)
    files: List[TransactionFileIn] = Field(default_factory=list)


class TransactionUpdate(CamelModel):
    """
    Partial update. `items` and `files`, when present, replace the existing
    collections entirely; an empty `items` list is rejected.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[TransactionType] = None
    items: Optional[List[TransactionItemIn]] = None
    files: Optional[List[TransactionFileIn]] = None

    @field_validator("items")
    @classmethod
    def items_not_empty(cls, v: Optional[List[TransactionItemIn]]) -> Optional[List[TransactionItemIn]]:
        if v is not None and len(v) == 0:
            raise ValueError("A transaction needs at least one item")
        return v


class TransactionApprove(CamelModel):
    status_approve_id: int


class TransactionFilters(CamelModel):
    owner_id: Optional[str] = None
    status_approve_id: Optional[int] = None
    type: Optional[TransactionType] = None
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class TransactionItemResponse(CamelModel):
    id: str
    name: str
    quantity: Money
    price: Money
    total: Money


class TransactionFileResponse(CamelModel):
    id: str
    url: str
    public_id: Optional[str] = None
    file_name: Optional[str] = None


class HistoryNetAmountResponse(CamelModel):
    id: int
    net_amount_id: int
    amount: Money
    change: Money
    action: str
    transaction_id: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime


class TransactionResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    type: str
    amount: Money
    owner_id: str
    owner: Optional[UserSummary] = None
    approver_id: Optional[str] = None
    approver: Optional[UserSummary] = None
    approved_at: Optional[datetime] = None
    status_approve_id: int
    status_approve: Optional[StatusApproveResponse] = None
    history_net_amount_id: Optional[int] = None
    history_net_amount: Optional[HistoryNetAmountResponse] = None
    items: List[TransactionItemResponse] = Field(default_factory=list)
    files: List[TransactionFileResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class NetAmountResponse(CamelModel):
    id: int
    amount: Money
    updated_at: datetime


class NetAmountAdjust(CamelModel):
    amount: Decimal
    note: Optional[str] = Field(default=None, max_length=500)
