"""
FundFlow Backend — Finance SQLAlchemy Models
==============================================

What:  Expense transactions with their line items and attachments, plus the
       two ledger tables that track the organizational balance.

Ledger tables:
    net_amounts           — a single mutable row holding the current balance
    history_net_amounts   — append-only snapshots; one row per balance change,
                            storing the balance AFTER the change and the
                            signed delta that produced it

    Every create/update/delete of a Transaction writes exactly one
    history_net_amounts row and sets net_amounts.amount to that row's amount,
    in the same database transaction (see LedgerService.apply_change).

    transactions.history_net_amount_id points at the snapshot written by the
    most recent balance change caused by that transaction. The snapshot keeps
    a plain transaction_id copy (no FK) so it survives the transaction's
    deletion.
"""

import enum
import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundflow.database import Base, utcnow
from fundflow.models.approval import STATUS_PENDING, StatusApprove
from fundflow.models.user import User

MONEY = Numeric(14, 2)
CENT = Decimal("0.01")


class TransactionType(str, enum.Enum):
    """EXPENSE lowers the net amount, INCOME raises it."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class LedgerAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ADJUST = "ADJUST"


def _new_id() -> str:
    return str(uuid.uuid4())


class NetAmount(Base):
    __tablename__ = "net_amounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<NetAmount(id={self.id}, amount={self.amount})>"


class HistoryNetAmount(Base):
    """Immutable snapshot of the balance after one change."""

    __tablename__ = "history_net_amounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    net_amount_id: Mapped[int] = mapped_column(ForeignKey("net_amounts.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    change: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_history_net_amounts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<HistoryNetAmount(id={self.id}, amount={self.amount}, "
            f"change={self.change}, action='{self.action}')>"
        )


class Transaction(Base):
    """
    An expense (or income) record owned by the user who submitted it.

    amount is always the sum of its items' quantity × price; it is computed
    by TransactionService and never accepted from the client.
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionType.EXPENSE.value,
        server_default=text("'EXPENSE'"),
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))

    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    approver_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status_approve_id: Mapped[int] = mapped_column(
        ForeignKey("status_approves.id"),
        nullable=False,
        default=STATUS_PENDING,
        server_default=text("1"),
    )
    history_net_amount_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("history_net_amounts.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    owner: Mapped[User] = relationship(foreign_keys=[owner_id], lazy="selectin")
    approver: Mapped[Optional[User]] = relationship(foreign_keys=[approver_id], lazy="selectin")
    status_approve: Mapped[StatusApprove] = relationship(lazy="selectin")
    history_net_amount: Mapped[Optional[HistoryNetAmount]] = relationship(lazy="selectin")
    items: Mapped[List["TransactionItem"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionItem.position",
        lazy="selectin",
    )
    files: Mapped[List["TransactionFile"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_transactions_created_at", created_at.desc()),
    )

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this transaction on the net amount."""
        if self.type == TransactionType.INCOME.value:
            return self.amount
        return -self.amount

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, type='{self.type}', amount={self.amount})>"


class TransactionItem(Base):
    __tablename__ = "transaction_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    transaction_id: Mapped[str] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("1"))
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    transaction: Mapped[Transaction] = relationship(back_populates="items")

    @property
    def total(self) -> Decimal:
        return (self.quantity * self.price).quantize(CENT, rounding=ROUND_HALF_UP)


class TransactionFile(Base):
    __tablename__ = "transaction_files"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    transaction_id: Mapped[str] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    public_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    transaction: Mapped[Transaction] = relationship(back_populates="files")
