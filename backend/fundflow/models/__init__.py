"""
FundFlow Backend — ORM Models
===============================

Importing this package registers every table with Base.metadata, which
relationship() string lookups and Alembic autogenerate both rely on.
"""

from fundflow.models.user import User, UserRole
from fundflow.models.config import Config, ConfigType
from fundflow.models.approval import ApproveList, StatusApprove, STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED
from fundflow.models.finance import (
    HistoryNetAmount,
    LedgerAction,
    NetAmount,
    Transaction,
    TransactionFile,
    TransactionItem,
    TransactionType,
)

__all__ = [
    "User",
    "UserRole",
    "Config",
    "ConfigType",
    "ApproveList",
    "StatusApprove",
    "STATUS_PENDING",
    "STATUS_APPROVED",
    "STATUS_REJECTED",
    "HistoryNetAmount",
    "LedgerAction",
    "NetAmount",
    "Transaction",
    "TransactionFile",
    "TransactionItem",
    "TransactionType",
]
