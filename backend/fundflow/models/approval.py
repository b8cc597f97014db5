"""
FundFlow Backend — Approval Models
====================================

What:  StatusApprove (approval state lookup) and ApproveList (an item pushed
       by an external system that waits for a decision here).
How:   When an ApproveList status changes, the originating system is called
       back at `{api_path}{id_from}` (see ApprovalService.update).

Seeded statuses (migration 001):
    1 PENDING   — waiting for a decision; picked up by the daily reminder
    2 APPROVED
    3 REJECTED
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundflow.database import Base, utcnow
from fundflow.models.config import Config
from fundflow.models.user import User

STATUS_PENDING = 1
STATUS_APPROVED = 2
STATUS_REJECTED = 3


class StatusApprove(Base):
    __tablename__ = "status_approves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<StatusApprove(id={self.id}, name='{self.name}')>"


class ApproveList(Base):
    """
    An approval request originating from another internal system.

    url/title/detail describe the item for the approver; id_from and
    api_path identify the record in the source system and where to report
    the decision.
    """

    __tablename__ = "approve_lists"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    id_from: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    api_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status_approve_id: Mapped[int] = mapped_column(
        ForeignKey("status_approves.id"),
        nullable=False,
        default=STATUS_PENDING,
        server_default=text("1"),
    )
    config_id: Mapped[Optional[int]] = mapped_column(ForeignKey("configs.id", ondelete="SET NULL"), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

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

    user: Mapped[Optional[User]] = relationship(lazy="selectin")
    status_approve: Mapped[StatusApprove] = relationship(lazy="selectin")
    config: Mapped[Optional[Config]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_approve_lists_created_at", created_at.desc()),
        Index("idx_approve_lists_status", "status_approve_id"),
    )

    def __repr__(self) -> str:
        return f"<ApproveList(id={self.id}, title='{self.title}', status={self.status_approve_id})>"
