"""
FundFlow Backend — Config / ConfigType Models
===============================================

What:  Categorization tables. A ConfigType groups Config entries (for example
       the source systems that push approval items); ApproveList rows point
       at a Config to say which system they came from.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundflow.database import Base, utcnow


class ConfigType(Base):
    __tablename__ = "config_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    configs: Mapped[List["Config"]] = relationship(back_populates="config_type")

    def __repr__(self) -> str:
        return f"<ConfigType(id={self.id}, name='{self.name}')>"


class Config(Base):
    __tablename__ = "configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    config_type_id: Mapped[int] = mapped_column(
        ForeignKey("config_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
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

    # Always needed when a config is serialized, so load it eagerly
    config_type: Mapped[ConfigType] = relationship(back_populates="configs", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Config(id={self.id}, name='{self.name}', type={self.config_type_id})>"
