"""Initial schema: users, approvals, configs, transactions and the ledger

Revision ID: 001
Revises: None
Create Date: 2025-01-15 00:00:00.000000+00:00

Seeds:
    status_approves  1 PENDING, 2 APPROVED, 3 REJECTED
    net_amounts      one row, id 1, amount 0.00

On PostgreSQL the serial sequences of both seeded tables are moved past
the seeded ids.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 2)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade() -> None:
    # ── Users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("password", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'USER'")),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("otp_hash", sa.String(255), nullable=True),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Lookups ───────────────────────────────────────────────────────────
    status_approves = op.create_table(
        "status_approves",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
    )

    op.create_table(
        "config_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
    )

    op.create_table(
        "configs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "config_type_id",
            sa.Integer(),
            sa.ForeignKey("config_types.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_configs_config_type_id", "configs", ["config_type_id"])

    # ── Approval inbox ────────────────────────────────────────────────────
    op.create_table(
        "approve_lists",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("detail", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("id_from", sa.String(100), nullable=True),
        sa.Column("api_path", sa.String(500), nullable=True),
        sa.Column(
            "status_approve_id",
            sa.Integer(),
            sa.ForeignKey("status_approves.id"),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column("config_id", sa.Integer(), sa.ForeignKey("configs.id", ondelete="SET NULL"), nullable=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_approve_lists_created_at", "approve_lists", [sa.text("created_at DESC")])
    op.create_index("idx_approve_lists_status", "approve_lists", ["status_approve_id"])

    # ── Ledger ────────────────────────────────────────────────────────────
    net_amounts = op.create_table(
        "net_amounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "history_net_amounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("net_amount_id", sa.Integer(), sa.ForeignKey("net_amounts.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("change", MONEY, nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        # Plain column: history outlives deleted transactions
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_history_net_amounts_transaction_id", "history_net_amounts", ["transaction_id"])
    op.create_index("idx_history_net_amounts_created_at", "history_net_amounts", [sa.text("created_at DESC")])

    # ── Transactions ──────────────────────────────────────────────────────
    op.create_table(
        "transactions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'EXPENSE'")),
        sa.Column("amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("owner_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("approver_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status_approve_id",
            sa.Integer(),
            sa.ForeignKey("status_approves.id"),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column(
            "history_net_amount_id",
            sa.Integer(),
            sa.ForeignKey("history_net_amounts.id"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_transactions_owner_id", "transactions", ["owner_id"])
    op.create_index("idx_transactions_created_at", "transactions", [sa.text("created_at DESC")])

    op.create_table(
        "transaction_items",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.String(64),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", MONEY, nullable=False, server_default=sa.text("1")),
        sa.Column("price", MONEY, nullable=False),
    )
    op.create_index("ix_transaction_items_transaction_id", "transaction_items", ["transaction_id"])

    op.create_table(
        "transaction_files",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.String(64),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("public_id", sa.String(255), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_transaction_files_transaction_id", "transaction_files", ["transaction_id"])

    # ── Seed data ─────────────────────────────────────────────────────────
    op.bulk_insert(
        status_approves,
        [
            {"id": 1, "name": "PENDING"},
            {"id": 2, "name": "APPROVED"},
            {"id": 3, "name": "REJECTED"},
        ],
    )
    op.bulk_insert(net_amounts, [{"id": 1, "amount": 0}])
    _sync_serial_sequences(["status_approves", "net_amounts"])


def _sync_serial_sequences(tables) -> None:
    """Explicit seed ids do not advance PostgreSQL serial sequences; move them past the seeds."""
    if op.get_bind().dialect.name != "postgresql":
        return
    for table in tables:
        op.execute(
            f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), (SELECT MAX(id) FROM {table}))"
        )


def downgrade() -> None:
    op.drop_table("transaction_files")
    op.drop_table("transaction_items")
    op.drop_table("transactions")
    op.drop_table("history_net_amounts")
    op.drop_table("net_amounts")
    op.drop_table("approve_lists")
    op.drop_table("configs")
    op.drop_table("config_types")
    op.drop_table("status_approves")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
