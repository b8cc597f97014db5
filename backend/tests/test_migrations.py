"""
FundFlow Backend — Migration Tests

The initial revision seeds rows with explicit ids; on PostgreSQL it must
move the serial sequences past them so later inserts get fresh ids.
"""

import types
from importlib.machinery import SourceFileLoader
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

REVISION_FILE = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "001_initial_schema.py"


def _load_revision():
    loader = SourceFileLoader("revision_001_initial_schema", str(REVISION_FILE))
    module = types.ModuleType(loader.name)
    module.__file__ = str(REVISION_FILE)
    loader.exec_module(module)
    return module


def _executed_sql(op: MagicMock) -> list:
    return [str(call.args[0]) for call in op.execute.call_args_list]


class TestInitialRevision:
    def setup_method(self):
        self.revision = _load_revision()

    def test_seeds_statuses_and_balance(self):
        with patch.object(self.revision, "op") as op:
            op.get_bind.return_value.dialect.name = "sqlite"
            self.revision.upgrade()

        seeded = [call.args[1] for call in op.bulk_insert.call_args_list]
        assert [row["name"] for row in seeded[0]] == ["PENDING", "APPROVED", "REJECTED"]
        assert seeded[1] == [{"id": 1, "amount": 0}]

    def test_postgres_sequences_follow_seeded_ids(self):
        with patch.object(self.revision, "op") as op:
            op.get_bind.return_value.dialect.name = "postgresql"
            self.revision.upgrade()

        statements = _executed_sql(op)
        assert len(statements) == 2
        assert "pg_get_serial_sequence('status_approves', 'id')" in statements[0]
        assert "MAX(id) FROM status_approves" in statements[0]
        assert "pg_get_serial_sequence('net_amounts', 'id')" in statements[1]

    @pytest.mark.parametrize("dialect", ["sqlite", "mysql"])
    def test_other_dialects_skip_sequence_sync(self, dialect):
        with patch.object(self.revision, "op") as op:
            op.get_bind.return_value.dialect.name = dialect
            self.revision.upgrade()

        assert _executed_sql(op) == []
