"""
FundFlow Backend — Session Dependency Tests
=============================================

get_db_session owns the request's transaction: commit on success, rollback
on any error, and driver errors surface as DatabaseError.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from fundflow.database import get_db_session
from fundflow.exceptions import DatabaseError, NotFoundError


def _factory_for(session) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


class TestGetDbSession:
    @pytest.mark.asyncio
    async def test_commits_on_success(self, mock_db_session):
        with patch("fundflow.database.async_session_factory", _factory_for(mock_db_session)):
            gen = get_db_session()
            assert await gen.__anext__() is mock_db_session
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        mock_db_session.commit.assert_awaited_once()
        mock_db_session.rollback.assert_not_awaited()
        mock_db_session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_driver_error_becomes_database_error(self, mock_db_session):
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with patch("fundflow.database.async_session_factory", _factory_for(mock_db_session)):
            gen = get_db_session()
            await gen.__anext__()
            with pytest.raises(DatabaseError) as exc_info:
                await gen.__anext__()

        assert exc_info.value.context["error_type"] == "OperationalError"
        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through_after_rollback(self, mock_db_session):
        with patch("fundflow.database.async_session_factory", _factory_for(mock_db_session)):
            gen = get_db_session()
            await gen.__anext__()
            with pytest.raises(NotFoundError):
                await gen.athrow(NotFoundError(resource="Transaction", resource_id="x"))

        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()
