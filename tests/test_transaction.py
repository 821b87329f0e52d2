"""Unit tests for session and transaction helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure, PyMongoError

from mongolayer.exceptions import (
    DocumentNotFoundError,
    NotConnectedError,
    TransactionError,
)
from mongolayer.transaction import TransactionalRepository, TransactionManager
from tests.helpers.mongo_mocks import make_session


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def connected_client(mock_client, session):
    """MongoClient mock whose Motor client starts ``session``."""
    mock_client.client = MagicMock()
    mock_client.client.start_session = AsyncMock(return_value=session)
    return mock_client


class TestTransactionManager:
    @pytest.mark.asyncio
    async def test_with_transaction_returns_callback_result(
        self, connected_client, session
    ):
        seen = []

        async def work(s):
            seen.append(s)
            return 42

        result = await TransactionManager(connected_client).with_transaction(work)

        assert result == 42
        assert seen == [session]
        session.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_with_transaction_forwards_options(self, connected_client, session):
        async def work(s):
            return None

        await TransactionManager(connected_client).with_transaction(
            work, max_commit_time_ms=500
        )

        assert session.with_transaction.call_args.kwargs == {"max_commit_time_ms": 500}

    @pytest.mark.asyncio
    async def test_driver_failure_becomes_transaction_error(
        self, connected_client, session
    ):
        error = OperationFailure(
            "Transaction numbers are only allowed on a replica set"
        )
        session.with_transaction = AsyncMock(side_effect=error)

        async def work(s):
            return None

        with pytest.raises(TransactionError) as exc_info:
            await TransactionManager(connected_client).with_transaction(work)

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_callback_errors_propagate_unchanged(self, connected_client):
        async def work(s):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await TransactionManager(connected_client).with_transaction(work)

    @pytest.mark.asyncio
    async def test_not_connected(self, mock_client):
        mock_client.client = None

        async def work(s):
            return None

        with pytest.raises(NotConnectedError):
            await TransactionManager(mock_client).with_transaction(work)

    @pytest.mark.asyncio
    async def test_with_session_runs_without_transaction(
        self, connected_client, session
    ):
        async def work(s):
            return s

        result = await TransactionManager(connected_client).with_session(work)

        assert result is session
        session.with_transaction.assert_not_called()


class TestTransactionalRepository:
    @pytest.mark.asyncio
    async def test_callback_gets_session_and_repository(
        self, connected_client, session
    ):
        repo = TransactionalRepository(connected_client, "users")
        repo.collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=1)
        )

        async def work(s, r):
            await r.update_one({"username": "john"}, {"$set": {"x": 1}}, session=s)
            return r

        result = await repo.with_transaction(work)

        assert result is repo
        assert repo.collection.update_one.call_args.kwargs["session"] is session

    @pytest.mark.asyncio
    async def test_transient_write_conflict_is_retried(self, connected_client, session):
        async def run_with_retry(callback, **kwargs):
            while True:
                try:
                    return await callback(session)
                except PyMongoError as e:
                    if not e.has_error_label("TransientTransactionError"):
                        raise

        session.with_transaction = AsyncMock(side_effect=run_with_retry)
        repo = TransactionalRepository(connected_client, "users")
        conflict = OperationFailure(
            "WriteConflict",
            code=112,
            details={"errorLabels": ["TransientTransactionError"]},
        )
        repo.collection.update_one = AsyncMock(
            side_effect=[conflict, MagicMock(matched_count=1, modified_count=1)]
        )

        async def work(s, r):
            result = await r.update_one(
                {"username": "john"}, {"$set": {"x": 1}}, session=s
            )
            return result.modified_count

        assert await repo.with_transaction(work) == 1
        assert repo.collection.update_one.await_count == 2

    @pytest.mark.asyncio
    async def test_repository_failure_becomes_transaction_error(
        self, connected_client
    ):
        repo = TransactionalRepository(connected_client, "users")
        error = OperationFailure("document failed validation", code=121)
        repo.collection.update_one = AsyncMock(side_effect=error)

        async def work(s, r):
            await r.update_one({"username": "john"}, {"$set": {"x": 1}}, session=s)

        with pytest.raises(TransactionError) as exc_info:
            await repo.with_transaction(work)

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_missing_document_becomes_transaction_error(self, connected_client):
        repo = TransactionalRepository(connected_client, "users")
        repo.collection.find_one = AsyncMock(return_value=None)

        async def work(s, r):
            return await r.find_one({"username": "ghost"}, session=s)

        with pytest.raises(TransactionError) as exc_info:
            await repo.with_transaction(work)

        assert isinstance(exc_info.value.__cause__, DocumentNotFoundError)

    @pytest.mark.asyncio
    async def test_with_session_wraps_repository_failure(self, connected_client):
        repo = TransactionalRepository(connected_client, "users")
        repo.collection.count_documents = AsyncMock(
            side_effect=OperationFailure("interrupted", code=11601)
        )

        async def work(s):
            return await repo.count({}, session=s)

        with pytest.raises(TransactionError):
            await repo.transactions.with_session(work)
