"""Session and transaction helpers.

Transactions require a replica set or sharded cluster; against a standalone
server ``with_transaction`` fails with ``TransactionError``.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pymongo.errors import PyMongoError

from mongolayer.client import MongoClient
from mongolayer.collection import Collection
from mongolayer.exceptions import DatabaseError, NotConnectedError, TransactionError
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TransactionManager:
    """Runs callbacks inside a client session or a transaction."""

    def __init__(self, client: MongoClient) -> None:
        self.client = client

    def _motor_client(self) -> Any:
        if self.client.client is None:
            raise NotConnectedError("MongoDB client is not connected")
        return self.client.client

    async def with_transaction(
        self,
        fn: Callable[[Any], Awaitable[T]],
        **txn_options: Any,
    ) -> T:
        """
        Run ``fn(session)`` in a transaction and return its result.

        The driver commits when ``fn`` returns, aborts when it raises, and
        retries on transient transaction errors.

        Args:
            fn: Coroutine function taking the session; pass the session to
                every repository call that should join the transaction
            **txn_options: read_concern, write_concern, read_preference,
                max_commit_time_ms

        Raises:
            TransactionError: If the transaction cannot be committed or a
                repository call inside it fails
        """

        async def callback(session: Any) -> T:
            try:
                return await fn(session)
            except DatabaseError as e:
                # Motor retries only PyMongoError labelled TransientTransactionError
                if isinstance(e.__cause__, PyMongoError):
                    raise e.__cause__ from None
                raise

        try:
            async with await self._motor_client().start_session() as session:
                result = await session.with_transaction(callback, **txn_options)
        except TransactionError:
            raise
        except (PyMongoError, DatabaseError) as e:
            logger.error("Transaction failed: %s", e)
            raise TransactionError(f"transaction failed: {e}") from e

        logger.debug("Transaction committed")
        return result

    async def with_session(self, fn: Callable[[Any], Awaitable[T]]) -> T:
        """Run ``fn(session)`` in a session without starting a transaction."""
        try:
            async with await self._motor_client().start_session() as session:
                return await fn(session)
        except TransactionError:
            raise
        except (PyMongoError, DatabaseError) as e:
            logger.error("Session operation failed: %s", e)
            raise TransactionError(f"session operation failed: {e}") from e


class TransactionalRepository(Collection):
    """Collection repository that can run callbacks in a transaction."""

    def __init__(self, client: MongoClient, collection_name: str) -> None:
        super().__init__(client, collection_name)
        self.transactions = TransactionManager(client)

    async def with_transaction(
        self,
        fn: Callable[[Any, "TransactionalRepository"], Awaitable[T]],
        **txn_options: Any,
    ) -> T:
        """Run ``fn(session, repo)`` in a transaction."""

        async def callback(session: Any) -> T:
            return await fn(session, self)

        return await self.transactions.with_transaction(callback, **txn_options)
