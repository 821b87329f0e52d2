"""Repository-style CRUD operations on a single collection."""

import math
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from time import perf_counter
from typing import Any

from bson import ObjectId
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from pymongo.results import (
    DeleteResult,
    InsertManyResult,
    InsertOneResult,
    UpdateResult,
)

from mongolayer.client import MongoClient
from mongolayer.codec import decode_document, encode_record
from mongolayer.documents import BaseDocument
from mongolayer.exceptions import DatabaseError, DocumentNotFoundError
from mongolayer.filters import to_object_id
from mongolayer.tags import is_record
from mongolayer.update import SET_OPERATOR
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)

UPDATED_AT_FIELD = "updated_at"


class PaginationResult(BaseModel):
    """Page metadata returned alongside a page of documents."""

    page: int
    page_size: int
    total: int
    total_page: int


class Collection:
    """
    CRUD façade over one Motor collection.

    Every method accepts an optional ``session`` so it can take part in a
    transaction started by ``TransactionManager``.
    """

    def __init__(self, client: MongoClient, collection_name: str) -> None:
        """
        Initialize repository for a collection.

        Args:
            client: Connected MongoClient
            collection_name: Name of the collection
        """
        self.client = client
        self.name = collection_name
        self.collection = client.get_collection(collection_name)

    @contextmanager
    def _operation(self, action: str) -> Iterator[None]:
        """Time a driver call and convert driver errors to DatabaseError."""
        start_time = perf_counter()
        try:
            yield
        except PyMongoError as e:
            logger.error("Failed to %s in '%s': %s", action, self.name, e)
            raise DatabaseError(f"failed to {action} in '{self.name}': {e}") from e
        elapsed = perf_counter() - start_time
        logger.debug("%s in '%s' [time=%.2fms]", action, self.name, elapsed * 1000)

    @staticmethod
    def _to_document(document: Any) -> dict[str, Any]:
        if is_record(document):
            return encode_record(document)
        if isinstance(document, dict):
            return document
        if isinstance(document, Mapping):
            return dict(document)
        raise TypeError(
            f"cannot store {type(document).__name__}; expected a record or mapping"
        )

    @staticmethod
    def _decode(model: type | None, document: dict[str, Any]) -> Any:
        return decode_document(model, document) if model is not None else document

    @staticmethod
    def _with_updated_at(update: Mapping[str, Any]) -> dict[str, Any]:
        """Copy ``update`` and stamp ``$set.updated_at``."""
        stamped = dict(update)
        fields = dict(stamped.get(SET_OPERATOR) or {})
        fields[UPDATED_AT_FIELD] = datetime.now(UTC)
        stamped[SET_OPERATOR] = fields
        return stamped

    # ==================== Insert ====================

    async def insert_one(self, document: Any, session: Any = None) -> InsertOneResult:
        """
        Insert a single document.

        ``BaseDocument`` instances get ids and timestamps assigned first, and
        the inserted id is written back to ``document.id``.

        Raises:
            DatabaseError: If the insert fails or the id is not an ObjectId
        """
        if isinstance(document, BaseDocument):
            document.before_insert()

        with self._operation("insert document"):
            result = await self.collection.insert_one(
                self._to_document(document), session=session
            )

        if isinstance(document, BaseDocument):
            if not isinstance(result.inserted_id, ObjectId):
                raise DatabaseError(
                    f"inserted id {result.inserted_id!r} is not an ObjectId"
                )
            document.id = result.inserted_id

        logger.info(
            "Inserted document into '%s' [id=%s]", self.name, result.inserted_id
        )
        return result

    async def insert_many(
        self, documents: Sequence[Any], session: Any = None
    ) -> InsertManyResult:
        """Insert several documents, running ``before_insert`` on each model."""
        for document in documents:
            if isinstance(document, BaseDocument):
                document.before_insert()

        with self._operation("insert documents"):
            result = await self.collection.insert_many(
                [self._to_document(document) for document in documents],
                session=session,
            )

        logger.info(
            "Inserted %d documents into '%s'", len(result.inserted_ids), self.name
        )
        return result

    # ==================== Find ====================

    async def find_one(
        self,
        filter: Mapping[str, Any],
        model: type | None = None,
        session: Any = None,
    ) -> Any:
        """
        Find a single document.

        Args:
            filter: Query filter
            model: Record class to decode into; raw dict if omitted
            session: Optional client session

        Raises:
            DocumentNotFoundError: If nothing matches
        """
        with self._operation("find document"):
            document = await self.collection.find_one(filter, session=session)

        if document is None:
            raise DocumentNotFoundError(self.name, dict(filter))
        return self._decode(model, document)

    async def find_by_id(
        self, id: ObjectId | str, model: type | None = None, session: Any = None
    ) -> Any:
        """Find a document by ``_id`` (ObjectId or hex string)."""
        return await self.find_one({"_id": to_object_id(id)}, model, session=session)

    async def find(
        self,
        filter: Mapping[str, Any],
        model: type | None = None,
        sort: list[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int = 0,
        projection: Mapping[str, Any] | None = None,
        session: Any = None,
    ) -> list[Any]:
        """
        Find all documents matching ``filter``.

        Args:
            filter: Query filter
            model: Record class to decode into; raw dicts if omitted
            sort: ``(field, direction)`` pairs, see ``build_sort``
            skip: Number of documents to skip
            limit: Maximum number of documents (0 = no limit)
            projection: Fields to include or exclude
            session: Optional client session
        """
        with self._operation("find documents"):
            cursor = self.collection.find(
                filter,
                projection,
                sort=sort,
                skip=skip,
                limit=limit,
                session=session,
            )
            documents = await cursor.to_list(length=None)

        return [self._decode(model, document) for document in documents]

    async def find_with_pagination(
        self,
        filter: Mapping[str, Any],
        page: int,
        page_size: int,
        model: type | None = None,
        sort: list[tuple[str, int]] | None = None,
        session: Any = None,
    ) -> tuple[list[Any], PaginationResult]:
        """
        Find one page of documents plus pagination metadata.

        Args:
            filter: Query filter
            page: 1-based page number
            page_size: Documents per page

        Returns:
            Tuple of (documents on this page, PaginationResult)

        Raises:
            ValueError: If page or page_size is below 1
        """
        if page < 1 or page_size < 1:
            raise ValueError(
                f"page and page_size must be >= 1 (got page={page}, "
                f"page_size={page_size})"
            )

        items = await self.find(
            filter,
            model,
            sort=sort,
            skip=(page - 1) * page_size,
            limit=page_size,
            session=session,
        )
        total = await self.count(filter, session=session)

        return items, PaginationResult(
            page=page,
            page_size=page_size,
            total=total,
            total_page=math.ceil(total / page_size),
        )

    # ==================== Update ====================

    async def update_one(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
        session: Any = None,
    ) -> UpdateResult:
        """
        Update a single document, stamping ``updated_at``.

        Args:
            filter: Selector for the document
            update: Update operators, e.g. from ``build_update_set``
            upsert: Insert when nothing matches
            session: Optional client session
        """
        with self._operation("update document"):
            result = await self.collection.update_one(
                filter, self._with_updated_at(update), upsert=upsert, session=session
            )

        logger.info(
            "Updated document in '%s' [matched=%d, modified=%d]",
            self.name,
            result.matched_count,
            result.modified_count,
        )
        return result

    async def update_by_id(
        self,
        id: ObjectId | str,
        update: Mapping[str, Any],
        upsert: bool = False,
        session: Any = None,
    ) -> UpdateResult:
        return await self.update_one(
            {"_id": to_object_id(id)}, update, upsert=upsert, session=session
        )

    async def update_many(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        session: Any = None,
    ) -> UpdateResult:
        """Update all matching documents, stamping ``updated_at``."""
        with self._operation("update documents"):
            result = await self.collection.update_many(
                filter, self._with_updated_at(update), session=session
            )

        logger.info(
            "Updated documents in '%s' [matched=%d, modified=%d]",
            self.name,
            result.matched_count,
            result.modified_count,
        )
        return result

    async def replace_one(
        self, filter: Mapping[str, Any], replacement: Any, session: Any = None
    ) -> UpdateResult:
        """Replace a single document, running ``before_update`` on models."""
        if isinstance(replacement, BaseDocument):
            replacement.before_update()

        with self._operation("replace document"):
            return await self.collection.replace_one(
                filter, self._to_document(replacement), session=session
            )

    # ==================== Delete ====================

    async def delete_one(
        self, filter: Mapping[str, Any], session: Any = None
    ) -> DeleteResult:
        with self._operation("delete document"):
            result = await self.collection.delete_one(filter, session=session)
        logger.info("Deleted %d document(s) from '%s'", result.deleted_count, self.name)
        return result

    async def delete_by_id(
        self, id: ObjectId | str, session: Any = None
    ) -> DeleteResult:
        return await self.delete_one({"_id": to_object_id(id)}, session=session)

    async def delete_many(
        self, filter: Mapping[str, Any], session: Any = None
    ) -> DeleteResult:
        with self._operation("delete documents"):
            result = await self.collection.delete_many(filter, session=session)
        logger.info("Deleted %d document(s) from '%s'", result.deleted_count, self.name)
        return result

    # ==================== Count & aggregate ====================

    async def count(self, filter: Mapping[str, Any], session: Any = None) -> int:
        with self._operation("count documents"):
            count = await self.collection.count_documents(filter, session=session)
        return int(count)

    async def exists(self, filter: Mapping[str, Any], session: Any = None) -> bool:
        """Whether at least one document matches ``filter``."""
        with self._operation("check document existence"):
            count = await self.collection.count_documents(
                filter, limit=1, session=session
            )
        return count > 0

    async def aggregate(
        self,
        pipeline: Sequence[Mapping[str, Any]],
        model: type | None = None,
        session: Any = None,
    ) -> list[Any]:
        """Run an aggregation pipeline and collect all results."""
        with self._operation("aggregate"):
            cursor = self.collection.aggregate(list(pipeline), session=session)
            documents = await cursor.to_list(length=None)

        return [self._decode(model, document) for document in documents]
