"""Index management helpers and the index sets of the bundled documents."""

from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import Any

from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel
from pymongo.errors import PyMongoError

from mongolayer.client import MongoClient
from mongolayer.exceptions import IndexOperationError
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)

IndexKeys = str | Sequence[tuple[str, Any]] | Mapping[str, Any]


def _normalize_keys(keys: IndexKeys) -> list[tuple[str, Any]]:
    """Accept a field name, ``(field, direction)`` pairs or an ordered mapping."""
    if isinstance(keys, str):
        return [(keys, ASCENDING)]
    if isinstance(keys, Mapping):
        return list(keys.items())
    return list(keys)


class IndexManager:
    """Create, drop and inspect the indexes of one collection."""

    def __init__(self, client: MongoClient, collection_name: str) -> None:
        self.name = collection_name
        self.collection = client.get_collection(collection_name)

    async def create_index(self, keys: IndexKeys, **options: Any) -> str:
        """
        Create a single index.

        Args:
            keys: Field name, ``(field, direction)`` pairs or ordered mapping
            **options: Driver index options (name, unique, sparse, ...)

        Returns:
            Name of the created index

        Raises:
            IndexOperationError: If the server rejects the index
        """
        try:
            name = await self.collection.create_index(_normalize_keys(keys), **options)
        except PyMongoError as e:
            logger.error("Failed to create index on '%s': %s", self.name, e)
            raise IndexOperationError(f"failed to create index: {e}") from e

        logger.info("Created index '%s' on '%s'", name, self.name)
        return str(name)

    async def create_indexes(self, models: Sequence[IndexModel]) -> list[str]:
        """Create several indexes in one command."""
        try:
            names = await self.collection.create_indexes(list(models))
        except PyMongoError as e:
            logger.error("Failed to create indexes on '%s': %s", self.name, e)
            raise IndexOperationError(f"failed to create indexes: {e}") from e

        logger.info("Created indexes on '%s': %s", self.name, names)
        return list(names)

    async def drop_index(self, name: str) -> None:
        try:
            await self.collection.drop_index(name)
        except PyMongoError as e:
            logger.error("Failed to drop index '%s' on '%s': %s", name, self.name, e)
            raise IndexOperationError(f"failed to drop index {name}: {e}") from e

        logger.info("Dropped index '%s' on '%s'", name, self.name)

    async def drop_all_indexes(self) -> None:
        """Drop every index except the mandatory ``_id`` index."""
        try:
            await self.collection.drop_indexes()
        except PyMongoError as e:
            logger.error("Failed to drop indexes on '%s': %s", self.name, e)
            raise IndexOperationError(f"failed to drop all indexes: {e}") from e

        logger.info("Dropped all indexes on '%s'", self.name)

    async def list_indexes(self) -> list[dict[str, Any]]:
        try:
            cursor = self.collection.list_indexes()
            indexes = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to list indexes on '%s': %s", self.name, e)
            raise IndexOperationError(f"failed to list indexes: {e}") from e

        return [dict(index) for index in indexes]

    async def create_text_index(self, fields: Sequence[str], **options: Any) -> str:
        return await self.create_index([(field, TEXT) for field in fields], **options)

    async def create_compound_index(self, fields: IndexKeys, **options: Any) -> str:
        return await self.create_index(fields, **options)

    async def create_unique_index(self, field: str, **options: Any) -> str:
        return await self.create_index(field, **{**options, "unique": True})

    async def create_sparse_index(self, field: str, **options: Any) -> str:
        return await self.create_index(field, **{**options, "sparse": True})

    async def create_ttl_index(
        self, field: str, expire_after: timedelta | int, **options: Any
    ) -> str:
        """
        Create a TTL index expiring documents ``expire_after`` past ``field``.

        Args:
            field: Date field the expiry is measured from
            expire_after: timedelta or whole seconds
        """
        seconds = (
            int(expire_after.total_seconds())
            if isinstance(expire_after, timedelta)
            else int(expire_after)
        )
        return await self.create_index(
            field, **{**options, "expireAfterSeconds": seconds}
        )

    async def create_partial_index(
        self, field: str, filter: Mapping[str, Any], **options: Any
    ) -> str:
        return await self.create_index(
            field, **{**options, "partialFilterExpression": dict(filter)}
        )

    async def index_exists(self, name: str) -> bool:
        indexes = await self.list_indexes()
        return any(index.get("name") == name for index in indexes)

    async def get_index_stats(self) -> list[dict[str, Any]]:
        """Return per-index usage statistics (``$indexStats``)."""
        try:
            cursor = self.collection.aggregate([{"$indexStats": {}}])
            stats = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to get index stats on '%s': %s", self.name, e)
            raise IndexOperationError(f"failed to get index stats: {e}") from e

        return [dict(stat) for stat in stats]


# ==================== Document index sets ====================

USER_INDEXES = [
    # login and user lookup
    IndexModel([("username", ASCENDING)], unique=True, name="idx_username_unique"),
    IndexModel([("email", ASCENDING)], unique=True, name="idx_email_unique"),
    IndexModel([("status", ASCENDING)], name="idx_status"),
    IndexModel([("created_at", DESCENDING)], name="idx_created_at_desc"),
    IndexModel([("updated_at", DESCENDING)], name="idx_updated_at_desc"),
    IndexModel(
        [("profile.first_name", ASCENDING), ("profile.last_name", ASCENDING)],
        name="idx_profile_name",
    ),
    IndexModel(
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_status_created_at",
    ),
    IndexModel([("profile.bio", TEXT)], name="idx_profile_bio_text"),
]

ARTICLE_INDEXES = [
    IndexModel([("author_id", ASCENDING)], name="idx_author_id"),
    IndexModel([("status", ASCENDING)], name="idx_status"),
    IndexModel([("category_id", ASCENDING)], name="idx_category_id"),
    IndexModel([("created_at", DESCENDING)], name="idx_created_at_desc"),
    # popularity sorting
    IndexModel([("view_count", DESCENDING)], name="idx_view_count_desc"),
    IndexModel([("like_count", DESCENDING)], name="idx_like_count_desc"),
    IndexModel([("tags", ASCENDING)], name="idx_tags"),
    IndexModel(
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_status_created_at",
    ),
    IndexModel(
        [("author_id", ASCENDING), ("status", ASCENDING)], name="idx_author_status"
    ),
    # category listing pages
    IndexModel(
        [
            ("category_id", ASCENDING),
            ("status", ASCENDING),
            ("created_at", DESCENDING),
        ],
        name="idx_category_status_created_at",
    ),
    IndexModel([("title", TEXT), ("content", TEXT)], name="idx_title_content_text"),
]

CATEGORY_INDEXES = [
    IndexModel([("name", ASCENDING)], unique=True, name="idx_name_unique"),
    # root categories have no parent_id
    IndexModel([("parent_id", ASCENDING)], sparse=True, name="idx_parent_id"),
    IndexModel([("is_active", ASCENDING)], name="idx_is_active"),
    IndexModel([("sort", ASCENDING)], name="idx_sort"),
    IndexModel([("parent_id", ASCENDING), ("sort", ASCENDING)], name="idx_parent_sort"),
    IndexModel([("is_active", ASCENDING), ("sort", ASCENDING)], name="idx_active_sort"),
    IndexModel([("description", TEXT)], name="idx_description_text"),
]

BASE_DOCUMENT_INDEXES = [
    IndexModel([("created_at", DESCENDING)], name="idx_created_at_desc"),
    IndexModel([("updated_at", DESCENDING)], name="idx_updated_at_desc"),
]

DOCUMENT_INDEXES: dict[str, list[IndexModel]] = {
    "users": USER_INDEXES,
    "articles": ARTICLE_INDEXES,
    "categories": CATEGORY_INDEXES,
}


class DocumentIndexes:
    """Create and drop the index sets declared for the bundled documents."""

    def __init__(self, client: MongoClient) -> None:
        self.client = client

    def _manager(self, collection_name: str) -> IndexManager:
        return IndexManager(self.client, collection_name)

    async def create_user_indexes(self) -> list[str]:
        return await self._manager("users").create_indexes(USER_INDEXES)

    async def create_article_indexes(self) -> list[str]:
        return await self._manager("articles").create_indexes(ARTICLE_INDEXES)

    async def create_category_indexes(self) -> list[str]:
        return await self._manager("categories").create_indexes(CATEGORY_INDEXES)

    async def create_all_document_indexes(self) -> dict[str, list[str]]:
        """Create the index sets of every document collection, in order."""
        created: dict[str, list[str]] = {}
        for collection_name, models in DOCUMENT_INDEXES.items():
            created[collection_name] = await self._manager(
                collection_name
            ).create_indexes(models)
        return created

    async def create_base_document_indexes(self, collection_name: str) -> list[str]:
        """Create the timestamp indexes shared by every BaseDocument collection."""
        return await self._manager(collection_name).create_indexes(
            BASE_DOCUMENT_INDEXES
        )

    async def drop_all_document_indexes(self) -> None:
        """Drop all non-``_id`` indexes of the document collections."""
        for collection_name in DOCUMENT_INDEXES:
            await self._manager(collection_name).drop_all_indexes()

    async def get_index_usage_stats(self, collection_name: str) -> list[dict[str, Any]]:
        return await self._manager(collection_name).get_index_stats()
