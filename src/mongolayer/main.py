"""
Demo entry point: exercises the repository, index and transaction helpers
against the MongoDB server configured via MONGODB_* environment variables.
"""

import asyncio
import sys
from typing import Any

from pydantic import BaseModel
from pymongo.errors import ConnectionFailure

from mongolayer.client import MongoClient
from mongolayer.collection import Collection
from mongolayer.documents import Article, User
from mongolayer.filters import build_regex_filter, build_sort
from mongolayer.indexes import DocumentIndexes, IndexManager
from mongolayer.tags import bson_field
from mongolayer.transaction import TransactionalRepository
from mongolayer.update import build_update_set
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)


class UserChanges(BaseModel):
    """Fields a user may change about themselves; unset fields are left alone."""

    status: str = bson_field("status,omitempty", default="")
    bio: str = bson_field("profile.bio,omitempty", default="")


async def demonstrate_user_operations(client: MongoClient) -> User:
    """Insert a user, read it back and apply a partial update."""
    users = Collection(client, "users")

    user = User(
        username="john_doe",
        email="john@example.com",
        password="hashed_password_here",
        status="active",
    )
    user.profile.first_name = "John"
    user.profile.last_name = "Doe"
    user.profile.bio = "Software Developer"

    await users.insert_one(user)
    logger.info("Created user [id=%s]", user.id)

    found = await users.find_by_id(user.id, model=User)
    logger.info("Found user '%s' <%s>", found.username, found.email)

    update = build_update_set(
        UserChanges(status="premium", bio="Senior Software Developer")
    )
    if update:
        await users.update_by_id(user.id, update)

    page, pagination = await users.find_with_pagination(
        build_regex_filter("username", "^john", "i"), page=1, page_size=10
    )
    logger.info(
        "Users matching 'john': %d on page, %d total", len(page), pagination.total
    )
    return user


async def demonstrate_article_operations(client: MongoClient, author: User) -> None:
    """Insert articles for ``author`` and aggregate them by status."""
    articles = Collection(client, "articles")

    await articles.insert_many(
        [
            Article(
                title="Getting started with MongoDB",
                content="Documents, collections and indexes.",
                author_id=author.id,
                tags=["mongodb", "database"],
                status="published",
            ),
            Article(
                title="Partial updates",
                content="Only write what changed.",
                author_id=author.id,
                tags=["mongodb"],
                status="draft",
            ),
        ]
    )

    published = await articles.find(
        {"author_id": author.id, "status": "published"},
        model=Article,
        sort=build_sort({"created_at": -1}),
    )
    logger.info("Published articles: %d", len(published))

    by_status: list[dict[str, Any]] = await articles.aggregate(
        [
            {"$match": {"author_id": author.id}},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]
    )
    for row in by_status:
        logger.info("  %s: %d", row["_id"], row["count"])


async def demonstrate_index_operations(client: MongoClient) -> None:
    """Create the declared document indexes and list those on ``users``."""
    created = await DocumentIndexes(client).create_all_document_indexes()
    for collection_name, names in created.items():
        logger.info("Indexes on '%s': %s", collection_name, ", ".join(names))

    if await IndexManager(client, "users").index_exists("idx_username_unique"):
        logger.info("Unique username index is in place")


async def demonstrate_transaction_operations(client: MongoClient) -> None:
    """Deactivate a user and archive their articles atomically."""
    users = TransactionalRepository(client, "users")
    articles = Collection(client, "articles")

    async def deactivate(session: Any, repo: TransactionalRepository) -> int:
        user = await repo.find_one(
            {"username": "john_doe"}, model=User, session=session
        )
        await repo.update_by_id(
            user.id, {"$set": {"status": "inactive"}}, session=session
        )
        result = await articles.update_many(
            {"author_id": user.id}, {"$set": {"status": "archived"}}, session=session
        )
        return result.modified_count

    archived = await users.with_transaction(deactivate)
    logger.info("Archived %d article(s) in transaction", archived)


async def async_main(skip_transactions: bool = False) -> int:
    """
    Run all demonstrations.

    Args:
        skip_transactions: Skip the transaction demo (standalone servers)

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    logger.info("🚀 mongolayer demo starting")

    try:
        async with MongoClient() as client:
            author = await demonstrate_user_operations(client)
            await demonstrate_article_operations(client, author)
            await demonstrate_index_operations(client)
            if skip_transactions:
                logger.warning("Skipping transaction demo")
            else:
                await demonstrate_transaction_operations(client)
    except ConnectionFailure:
        return 1

    logger.info("🎉 All demonstrations completed")
    return 0


def main() -> int:
    """Synchronous entry point that wraps the async main function."""
    skip_transactions = "--skip-transactions" in sys.argv
    return asyncio.run(async_main(skip_transactions=skip_transactions))


if __name__ == "__main__":
    sys.exit(main())
