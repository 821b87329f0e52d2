"""Async convenience layer over Motor: repositories, indexes, transactions
and a tag-driven partial-update builder."""

from mongolayer.client import MongoClient
from mongolayer.codec import decode_document, encode_record
from mongolayer.collection import Collection, PaginationResult
from mongolayer.documents import Article, BaseDocument, Category, Profile, User
from mongolayer.exceptions import (
    ConfigurationError,
    DatabaseError,
    DocumentNotFoundError,
    IndexOperationError,
    InvalidObjectIdError,
    MongoLayerError,
    NotConnectedError,
    TransactionError,
)
from mongolayer.indexes import DocumentIndexes, IndexManager
from mongolayer.settings import MongoSettings
from mongolayer.tags import bson_field, dataclass_field, parse_tag
from mongolayer.transaction import TransactionalRepository, TransactionManager
from mongolayer.update import build_update_set
from mongolayer.zero import is_zero

__all__ = [
    "Article",
    "BaseDocument",
    "Category",
    "Collection",
    "ConfigurationError",
    "DatabaseError",
    "DocumentIndexes",
    "DocumentNotFoundError",
    "IndexManager",
    "IndexOperationError",
    "InvalidObjectIdError",
    "MongoClient",
    "MongoLayerError",
    "MongoSettings",
    "NotConnectedError",
    "PaginationResult",
    "Profile",
    "TransactionError",
    "TransactionManager",
    "TransactionalRepository",
    "User",
    "build_update_set",
    "bson_field",
    "dataclass_field",
    "decode_document",
    "encode_record",
    "is_zero",
    "parse_tag",
]
