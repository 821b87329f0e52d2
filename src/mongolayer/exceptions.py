"""Domain-specific exceptions for mongolayer.

Driver errors (``pymongo.errors.PyMongoError``) raised by Motor are caught at
the repository boundary and re-raised as one of these, chained to the
original cause. The partial-update builder never raises.
"""


class MongoLayerError(Exception):
    """Base exception for all mongolayer errors."""


class ConfigurationError(MongoLayerError):
    """Invalid or missing configuration.

    Examples:
        - Empty connection URI
        - Pool bounds where min_pool_size exceeds max_pool_size
    """


class NotConnectedError(MongoLayerError):
    """A database handle was requested before ``MongoClient.connect()``."""


class DatabaseError(MongoLayerError):
    """Database operation failed.

    Raised when a driver call fails. Connection failures during
    ``connect()`` keep the driver's ``ConnectionFailure`` instead.
    """


class DocumentNotFoundError(DatabaseError):
    """No document matched the filter of a single-document lookup."""

    def __init__(self, collection: str, filter: dict) -> None:
        super().__init__(f"document not found in '{collection}': {filter!r}")
        self.collection = collection
        self.filter = filter


class IndexOperationError(DatabaseError):
    """Creating, dropping or listing an index failed."""


class TransactionError(DatabaseError):
    """A transaction could not be started, committed or was aborted."""


class InvalidObjectIdError(MongoLayerError, ValueError):
    """A value could not be interpreted as a BSON ObjectId."""

    def __init__(self, value: object) -> None:
        super().__init__(f"invalid ObjectId: {value!r}")
        self.value = value
