"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from mongolayer.settings import MongoSettings


@pytest.fixture
def settings():
    """Settings pointing at a local test database."""
    return MongoSettings(uri="mongodb://localhost:27017", database="test_db")


@pytest.fixture
def mock_collection():
    """Motor collection mock: CRUD calls are async, cursor factories are not."""
    collection = AsyncMock()
    collection.find = MagicMock()
    collection.aggregate = MagicMock()
    collection.list_indexes = MagicMock()
    return collection


@pytest.fixture
def mock_client(mock_collection):
    """MongoClient mock handing out ``mock_collection`` for every name."""
    client = MagicMock()
    client.get_collection = MagicMock(return_value=mock_collection)
    return client


@pytest.fixture
def object_id():
    return ObjectId("65a1b2c3d4e5f60718293a4b")
