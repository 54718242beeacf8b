"""
Shared test fixtures for the eventrag test suite.

Provides: mocked asyncpg pool, in-memory Qdrant vector store.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient

from eventrag.services.database import DatabaseService
from eventrag.services.vector_db import VectorDBService
from factories import TEST_DIMENSIONS


@pytest.fixture
def mock_conn() -> AsyncMock:
    """Provide a mocked asyncpg connection."""
    return AsyncMock()


@pytest.fixture
def mock_database(mock_conn: AsyncMock) -> DatabaseService:
    """
    Provide a DatabaseService whose pool hands out ``mock_conn``.

    Returns:
        DatabaseService: Service with a mocked pool
    """
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = mock_conn
    pool.acquire.return_value.__aexit__.return_value = False
    database = DatabaseService()
    database.pool = pool
    return database


@pytest_asyncio.fixture
async def vector_store():
    """
    Provide a VectorDBService backed by Qdrant's in-memory local mode.

    Yields:
        VectorDBService: Connected store using 3-dimensional vectors
    """
    store = VectorDBService(client=AsyncQdrantClient(location=":memory:"))
    store.dimensions = TEST_DIMENSIONS
    await store.connect()
    yield store
    await store.disconnect()
