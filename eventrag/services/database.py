"""Database service for PostgreSQL operations."""

import logging
import uuid
from typing import List, Optional

import asyncpg

from eventrag.core.config import settings
from eventrag.core.exceptions import DatabaseError, InvalidScopeError
from eventrag.models.document import Document

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    archived BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS events_owner_idx ON events (owner_id);

CREATE TABLE IF NOT EXISTS documents (
    key TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    event_id UUID NOT NULL REFERENCES events (id) ON DELETE CASCADE,
    original_filename TEXT NOT NULL,
    mimetype TEXT,
    size BIGINT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS documents_scope_idx ON documents (owner_id, event_id);

CREATE TABLE IF NOT EXISTS qa_history (
    id BIGSERIAL PRIMARY KEY,
    owner_id TEXT NOT NULL,
    event_id UUID NOT NULL REFERENCES events (id) ON DELETE CASCADE,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    source_keys TEXT[] NOT NULL DEFAULT '{}',
    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
);
CREATE INDEX IF NOT EXISTS qa_history_scope_idx
    ON qa_history (owner_id, event_id, created_at DESC);
"""


def parse_event_id(event_id: str) -> uuid.UUID:
    """
    Parse an event id, treating malformed ids as an invalid scope.

    Args:
        event_id: Event id as received from the caller.

    Returns:
        Parsed UUID.

    Raises:
        InvalidScopeError: If the id is not a UUID.
    """
    try:
        return uuid.UUID(str(event_id))
    except ValueError as e:
        raise InvalidScopeError(f"Invalid event id: {event_id}") from e


def _row_to_document(row) -> Document:
    result = dict(row)
    result["event_id"] = str(result["event_id"])
    return Document(**result)


class DatabaseService:
    """Service for PostgreSQL database operations."""

    def __init__(self) -> None:
        """Initialize database service."""
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Create connection pool and make sure the schema exists."""
        try:
            self.pool = await asyncpg.create_pool(
                settings.postgres_url,
                min_size=settings.postgres_pool_min_size,
                max_size=settings.postgres_pool_max_size,
                command_timeout=settings.postgres_command_timeout_seconds,
            )
            async with self.pool.acquire() as conn:
                await conn.execute(SCHEMA)
        except Exception as e:
            raise DatabaseError(
                f"Failed to connect to database: {str(e)}") from e

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()

    def require_pool(self) -> asyncpg.Pool:
        if not self.pool:
            raise DatabaseError("Database not connected")
        return self.pool

    async def create_document(
        self,
        key: str,
        owner_id: str,
        event_id: str,
        original_filename: str,
        mimetype: Optional[str] = None,
        size: Optional[int] = None,
    ) -> Document:
        """
        Register a new document.

        Args:
            key: Owner-namespaced document key.
            owner_id: Owner identity.
            event_id: Event the document belongs to.
            original_filename: Name of the uploaded file.
            mimetype: Content type reported by the upload.
            size: Size of the upload in bytes.

        Returns:
            Created document.
        """
        pool = self.require_pool()
        event_uuid = parse_event_id(event_id)

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO documents (key, owner_id, event_id, original_filename, mimetype, size)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    RETURNING key, owner_id, event_id, original_filename, mimetype, size, created_at
                    """,
                    key,
                    owner_id,
                    event_uuid,
                    original_filename,
                    mimetype,
                    size,
                )
                return _row_to_document(row)
        except Exception as e:
            raise DatabaseError(f"Failed to create document: {str(e)}") from e

    async def list_documents(self, owner_id: str, event_id: str) -> List[Document]:
        """
        List an event's documents, newest first.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.

        Returns:
            List of documents.
        """
        pool = self.require_pool()
        event_uuid = parse_event_id(event_id)

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT key, owner_id, event_id, original_filename, mimetype, size, created_at
                    FROM documents
                    WHERE owner_id = $1 AND event_id = $2
                    ORDER BY created_at DESC
                    """,
                    owner_id,
                    event_uuid,
                )
                return [_row_to_document(row) for row in rows]
        except Exception as e:
            raise DatabaseError(f"Failed to fetch documents: {str(e)}") from e

    async def get_document(self, owner_id: str, key: str) -> Optional[Document]:
        """
        Get a single document by key.

        Args:
            owner_id: Owner identity.
            key: Document key.

        Returns:
            Document or None if not found.
        """
        pool = self.require_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT key, owner_id, event_id, original_filename, mimetype, size, created_at
                    FROM documents
                    WHERE owner_id = $1 AND key = $2
                    """,
                    owner_id,
                    key,
                )
                if row:
                    return _row_to_document(row)
                return None
        except Exception as e:
            raise DatabaseError(f"Failed to fetch document: {str(e)}") from e

    async def delete_document(self, owner_id: str, key: str) -> bool:
        """
        Delete a document's metadata.

        Args:
            owner_id: Owner identity.
            key: Document key.

        Returns:
            True if deleted, False if not found.
        """
        pool = self.require_pool()

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM documents WHERE owner_id = $1 AND key = $2",
                    owner_id,
                    key,
                )
                return result == "DELETE 1"
        except Exception as e:
            raise DatabaseError(f"Failed to delete document: {str(e)}") from e
