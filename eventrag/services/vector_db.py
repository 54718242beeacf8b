"""Qdrant vector database service."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from eventrag.core.config import settings
from eventrag.core.exceptions import VectorDBError
from eventrag.models.document import Chunk
from eventrag.monitoring.metrics import malformed_chunks_total

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("owner_id", "event_id", "document_key")


def _match(key: str, value: str) -> FieldCondition:
    return FieldCondition(key=key, match=MatchValue(value=value))


class VectorDBService:
    """Service for interacting with Qdrant vector database.

    Every point carries ``owner_id`` and ``event_id`` in its payload and every
    read filters on both, so one owner's event never sees another's chunks.
    """

    def __init__(self, client: Optional[AsyncQdrantClient] = None) -> None:
        """
        Initialize the vector database service.

        Args:
            client: Preconfigured Qdrant client, e.g. an in-memory one for tests.
        """
        self.client: Optional[AsyncQdrantClient] = client
        self.collection_name = settings.qdrant_collection_name
        self.dimensions = settings.embedding_dimensions
        self.page_size = settings.scroll_page_size

    async def connect(self) -> None:
        """Connect to Qdrant."""
        try:
            if self.client is None:
                self.client = AsyncQdrantClient(
                    url=settings.qdrant_url,
                    timeout=settings.qdrant_timeout_seconds,
                )
            await self._ensure_collection()
        except Exception as e:
            raise VectorDBError(
                f"Failed to connect to Qdrant: {str(e)}") from e

    async def disconnect(self) -> None:
        """Disconnect from Qdrant."""
        if self.client:
            await self.client.close()

    def _require_client(self) -> AsyncQdrantClient:
        if not self.client:
            raise VectorDBError("Client not connected")
        return self.client

    async def _ensure_collection(self) -> None:
        """Ensure the collection and its payload indexes exist."""
        client = self._require_client()

        collections = await client.get_collections()
        collection_names = [col.name for col in collections.collections]

        if self.collection_name not in collection_names:
            await client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(
                    size=self.dimensions,
                    distance=Distance.COSINE,
                ),
            )
            for field in INDEXED_FIELDS:
                await client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field,
                    field_schema=PayloadSchemaType.KEYWORD,
                )
            logger.info(f"Created collection {self.collection_name}")

    async def insert(
        self,
        owner_id: str,
        event_id: str,
        document_key: str,
        content: str,
        vector: List[float],
        chunk_index: int = 0,
    ) -> str:
        """
        Append one chunk to the store.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.
            document_key: Key of the parent document.
            content: Chunk text.
            vector: Embedding vector.
            chunk_index: Position of the chunk in its document.

        Returns:
            ID of the new chunk.

        Raises:
            VectorDBError: If the vector has the wrong size or the write fails.
        """
        client = self._require_client()

        if len(vector) != self.dimensions:
            raise VectorDBError(
                f"Vector has {len(vector)} dimensions, expected {self.dimensions}"
            )

        chunk_id = str(uuid.uuid4())
        point = PointStruct(
            id=chunk_id,
            vector=vector,
            payload={
                "owner_id": owner_id,
                "event_id": event_id,
                "document_key": document_key,
                "content": content,
                "chunk_index": chunk_index,
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )

        try:
            await client.upsert(
                collection_name=self.collection_name, points=[point], wait=True
            )
        except Exception as e:
            raise VectorDBError(f"Failed to insert chunk: {str(e)}") from e
        return chunk_id

    def _to_chunk(self, point, owner_id: str, event_id: str) -> Optional[Chunk]:
        """Validate a stored point, returning None when it is malformed."""
        payload = point.payload or {}
        vector = point.vector
        if not isinstance(vector, list) or len(vector) != self.dimensions:
            return None
        if payload.get("owner_id") != owner_id or payload.get("event_id") != event_id:
            return None
        try:
            chunk = Chunk(
                id=str(point.id),
                document_key=payload.get("document_key"),
                owner_id=payload.get("owner_id"),
                event_id=payload.get("event_id"),
                content=payload.get("content"),
                chunk_index=payload.get("chunk_index", 0),
                vector=vector,
                created_at=payload.get("created_at"),
            )
        except ValidationError:
            return None
        # Naive timestamps cannot be ordered against the UTC ones written by insert
        if chunk.created_at.tzinfo is None:
            return None
        return chunk

    async def fetch_scope(self, owner_id: str, event_id: str) -> List[Chunk]:
        """
        Fetch every chunk of one owner's event.

        Malformed points are skipped and counted rather than returned.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.

        Returns:
            Chunks ordered by insertion time, then document and position.
        """
        client = self._require_client()
        scope_filter = Filter(
            must=[_match("owner_id", owner_id), _match("event_id", event_id)]
        )

        chunks: List[Chunk] = []
        skipped = 0
        offset = None
        try:
            while True:
                points, offset = await client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=scope_filter,
                    limit=self.page_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=True,
                )
                for point in points:
                    chunk = self._to_chunk(point, owner_id, event_id)
                    if chunk is None:
                        skipped += 1
                        continue
                    chunks.append(chunk)
                if offset is None:
                    break
        except Exception as e:
            raise VectorDBError(f"Failed to fetch chunks: {str(e)}") from e

        if skipped:
            malformed_chunks_total.inc(skipped)
            logger.warning(
                f"Skipped {skipped} malformed chunk(s) for owner={owner_id} event={event_id}"
            )

        chunks.sort(key=lambda c: (c.created_at, c.document_key, c.chunk_index))
        return chunks

    async def _count(self, points_filter: Filter) -> int:
        client = self._require_client()
        result = await client.count(
            collection_name=self.collection_name,
            count_filter=points_filter,
            exact=True,
        )
        return result.count

    async def _delete(self, points_filter: Filter) -> int:
        client = self._require_client()
        try:
            count = await self._count(points_filter)
            if count:
                await client.delete(
                    collection_name=self.collection_name,
                    points_selector=FilterSelector(filter=points_filter),
                    wait=True,
                )
            return count
        except Exception as e:
            raise VectorDBError(f"Failed to delete chunks: {str(e)}") from e

    async def count_scope(self, owner_id: str, event_id: str) -> int:
        """
        Count the chunks of one owner's event.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.

        Returns:
            Number of stored chunks.
        """
        try:
            return await self._count(
                Filter(must=[_match("owner_id", owner_id),
                             _match("event_id", event_id)])
            )
        except VectorDBError:
            raise
        except Exception as e:
            raise VectorDBError(f"Failed to count chunks: {str(e)}") from e

    async def delete_by_document(self, owner_id: str, document_key: str) -> int:
        """
        Delete all chunks for a document.

        Args:
            owner_id: Owner identity.
            document_key: Key of the document to delete.

        Returns:
            Number of chunks removed.
        """
        return await self._delete(
            Filter(must=[_match("owner_id", owner_id),
                         _match("document_key", document_key)])
        )

    async def delete_by_event(self, owner_id: str, event_id: str) -> int:
        """
        Delete all chunks of an event.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.

        Returns:
            Number of chunks removed.
        """
        return await self._delete(
            Filter(must=[_match("owner_id", owner_id),
                         _match("event_id", event_id)])
        )
