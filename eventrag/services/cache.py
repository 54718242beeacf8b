"""Redis caching service."""

import hashlib
import json
from typing import List, Optional

import redis.asyncio as redis

from eventrag.core.config import settings
from eventrag.core.exceptions import CacheError


class CacheService:
    """Service for caching question embeddings."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        """Initialize the cache service."""
        self.client: Optional[redis.Redis] = client
        self.ttl = settings.cache_ttl
        self.enabled = settings.cache_enabled
        self.dimensions = settings.embedding_dimensions

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return
        try:
            self.client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                max_connections=settings.redis_pool_size,
                socket_connect_timeout=5.0,
            )
            await self.client.ping()
        except Exception as e:
            raise CacheError(f"Failed to connect to Redis: {str(e)}") from e

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.client:
            await self.client.close()

    async def get(self, key: str) -> Optional[str]:
        """
        Get a value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found or unreachable.
        """
        if not self.client:
            return None
        try:
            return await self.client.get(key)
        except Exception:
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """
        Set a value in cache.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time to live in seconds.
        """
        if not self.client:
            return
        try:
            await self.client.setex(key, ttl or self.ttl, value)
        except Exception as e:
            raise CacheError(f"Failed to set cache: {str(e)}") from e

    @staticmethod
    def embedding_key(model: str, dimensions: int, text: str) -> str:
        text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"embedding:{model}:{dimensions}:{text_hash}"

    async def get_embedding(self, model: str, text: str) -> Optional[List[float]]:
        """
        Get a cached embedding.

        Args:
            model: Embedding model name.
            text: Embedded text.

        Returns:
            Vector, or None if absent, unreadable or of the wrong size.
        """
        value = await self.get(self.embedding_key(model, self.dimensions, text))
        if not value:
            return None
        try:
            vector = json.loads(value)
            if not isinstance(vector, list) or len(vector) != self.dimensions:
                return None
            return [float(x) for x in vector]
        except (json.JSONDecodeError, TypeError, ValueError):
            return None

    async def set_embedding(self, model: str, text: str, vector: List[float]) -> None:
        """
        Cache an embedding.

        Args:
            model: Embedding model name.
            text: Embedded text.
            vector: Embedding vector.
        """
        await self.set(
            self.embedding_key(model, self.dimensions, text), json.dumps(vector))
