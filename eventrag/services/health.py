"""Health check service for dependency verification."""

import time
from typing import Any, Dict

from eventrag.services.cache import CacheService
from eventrag.services.database import DatabaseService
from eventrag.services.embedding import EmbeddingService
from eventrag.services.vector_db import VectorDBService


async def check_qdrant(vector_db: VectorDBService) -> Dict[str, Any]:
    """
    Check Qdrant connectivity and health.

    Args:
        vector_db: VectorDBService instance.

    Returns:
        Health status dictionary.
    """
    try:
        start_time = time.time()
        if not vector_db.client:
            return {"status": "unhealthy", "error": "Not connected", "latency_ms": 0}

        collections = await vector_db.client.get_collections()
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
            "collections": len(collections.collections),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": 0,
        }


async def check_redis(cache_service: CacheService) -> Dict[str, Any]:
    """
    Check Redis connectivity and health.

    Args:
        cache_service: CacheService instance.

    Returns:
        Health status dictionary. A disabled cache reports "disabled".
    """
    if not cache_service.enabled:
        return {"status": "disabled"}
    try:
        start_time = time.time()
        if not cache_service.client:
            return {"status": "unhealthy", "error": "Not connected", "latency_ms": 0}

        await cache_service.client.ping()
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": 0,
        }


async def check_postgres(database: DatabaseService) -> Dict[str, Any]:
    """
    Check PostgreSQL connectivity.

    Args:
        database: DatabaseService instance.

    Returns:
        Health status dictionary.
    """
    try:
        start_time = time.time()
        if not database.pool:
            return {"status": "unhealthy", "error": "Not connected", "latency_ms": 0}

        async with database.pool.acquire() as conn:
            await conn.execute("SELECT 1")
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": 0,
        }


async def check_openai(embedding_service: EmbeddingService) -> Dict[str, Any]:
    """
    Check OpenAI API connectivity.

    Args:
        embedding_service: EmbeddingService whose client is probed.

    Returns:
        Health status dictionary.
    """
    try:
        start_time = time.time()
        await embedding_service.client.models.list()
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": 0,
        }
