"""Health check utilities."""

from typing import Dict

from eventrag.core.dependencies import ServiceContainer
from eventrag.services.health import (
    check_openai,
    check_postgres,
    check_qdrant,
    check_redis,
)


def _healthy(status: Dict) -> bool:
    return status.get("status") in ("healthy", "disabled")


async def check_all_dependencies(
    services: ServiceContainer, include_openai: bool = True
) -> Dict:
    """
    Check all service dependencies.

    Args:
        services: Service container.
        include_openai: Whether to call the OpenAI API.

    Returns:
        Dictionary with overall status and individual service statuses.
    """
    statuses = {
        "qdrant": await check_qdrant(services.vector_db),
        "postgres": await check_postgres(services.database),
        "redis": await check_redis(services.cache_service),
    }
    if include_openai:
        statuses["openai"] = await check_openai(services.embedding_service)

    overall_status = "healthy"
    if not all(_healthy(status) for status in statuses.values()):
        overall_status = "unhealthy"

    return {"status": overall_status, "services": statuses}


async def check_readiness(services: ServiceContainer) -> Dict:
    """
    Check service readiness.

    Args:
        services: Service container.

    Returns:
        Readiness status dictionary.
    """
    qdrant_ready = _healthy(await check_qdrant(services.vector_db))
    postgres_ready = _healthy(await check_postgres(services.database))
    redis_ready = _healthy(await check_redis(services.cache_service))

    return {
        "ready": qdrant_ready and postgres_ready and redis_ready,
        "qdrant": qdrant_ready,
        "postgres": postgres_ready,
        "redis": redis_ready,
    }
