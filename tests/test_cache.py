"""Tests for the Redis embedding cache with a mocked client."""

import json
from unittest.mock import AsyncMock

import pytest

from eventrag.core.exceptions import CacheError
from eventrag.services.cache import CacheService


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def cache(redis_client: AsyncMock) -> CacheService:
    service = CacheService(client=redis_client)
    service.ttl = 60
    service.dimensions = 2
    return service


def test_embedding_key_depends_on_model_dimensions_and_text() -> None:
    key = CacheService.embedding_key("model-a", 2, "When?")
    assert key.startswith("embedding:model-a:2:")
    assert key == CacheService.embedding_key("model-a", 2, "When?")
    assert key != CacheService.embedding_key("model-b", 2, "When?")
    assert key != CacheService.embedding_key("model-a", 3, "When?")
    assert key != CacheService.embedding_key("model-a", 2, "Where?")


@pytest.mark.asyncio
async def test_set_embedding_uses_ttl(cache: CacheService, redis_client: AsyncMock) -> None:
    await cache.set_embedding("m", "q", [0.1, 0.2])

    key, ttl, value = redis_client.setex.call_args.args
    assert key == CacheService.embedding_key("m", 2, "q")
    assert ttl == 60
    assert json.loads(value) == [0.1, 0.2]


@pytest.mark.asyncio
async def test_get_embedding_hit(cache: CacheService, redis_client: AsyncMock) -> None:
    redis_client.get.return_value = "[0.5, 0.25]"

    assert await cache.get_embedding("m", "q") == [0.5, 0.25]
    redis_client.get.assert_awaited_once_with(CacheService.embedding_key("m", 2, "q"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "stored", [None, "", "not json", "{}", "[]", '["a", "b"]', "[0.1]", "[0.1, 0.2, 0.3]"]
)
async def test_unusable_entries_are_misses(
    cache: CacheService, redis_client: AsyncMock, stored
) -> None:
    redis_client.get.return_value = stored
    assert await cache.get_embedding("m", "q") is None


@pytest.mark.asyncio
async def test_read_errors_are_misses(cache: CacheService, redis_client: AsyncMock) -> None:
    redis_client.get.side_effect = ConnectionError("redis down")
    assert await cache.get_embedding("m", "q") is None


@pytest.mark.asyncio
async def test_write_errors_raise_cache_error(
    cache: CacheService, redis_client: AsyncMock
) -> None:
    redis_client.setex.side_effect = ConnectionError("redis down")
    with pytest.raises(CacheError):
        await cache.set_embedding("m", "q", [0.1, 0.2])


@pytest.mark.asyncio
async def test_without_client_is_noop() -> None:
    service = CacheService()
    assert await service.get_embedding("m", "q") is None
    await service.set_embedding("m", "q", [0.1])
