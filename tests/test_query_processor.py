"""Tests for the question answering pipeline."""

from unittest.mock import AsyncMock

import pytest

from eventrag.core.exceptions import (
    CacheError,
    EmbeddingError,
    EmptyScopeError,
    InvalidRequestError,
    InvalidScopeError,
    LLMError,
)
from eventrag.models.history import QARecord
from eventrag.services.answer_composer import AnswerComposer
from eventrag.services.chunking import ChunkingService
from eventrag.services.ingest_processor import IngestProcessor
from eventrag.services.query_processor import QueryProcessor
from eventrag.services.vector_db import VectorDBService
from factories import BASE_TIME, EVENT_X, EVENT_Y, OWNER_A, OWNER_B, FakeEmbeddingService

DOC_KEY = f"{OWNER_A}/1700000000000_abcd1234_program.txt"
QUESTION = "What happens in the B session?"

VECTORS = {
    "AAAA ": [1.0, 0.0, 0.0],
    "BBBB ": [0.0, 1.0, 0.0],
    "CCCC": [0.0, 0.0, 1.0],
    QUESTION: [0.1, 0.9, 0.0],
}


class FailingEmbeddingService(FakeEmbeddingService):
    async def generate_embeddings(self, texts):
        raise EmbeddingError("provider unavailable")


@pytest.fixture
def embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService(VECTORS)


@pytest.fixture
def llm() -> AsyncMock:
    service = AsyncMock()
    service.generate_answer = AsyncMock(return_value="The B session covers BBBB.")
    return service


@pytest.fixture
def event_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def history_service() -> AsyncMock:
    history = AsyncMock()

    async def record(owner_id, event_id, question, answer, source_keys):
        return QARecord(
            id=1, owner_id=owner_id, event_id=event_id, question=question,
            answer=answer, source_keys=list(source_keys), created_at=BASE_TIME,
        )

    history.record.side_effect = record
    return history


def make_processor(
    vector_store: VectorDBService,
    embeddings,
    llm: AsyncMock,
    history_service: AsyncMock,
    event_service: AsyncMock,
    cache_service=None,
) -> QueryProcessor:
    return QueryProcessor(
        vector_db=vector_store,
        embedding_service=embeddings,
        composer=AnswerComposer(llm, max_context_chunks=1),
        history_service=history_service,
        event_service=event_service,
        cache_service=cache_service,
        top_k=3,
    )


async def ingest_program(vector_store, embeddings, event_service, owner=OWNER_A, event=EVENT_X):
    processor = IngestProcessor(
        vector_db=vector_store,
        embedding_service=embeddings,
        chunking_service=ChunkingService(chunk_size=5, strategy="fixed"),
        event_service=event_service,
        database=AsyncMock(),
        history_service=AsyncMock(),
    )
    await processor.ingest_document(owner, event, DOC_KEY, "AAAA BBBB CCCC")


class TestAnswerQuestion:
    """End-to-end answering."""

    @pytest.mark.asyncio
    async def test_answers_from_closest_chunk(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        result = await processor.answer_question(OWNER_A, EVENT_X, QUESTION)

        assert result.answer == "The B session covers BBBB."
        assert result.source_keys == [DOC_KEY]
        assert result.grounded is True
        assert result.record_id == 1
        assert len(result.scores) == 1
        context = llm.generate_answer.call_args.args[1]
        assert "BBBB " in context
        assert "AAAA" not in context
        history_service.record.assert_awaited_once_with(
            OWNER_A, EVENT_X, QUESTION, "The B session covers BBBB.", [DOC_KEY])

    @pytest.mark.asyncio
    async def test_question_is_trimmed(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        await processor.answer_question(OWNER_A, EVENT_X, f"  {QUESTION}\n")

        assert embeddings.calls[-1] == [QUESTION]

    @pytest.mark.asyncio
    async def test_blank_question_rejected(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        with pytest.raises(InvalidRequestError):
            await processor.answer_question(OWNER_A, EVENT_X, "   ")
        assert embeddings.calls == []

    @pytest.mark.asyncio
    async def test_empty_scope(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        with pytest.raises(EmptyScopeError) as exc_info:
            await processor.answer_question(OWNER_A, EVENT_X, QUESTION)

        assert exc_info.value.code == "empty_scope"
        llm.generate_answer.assert_not_called()
        history_service.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_owners_chunks_never_used(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service, owner=OWNER_B)
        await ingest_program(vector_store, embeddings, event_service, event=EVENT_Y)
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        with pytest.raises(EmptyScopeError):
            await processor.answer_question(OWNER_A, EVENT_X, QUESTION)

    @pytest.mark.asyncio
    async def test_invalid_scope(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        event_service.require.side_effect = InvalidScopeError("not yours")
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        with pytest.raises(InvalidScopeError):
            await processor.answer_question(OWNER_B, EVENT_X, QUESTION)
        assert embeddings.calls == []


class TestFailuresWriteNoHistory:
    """A failed question leaves no history record."""

    @pytest.mark.asyncio
    async def test_generation_failure(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        llm.generate_answer.side_effect = LLMError("model down")
        processor = make_processor(vector_store, embeddings, llm, history_service, event_service)

        with pytest.raises(LLMError):
            await processor.answer_question(OWNER_A, EVENT_X, QUESTION)
        history_service.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_embedding_failure(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        processor = make_processor(
            vector_store, FailingEmbeddingService({}), llm, history_service, event_service)

        with pytest.raises(EmbeddingError):
            await processor.answer_question(OWNER_A, EVENT_X, QUESTION)
        llm.generate_answer.assert_not_called()
        history_service.record.assert_not_called()


class TestEmbeddingCache:
    """Question embeddings are served from the cache when present."""

    @pytest.mark.asyncio
    async def test_cache_hit_skips_provider(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        calls_after_ingest = len(embeddings.calls)
        cache = AsyncMock()
        cache.get_embedding.return_value = [0.0, 1.0, 0.0]
        processor = make_processor(
            vector_store, embeddings, llm, history_service, event_service, cache_service=cache)

        result = await processor.answer_question(OWNER_A, EVENT_X, QUESTION)

        assert result.source_keys == [DOC_KEY]
        assert len(embeddings.calls) == calls_after_ingest
        cache.set_embedding.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_write_failure_is_ignored(
        self, vector_store, embeddings, llm, history_service, event_service
    ) -> None:
        await ingest_program(vector_store, embeddings, event_service)
        cache = AsyncMock()
        cache.get_embedding.return_value = None
        cache.set_embedding.side_effect = CacheError("redis down")
        processor = make_processor(
            vector_store, embeddings, llm, history_service, event_service, cache_service=cache)

        result = await processor.answer_question(OWNER_A, EVENT_X, QUESTION)

        assert result.answer == "The B session covers BBBB."
        cache.set_embedding.assert_awaited_once_with(
            embeddings.model, QUESTION, [0.1, 0.9, 0.0])
