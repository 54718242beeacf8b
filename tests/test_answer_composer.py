"""Tests for context assembly and the answer composer."""

from unittest.mock import AsyncMock

import pytest

from eventrag.core.exceptions import LLMError
from eventrag.models.document import ScoredChunk
from eventrag.services.answer_composer import (
    NO_RELEVANT_CONTENT_ANSWER,
    AnswerComposer,
)
from factories import make_chunk


def scored(document_key: str, content: str, score: float) -> ScoredChunk:
    return ScoredChunk(
        chunk=make_chunk([1.0, 0.0, 0.0], document_key=document_key, content=content),
        score=score,
    )


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Provide a mocked LLMService."""
    llm = AsyncMock()
    llm.generate_answer = AsyncMock(return_value="Grounded answer.")
    return llm


class TestCompose:
    """Answer composition."""

    @pytest.mark.asyncio
    async def test_empty_chunks_skip_generation(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5)

        result = await composer.compose("Anything?", [])

        assert result.answer == NO_RELEVANT_CONTENT_ANSWER
        assert result.source_keys == []
        assert result.grounded is False
        mock_llm.generate_answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_context_prefixes_source_keys(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5)

        await composer.compose(
            "Q?", [scored("doc-a", "alpha", 0.9), scored("doc-b", "beta", 0.8)])

        question, context = mock_llm.generate_answer.call_args.args
        assert question == "Q?"
        assert context == "[Source: doc-a]\nalpha\n\n[Source: doc-b]\nbeta"

    @pytest.mark.asyncio
    async def test_limits_to_max_context_chunks(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=2)
        ranked = [scored(f"doc-{i}", f"text {i}", 1.0 - i / 10) for i in range(5)]

        result = await composer.compose("Q?", ranked)

        assert result.source_keys == ["doc-0", "doc-1"]
        assert result.context_chunks == 2
        context = mock_llm.generate_answer.call_args.args[1]
        assert "doc-2" not in context

    @pytest.mark.asyncio
    async def test_per_call_limit_override(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5)
        ranked = [scored(f"doc-{i}", f"text {i}", 1.0 - i / 10) for i in range(5)]

        result = await composer.compose("Q?", ranked, max_context_chunks=1)

        assert result.source_keys == ["doc-0"]

    @pytest.mark.asyncio
    async def test_explicit_zero_chunk_limit_skips_generation(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=0)

        result = await composer.compose("Q?", [scored("doc-a", "alpha", 0.9)])

        assert composer.max_context_chunks == 0
        assert result.answer == NO_RELEVANT_CONTENT_ANSWER
        assert result.grounded is False
        mock_llm.generate_answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_per_call_zero_limit_is_not_the_default(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5)

        result = await composer.compose("Q?", [scored("doc-a", "alpha", 0.9)], max_context_chunks=0)

        assert result.source_keys == []
        mock_llm.generate_answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_source_keys_distinct_in_rank_order(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5)
        ranked = [
            scored("doc-b", "b1", 0.9),
            scored("doc-a", "a1", 0.8),
            scored("doc-b", "b2", 0.7),
        ]

        result = await composer.compose("Q?", ranked)

        assert result.answer == "Grounded answer."
        assert result.source_keys == ["doc-b", "doc-a"]
        assert result.grounded is True

    @pytest.mark.asyncio
    async def test_generation_failure_propagates(self, mock_llm: AsyncMock) -> None:
        mock_llm.generate_answer.side_effect = LLMError("down")
        composer = AnswerComposer(mock_llm)

        with pytest.raises(LLMError):
            await composer.compose("Q?", [scored("doc-a", "alpha", 0.9)])


class TestBuildContext:
    """Character bound on the context block."""

    def test_truncates_block_that_does_not_fit(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5, max_context_chars=300)
        ranked = [scored("doc-a", "a" * 150, 0.9), scored("doc-b", "b" * 500, 0.8)]

        context, used = composer.build_context(ranked)

        assert len(context) == 300
        assert [item.chunk.document_key for item in used] == ["doc-a", "doc-b"]

    def test_zero_char_limit_uses_nothing(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5, max_context_chars=0)

        context, used = composer.build_context([scored("doc-a", "alpha", 0.9)])

        assert context == ""
        assert used == []

    def test_drops_block_when_little_space_left(self, mock_llm: AsyncMock) -> None:
        composer = AnswerComposer(mock_llm, max_context_chunks=5, max_context_chars=200)
        ranked = [scored("doc-a", "a" * 150, 0.9), scored("doc-b", "b" * 500, 0.8)]

        context, used = composer.build_context(ranked)

        assert "doc-b" not in context
        assert [item.chunk.document_key for item in used] == ["doc-a"]
