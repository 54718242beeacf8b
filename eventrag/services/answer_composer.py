"""Context assembly and grounded answer generation."""

import logging
from typing import List, Optional, Sequence, Tuple

from eventrag.core.config import settings
from eventrag.models.document import ScoredChunk
from eventrag.models.response import ComposedAnswer
from eventrag.services.llm import SYSTEM_PROMPT, LLMService

logger = logging.getLogger(__name__)

NO_RELEVANT_CONTENT_ANSWER = (
    "I couldn't find relevant information in this event's documents to answer your question."
)
BLOCK_SEPARATOR = "\n\n"
MIN_TRUNCATED_CHARS = 100


def format_block(document_key: str, content: str) -> str:
    return f"[Source: {document_key}]\n{content}"


class AnswerComposer:
    """Builds a bounded context from ranked chunks and asks the LLM."""

    def __init__(
        self,
        llm_service: LLMService,
        max_context_chunks: Optional[int] = None,
        max_context_chars: Optional[int] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        """
        Initialize the composer.

        Args:
            llm_service: Text generation service.
            max_context_chunks: Default number of ranked chunks used as context.
            max_context_chars: Upper bound on the context length.
            system_prompt: Instruction sent with every question.
        """
        self.llm_service = llm_service
        self.max_context_chunks = (
            settings.max_context_chunks if max_context_chunks is None else max_context_chunks
        )
        self.max_context_chars = (
            settings.max_context_chars if max_context_chars is None else max_context_chars
        )
        self.system_prompt = system_prompt

    def build_context(
        self, ranked: Sequence[ScoredChunk]
    ) -> Tuple[str, List[ScoredChunk]]:
        """
        Build context from ranked chunks within the character limit.

        Args:
            ranked: Chunks in rank order.

        Returns:
            Tuple of (context string, chunks actually used).
        """
        blocks = []
        total_chars = 0
        used: List[ScoredChunk] = []

        for item in ranked:
            block = format_block(item.chunk.document_key, item.chunk.content)
            separator_length = len(BLOCK_SEPARATOR) if blocks else 0

            if total_chars + separator_length + len(block) <= self.max_context_chars:
                blocks.append(block)
                total_chars += separator_length + len(block)
                used.append(item)
            else:
                remaining_space = self.max_context_chars - total_chars - separator_length
                if remaining_space > MIN_TRUNCATED_CHARS:
                    blocks.append(block[:remaining_space])
                    used.append(item)
                break

        return BLOCK_SEPARATOR.join(blocks), used

    async def compose(
        self,
        question: str,
        ranked_chunks: Sequence[ScoredChunk],
        max_context_chunks: Optional[int] = None,
    ) -> ComposedAnswer:
        """
        Answer a question from ranked chunks.

        No generation call is made when there are no chunks.

        Args:
            question: User question.
            ranked_chunks: Chunks ordered by descending similarity.
            max_context_chunks: Override of the number of chunks used.

        Returns:
            Answer text with the distinct source document keys in rank order.

        Raises:
            LLMError: If generation fails.
        """
        limit = self.max_context_chunks if max_context_chunks is None else max_context_chunks
        selected = list(ranked_chunks)[:limit]
        if not selected:
            return ComposedAnswer(
                answer=NO_RELEVANT_CONTENT_ANSWER, source_keys=[], grounded=False
            )

        context, used = self.build_context(selected)
        if not used:
            return ComposedAnswer(
                answer=NO_RELEVANT_CONTENT_ANSWER, source_keys=[], grounded=False
            )

        source_keys: List[str] = []
        for item in used:
            if item.chunk.document_key not in source_keys:
                source_keys.append(item.chunk.document_key)

        answer = await self.llm_service.generate_answer(
            question, context, system_prompt=self.system_prompt
        )
        logger.debug(
            f"Composed answer from {len(used)} chunk(s) across {len(source_keys)} document(s)"
        )
        return ComposedAnswer(
            answer=answer,
            source_keys=source_keys,
            grounded=True,
            context_chunks=len(used),
        )
