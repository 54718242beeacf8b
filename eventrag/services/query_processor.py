"""Query processing service for RAG questions."""

import logging
from typing import List, Optional

from eventrag.core.config import settings
from eventrag.core.exceptions import CacheError, EmptyScopeError, InvalidRequestError
from eventrag.models.response import AnswerResult
from eventrag.monitoring.metrics import retrieved_chunks
from eventrag.services.answer_composer import AnswerComposer
from eventrag.services.cache import CacheService
from eventrag.services.embedding import EmbeddingService
from eventrag.services.events import EventService
from eventrag.services.history import HistoryService
from eventrag.services.similarity import top_k as rank_top_k
from eventrag.services.vector_db import VectorDBService

logger = logging.getLogger(__name__)


class QueryProcessor:
    """Answers questions against one owner's event.

    The steps run strictly in sequence: embed, fetch scope, rank, compose,
    record. A failure at any step aborts the question and nothing is written
    to history.
    """

    def __init__(
        self,
        vector_db: VectorDBService,
        embedding_service: EmbeddingService,
        composer: AnswerComposer,
        history_service: HistoryService,
        event_service: EventService,
        cache_service: Optional[CacheService] = None,
        top_k: Optional[int] = None,
    ) -> None:
        """
        Initialize query processor.

        Args:
            vector_db: Vector database service.
            embedding_service: Embedding generation service.
            composer: Answer composer.
            history_service: History recorder.
            event_service: Event registry used for scope checks.
            cache_service: Optional cache for question embeddings.
            top_k: Default number of chunks kept after ranking.
        """
        self.vector_db = vector_db
        self.embedding_service = embedding_service
        self.composer = composer
        self.history_service = history_service
        self.event_service = event_service
        self.cache_service = cache_service
        self.top_k = settings.top_k if top_k is None else top_k

    async def _embed_question(self, question: str) -> List[float]:
        model = self.embedding_service.model
        if self.cache_service is not None:
            cached = await self.cache_service.get_embedding(model, question)
            if cached is not None:
                logger.debug("Embedding cache hit")
                return cached

        vector = await self.embedding_service.generate_embedding(question)

        if self.cache_service is not None:
            try:
                await self.cache_service.set_embedding(model, question, vector)
            except CacheError as e:
                logger.warning(f"Could not cache question embedding: {str(e)}")
        return vector

    async def answer_question(
        self,
        owner_id: str,
        event_id: str,
        question: str,
        top_k: Optional[int] = None,
    ) -> AnswerResult:
        """
        Answer a question from the event's documents and record it.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.
            question: Question text.
            top_k: Number of ranked chunks to keep.

        Returns:
            Answer with source document keys.

        Raises:
            InvalidRequestError: If the question is blank.
            InvalidScopeError: If the event does not belong to the owner.
            EmptyScopeError: If the event has no chunks.
            EmbeddingError: If the question could not be embedded.
            LLMError: If answer generation fails.
        """
        question = question.strip()
        if not question:
            raise InvalidRequestError("No question provided")

        await self.event_service.require(owner_id, event_id)

        query_vector = await self._embed_question(question)
        candidates = await self.vector_db.fetch_scope(owner_id, event_id)
        retrieved_chunks.observe(len(candidates))
        if not candidates:
            raise EmptyScopeError(
                f"Event {event_id} has no ingested documents to answer from")

        ranked = rank_top_k(
            query_vector, candidates, self.top_k if top_k is None else top_k)
        composed = await self.composer.compose(question, ranked)

        record = await self.history_service.record(
            owner_id, event_id, question, composed.answer, composed.source_keys
        )

        logger.info(
            f"Answered question for event {event_id} from {len(candidates)} chunk(s), "
            f"sources={composed.source_keys}"
        )
        return AnswerResult(
            answer=composed.answer,
            source_keys=composed.source_keys,
            grounded=composed.grounded,
            scores=[item.score for item in ranked[:composed.context_chunks]],
            record_id=record.id,
            created_at=record.created_at,
        )
