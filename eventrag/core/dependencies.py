"""Dependency injection for services."""

import logging
from typing import Optional

from fastapi import Header, HTTPException

from eventrag.core.exceptions import CacheError, DatabaseError, VectorDBError
from eventrag.services.answer_composer import AnswerComposer
from eventrag.services.cache import CacheService
from eventrag.services.chunking import ChunkingService
from eventrag.services.database import DatabaseService
from eventrag.services.embedding import EmbeddingService
from eventrag.services.events import EventService
from eventrag.services.history import HistoryService
from eventrag.services.ingest_processor import IngestProcessor
from eventrag.services.llm import LLMService
from eventrag.services.query_processor import QueryProcessor
from eventrag.services.retry import retry_with_backoff
from eventrag.services.vector_db import VectorDBService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for service instances.

    External clients are built here once and injected into the processors.
    """

    def __init__(self) -> None:
        """Initialize service container."""
        self.vector_db = VectorDBService()
        self.embedding_service = EmbeddingService()
        self.chunking_service = ChunkingService()
        self.cache_service = CacheService()
        self.llm_service = LLMService()
        self.database = DatabaseService()
        self.event_service = EventService(self.database)
        self.history_service = HistoryService(self.database)
        self.composer = AnswerComposer(self.llm_service)
        self.ingest_processor = IngestProcessor(
            vector_db=self.vector_db,
            embedding_service=self.embedding_service,
            chunking_service=self.chunking_service,
            event_service=self.event_service,
            database=self.database,
            history_service=self.history_service,
        )
        self.query_processor = QueryProcessor(
            vector_db=self.vector_db,
            embedding_service=self.embedding_service,
            composer=self.composer,
            history_service=self.history_service,
            event_service=self.event_service,
            cache_service=self.cache_service,
        )

    async def initialize(self) -> None:
        """Initialize all services."""
        await retry_with_backoff(self.vector_db.connect, exceptions=(VectorDBError,))
        await retry_with_backoff(self.database.connect, exceptions=(DatabaseError,))
        try:
            await self.cache_service.connect()
        except CacheError as e:
            # Embedding cache is optional
            logger.warning(f"Cache unavailable, continuing without it: {str(e)}")
            self.cache_service.client = None

    async def shutdown(self) -> None:
        """Shutdown all services."""
        await self.database.disconnect()
        await self.vector_db.disconnect()
        await self.cache_service.disconnect()


services = ServiceContainer()


async def get_owner_id(
    x_user_email: Optional[str] = Header(default=None),
) -> str:
    """
    Resolve the caller's owner identity.

    The identity provider sits in front of the service and forwards a
    verified email in the ``X-User-Email`` header.
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_email.strip()
