"""Ingest processing: chunk, embed and store documents for an event."""

import logging
import os
import time
import uuid
from typing import Optional

from eventrag.core.config import settings
from eventrag.core.exceptions import (
    DocumentNotFoundError,
    PartialIngestionError,
    RAGError,
    UnsupportedFormatError,
)
from eventrag.models.response import DeleteResult, IngestResult
from eventrag.monitoring.metrics import (
    chunks_ingested_total,
    ingest_duration_seconds,
    ingest_errors_total,
    ingests_total,
)
from eventrag.services.chunking import ChunkingService
from eventrag.services.database import DatabaseService
from eventrag.services.embedding import EmbeddingService
from eventrag.services.events import EventService
from eventrag.services.history import HistoryService
from eventrag.services.vector_db import VectorDBService

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md", ".pdf", ".docx", ".csv", ".xlsx", ".xls")


def build_document_key(owner_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    """
    Build an owner-namespaced document key.

    Args:
        owner_id: Owner identity, used as the key prefix.
        filename: Original file name.
        now_ms: Upload time in epoch milliseconds.

    Returns:
        Key of the form ``<owner>/<epoch_ms>_<nonce>_<filename>``.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    base_name = os.path.basename(filename.replace("\\", "/"))
    return f"{owner_id}/{now_ms}_{uuid.uuid4().hex[:8]}_{base_name}"


def check_supported(filename: str) -> None:
    """
    Raise if the file extension cannot be ingested.

    Raises:
        UnsupportedFormatError: For any extension outside SUPPORTED_EXTENSIONS.
    """
    if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise UnsupportedFormatError(f"Unsupported file type: {filename}")


class IngestProcessor:
    """Processes document ingestion and deletion."""

    def __init__(
        self,
        vector_db: VectorDBService,
        embedding_service: EmbeddingService,
        chunking_service: ChunkingService,
        event_service: EventService,
        database: DatabaseService,
        history_service: HistoryService,
        batch_size: Optional[int] = None,
    ) -> None:
        """
        Initialize ingest processor.

        Args:
            vector_db: Vector database service.
            embedding_service: Embedding generation service.
            chunking_service: Document chunking service.
            event_service: Event registry used for scope checks.
            database: Document registry.
            history_service: History store, cleaned up on document deletion.
            batch_size: Number of chunks embedded per provider call.
        """
        self.vector_db = vector_db
        self.embedding_service = embedding_service
        self.chunking_service = chunking_service
        self.event_service = event_service
        self.database = database
        self.history_service = history_service
        self.batch_size = batch_size or settings.embedding_batch_size

    async def ingest_document(
        self,
        owner_id: str,
        event_id: str,
        document_key: str,
        raw_text: str,
        chunk_size: Optional[int] = None,
    ) -> IngestResult:
        """
        Chunk, embed and store a document's text.

        Chunks are embedded in batches and inserted in source order. When a
        failure happens after some chunks were stored they are left in place
        and PartialIngestionError is raised.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.
            document_key: Key of the document being ingested.
            raw_text: Extracted document text.
            chunk_size: Optional override of the chunk size.

        Returns:
            Ingest result with the number of chunks stored.

        Raises:
            InvalidScopeError: If the event does not belong to the owner.
            PartialIngestionError: If ingestion stopped midway.
            EmbeddingError: If the first embedding call fails.
            VectorDBError: If the first insert fails.
        """
        await self.event_service.require(owner_id, event_id)

        start_time = time.time()
        chunks = self.chunking_service.chunk_document(
            raw_text, document_key, chunk_size)
        if not chunks:
            logger.warning(f"No chunks generated for document {document_key}")
            return IngestResult(document_key=document_key, chunk_count=0)

        inserted = 0
        try:
            for start in range(0, len(chunks), self.batch_size):
                batch = chunks[start:start + self.batch_size]
                embeddings = await self.embedding_service.generate_embeddings(
                    [chunk["content"] for chunk in batch]
                )
                for chunk, embedding in zip(batch, embeddings):
                    await self.vector_db.insert(
                        owner_id,
                        event_id,
                        document_key,
                        chunk["content"],
                        embedding,
                        chunk_index=chunk["chunk_index"],
                    )
                    inserted += 1
        except RAGError as e:
            ingest_errors_total.labels(code=e.code).inc()
            chunks_ingested_total.inc(inserted)
            if inserted == 0:
                logger.error(
                    f"Failed to ingest document {document_key}: {str(e)}")
                raise
            logger.error(
                f"Ingestion of {document_key} stopped after {inserted}/{len(chunks)} chunks: {str(e)}"
            )
            raise PartialIngestionError(
                f"Stored {inserted} of {len(chunks)} chunks before failing: {e.message}",
                chunks_inserted=inserted,
                chunks_total=len(chunks),
                cause=e,
            ) from e

        processing_time = time.time() - start_time
        ingests_total.inc()
        chunks_ingested_total.inc(inserted)
        ingest_duration_seconds.observe(processing_time)
        logger.info(
            f"Ingested document {document_key} ({inserted} chunks) in {processing_time:.2f}s"
        )
        return IngestResult(document_key=document_key, chunk_count=inserted)

    async def ingest_upload(
        self,
        owner_id: str,
        event_id: str,
        filename: str,
        content: str,
        mimetype: Optional[str] = None,
        size: Optional[int] = None,
    ) -> IngestResult:
        """
        Register an uploaded file and ingest its extracted text.

        The document row is removed again if not a single chunk could be stored.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.
            filename: Original file name.
            content: Extracted text.
            mimetype: Content type reported by the upload.
            size: Upload size in bytes.

        Returns:
            Ingest result.
        """
        check_supported(filename)
        await self.event_service.require(owner_id, event_id)

        document_key = build_document_key(owner_id, filename)
        await self.database.create_document(
            key=document_key,
            owner_id=owner_id,
            event_id=event_id,
            original_filename=filename,
            mimetype=mimetype,
            size=size,
        )

        try:
            return await self.ingest_document(owner_id, event_id, document_key, content)
        except PartialIngestionError:
            raise
        except RAGError:
            await self.database.delete_document(owner_id, document_key)
            raise

    async def delete_document(
        self, owner_id: str, event_id: str, document_key: str
    ) -> DeleteResult:
        """
        Delete a document with its chunks and the history that cites it.

        Args:
            owner_id: Owner identity.
            event_id: Event the document belongs to.
            document_key: Key of the document.

        Returns:
            Counts of removed records.

        Raises:
            InvalidScopeError: If the event does not belong to the owner.
            DocumentNotFoundError: If the document is not part of the event.
        """
        await self.event_service.require(owner_id, event_id)
        document = await self.database.get_document(owner_id, document_key)
        if document is None or document.event_id != event_id:
            raise DocumentNotFoundError(
                f"Document {document_key} not found in event {event_id}")

        chunks_deleted = await self.vector_db.delete_by_document(owner_id, document_key)
        history_deleted = await self.history_service.delete_for_document(
            owner_id, document_key)
        document_deleted = await self.database.delete_document(owner_id, document_key)

        logger.info(
            f"Deleted document {document_key}: {chunks_deleted} chunks, "
            f"{history_deleted} history records"
        )
        return DeleteResult(
            document_key=document_key,
            document_deleted=document_deleted,
            chunks_deleted=chunks_deleted,
            history_deleted=history_deleted,
        )

    async def delete_event(self, owner_id: str, event_id: str) -> int:
        """
        Delete an event and everything stored under it.

        Args:
            owner_id: Owner identity.
            event_id: Event id.

        Returns:
            Number of chunks removed from the vector store.
        """
        await self.event_service.require(owner_id, event_id)
        chunks_deleted = await self.vector_db.delete_by_event(owner_id, event_id)
        await self.event_service.delete(owner_id, event_id)
        logger.info(
            f"Deleted event {event_id} with {chunks_deleted} chunks")
        return chunks_deleted
