"""Result models returned by the ingest and query pipelines."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ComposedAnswer(BaseModel):
    """Answer produced by the composer together with its provenance."""

    answer: str = Field(description="The answer to the user's question")
    source_keys: List[str] = Field(
        default_factory=list,
        description="Distinct document keys used as context, in rank order",
    )
    grounded: bool = Field(
        default=True,
        description="False when no context was available and generation was skipped",
    )
    context_chunks: int = 0


class AnswerResult(BaseModel):
    """Outcome of answering a question against an event."""

    answer: str
    source_keys: List[str] = Field(default_factory=list)
    grounded: bool = True
    scores: List[float] = Field(default_factory=list)
    record_id: Optional[int] = None
    created_at: Optional[datetime] = None


class IngestResult(BaseModel):
    """Outcome of ingesting one document."""

    document_key: str
    chunk_count: int


class DeleteResult(BaseModel):
    """Counts of records removed when a document is deleted."""

    document_key: str
    document_deleted: bool
    chunks_deleted: int
    history_deleted: int
