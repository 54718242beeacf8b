"""Document and chunk models for the RAG system."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """Document model representing one uploaded source file."""

    key: str
    owner_id: str
    event_id: str
    original_filename: str
    mimetype: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    created_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class Chunk(BaseModel):
    """Chunk model representing an embedded document fragment."""

    id: str
    document_key: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)
    content: str
    chunk_index: int = Field(default=0, ge=0)
    vector: List[float] = Field(min_length=1)
    created_at: datetime


class ScoredChunk(BaseModel):
    """A chunk paired with its similarity to a query vector."""

    chunk: Chunk
    score: float
