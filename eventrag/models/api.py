"""Pydantic models for the HTTP API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from eventrag.models.document import Document
from eventrag.models.event import Event
from eventrag.models.history import QARecord


class EventCreate(BaseModel):
    """Model for creating an event."""

    name: str = Field(..., min_length=1, max_length=200)


class EventUpdate(BaseModel):
    """Model for renaming an event."""

    name: str = Field(..., min_length=1, max_length=200)


class EventArchive(BaseModel):
    """Model for archiving or restoring an event."""

    archived: bool


class EventListResponse(BaseModel):
    """Model for event list response."""

    events: List[Event]


class DocumentUpload(BaseModel):
    """Model for ingesting an uploaded file's extracted text."""

    filename: str = Field(..., min_length=1, max_length=500)
    content: str
    mimetype: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)


class DocumentListResponse(BaseModel):
    """Model for document list response."""

    documents: List[Document]
    total: int


class QuestionRequest(BaseModel):
    """Model for asking a question against an event."""

    question: str = Field(..., min_length=1)
    top_k: Optional[int] = Field(None, ge=1, le=50)


class AnswerResponse(BaseModel):
    """Model for an answered question."""

    answer: str
    source_keys: List[str]
    grounded: bool
    latency_ms: float
    created_at: Optional[datetime] = None


class HistoryResponse(BaseModel):
    """Model for history list response."""

    records: List[QARecord]


class ClearHistoryResponse(BaseModel):
    """Model for history deletion response."""

    deleted: int
