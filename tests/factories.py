"""Test data builders shared across test modules."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from eventrag.models.document import Chunk

TEST_DIMENSIONS = 3
OWNER_A = "alice@example.com"
OWNER_B = "bob@example.com"
EVENT_X = "6f1c1d1e-0000-4000-8000-000000000001"
EVENT_Y = "6f1c1d1e-0000-4000-8000-000000000002"

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_chunk(
    vector: List[float],
    document_key: str = "alice@example.com/1_doc.txt",
    content: str = "text",
    chunk_index: int = 0,
    owner_id: str = OWNER_A,
    event_id: str = EVENT_X,
) -> Chunk:
    """Build a chunk for ranking and composing tests."""
    return Chunk(
        id=str(uuid.uuid4()),
        document_key=document_key,
        owner_id=owner_id,
        event_id=event_id,
        content=content,
        chunk_index=chunk_index,
        vector=vector,
        created_at=BASE_TIME + timedelta(seconds=chunk_index),
    )


def make_history_row(
    record_id: int,
    question: str,
    answer: str,
    source_keys: List[str],
    seconds: int = 0,
    owner_id: str = OWNER_A,
    event_id: str = EVENT_X,
) -> dict:
    """Build a dict shaped like an asyncpg qa_history row."""
    return {
        "id": record_id,
        "owner_id": owner_id,
        "event_id": uuid.UUID(event_id),
        "question": question,
        "answer": answer,
        "source_keys": source_keys,
        "created_at": BASE_TIME + timedelta(seconds=seconds),
    }


def make_event_row(
    event_id: str = EVENT_X, owner_id: str = OWNER_A, name: str = "Conference"
) -> dict:
    """Build a dict shaped like an asyncpg events row."""
    return {
        "id": uuid.UUID(event_id),
        "owner_id": owner_id,
        "name": name,
        "archived": False,
        "created_at": BASE_TIME,
        "updated_at": BASE_TIME,
    }


class FakeEmbeddingService:
    """Deterministic embedding service mapping known texts to fixed vectors."""

    def __init__(self, vectors: Dict[str, List[float]], default=None) -> None:
        self.model = "fake-embedding"
        self.vectors = vectors
        self.default = default or [0.0, 0.0, 1.0]
        self.calls: List[List[str]] = []

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [list(self.vectors.get(text, self.default)) for text in texts]

    async def generate_embedding(self, text: str) -> List[float]:
        embeddings = await self.generate_embeddings([text])
        return embeddings[0]
