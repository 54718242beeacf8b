"""History models for answered questions."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class QARecord(BaseModel):
    """One answered question with the documents it was grounded on."""

    id: int
    owner_id: str
    event_id: str
    question: str
    answer: str
    source_keys: List[str] = Field(default_factory=list)
    created_at: datetime
