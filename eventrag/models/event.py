"""Event models grouping documents, chunks and history for one owner."""

from datetime import datetime

from pydantic import BaseModel


class Event(BaseModel):
    """A named scope owned by a single user."""

    id: str
    owner_id: str
    name: str
    created_at: datetime
    updated_at: datetime
    archived: bool = False

    class Config:
        """Pydantic config."""

        from_attributes = True
