"""Event registry backed by PostgreSQL."""

from typing import List, Optional

from eventrag.core.exceptions import DatabaseError, InvalidRequestError, InvalidScopeError
from eventrag.models.event import Event
from eventrag.services.database import DatabaseService, parse_event_id

EVENT_COLUMNS = "id, owner_id, name, archived, created_at, updated_at"


def _row_to_event(row) -> Event:
    result = dict(row)
    result["id"] = str(result["id"])
    return Event(**result)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidRequestError("Missing event name")
    return cleaned


class EventService:
    """CRUD operations for events, always filtered by owner."""

    def __init__(self, database: DatabaseService) -> None:
        """
        Initialize event service.

        Args:
            database: Database service holding the connection pool.
        """
        self.database = database

    async def create(self, owner_id: str, name: str) -> Event:
        """
        Create an event.

        Args:
            owner_id: Owner identity.
            name: Event name, trimmed.

        Returns:
            Created event.

        Raises:
            InvalidRequestError: If the name is blank.
        """
        name = _clean_name(name)
        pool = self.database.require_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO events (owner_id, name)
                    VALUES ($1, $2)
                    RETURNING {EVENT_COLUMNS}
                    """,
                    owner_id,
                    name,
                )
                return _row_to_event(row)
        except Exception as e:
            raise DatabaseError(f"Failed to create event: {str(e)}") from e

    async def list(self, owner_id: str, include_archived: bool = True) -> List[Event]:
        """
        List an owner's events, newest first.

        Args:
            owner_id: Owner identity.
            include_archived: Whether archived events are returned.

        Returns:
            List of events.
        """
        pool = self.database.require_pool()
        query = f"SELECT {EVENT_COLUMNS} FROM events WHERE owner_id = $1"
        if not include_archived:
            query += " AND archived = FALSE"
        query += " ORDER BY created_at DESC"

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(query, owner_id)
                return [_row_to_event(row) for row in rows]
        except Exception as e:
            raise DatabaseError(f"Failed to fetch events: {str(e)}") from e

    async def get(self, owner_id: str, event_id: str) -> Optional[Event]:
        """
        Get one of the owner's events.

        Args:
            owner_id: Owner identity.
            event_id: Event id.

        Returns:
            Event, or None if it does not exist or belongs to someone else.
        """
        try:
            event_uuid = parse_event_id(event_id)
        except InvalidScopeError:
            return None
        pool = self.database.require_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {EVENT_COLUMNS} FROM events WHERE id = $1 AND owner_id = $2",
                    event_uuid,
                    owner_id,
                )
                return _row_to_event(row) if row else None
        except Exception as e:
            raise DatabaseError(f"Failed to fetch event: {str(e)}") from e

    async def require(self, owner_id: str, event_id: str) -> Event:
        """
        Get an event or fail when the owner has no such event.

        Raises:
            InvalidScopeError: If the event is missing or owned by someone else.
        """
        event = await self.get(owner_id, event_id)
        if event is None:
            raise InvalidScopeError(
                f"Event {event_id} not found for this owner")
        return event

    async def _update(self, owner_id: str, event_id: str, assignment: str, value) -> Event:
        event_uuid = parse_event_id(event_id)
        pool = self.database.require_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE events
                    SET {assignment} = $3, updated_at = now()
                    WHERE id = $1 AND owner_id = $2
                    RETURNING {EVENT_COLUMNS}
                    """,
                    event_uuid,
                    owner_id,
                    value,
                )
        except Exception as e:
            raise DatabaseError(f"Failed to update event: {str(e)}") from e

        if not row:
            raise InvalidScopeError(
                f"Event {event_id} not found for this owner")
        return _row_to_event(row)

    async def rename(self, owner_id: str, event_id: str, name: str) -> Event:
        """Rename an event."""
        return await self._update(owner_id, event_id, "name", _clean_name(name))

    async def set_archived(self, owner_id: str, event_id: str, archived: bool) -> Event:
        """Archive or restore an event."""
        return await self._update(owner_id, event_id, "archived", bool(archived))

    async def delete(self, owner_id: str, event_id: str) -> bool:
        """
        Delete an event together with its documents and history rows.

        Args:
            owner_id: Owner identity.
            event_id: Event id.

        Returns:
            True if deleted, False if not found.
        """
        try:
            event_uuid = parse_event_id(event_id)
        except InvalidScopeError:
            return False
        pool = self.database.require_pool()

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM events WHERE id = $1 AND owner_id = $2",
                    event_uuid,
                    owner_id,
                )
                return result == "DELETE 1"
        except Exception as e:
            raise DatabaseError(f"Failed to delete event: {str(e)}") from e
