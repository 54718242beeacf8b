"""Question/answer history backed by PostgreSQL."""

import logging
from typing import List, Optional, Sequence

from eventrag.core.exceptions import DatabaseError
from eventrag.models.history import QARecord
from eventrag.services.database import DatabaseService, parse_event_id

logger = logging.getLogger(__name__)

HISTORY_DELIMITER = "\n----------------------\n\n"
HISTORY_COLUMNS = "id, owner_id, event_id, question, answer, source_keys, created_at"


def _row_to_record(row) -> QARecord:
    result = dict(row)
    result["event_id"] = str(result["event_id"])
    result["source_keys"] = list(result.get("source_keys") or [])
    return QARecord(**result)


class HistoryService:
    """Append-only log of answered questions per owner and event."""

    def __init__(self, database: DatabaseService) -> None:
        """
        Initialize history service.

        Args:
            database: Database service holding the connection pool.
        """
        self.database = database

    async def record(
        self,
        owner_id: str,
        event_id: str,
        question: str,
        answer: str,
        source_keys: Sequence[str],
    ) -> QARecord:
        """
        Store one answered question. The timestamp is assigned by the database.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.
            question: Question text.
            answer: Answer text.
            source_keys: Provenance, in rank order.

        Returns:
            Stored record.
        """
        pool = self.database.require_pool()
        event_uuid = parse_event_id(event_id)

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO qa_history (owner_id, event_id, question, answer, source_keys)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING {HISTORY_COLUMNS}
                    """,
                    owner_id,
                    event_uuid,
                    question,
                    answer,
                    list(source_keys),
                )
                return _row_to_record(row)
        except Exception as e:
            raise DatabaseError(f"Failed to record history: {str(e)}") from e

    async def list(self, owner_id: str, event_id: str) -> List[QARecord]:
        """
        List an event's history, most recent first.

        Args:
            owner_id: Owner identity.
            event_id: Event scope.

        Returns:
            List of records.
        """
        pool = self.database.require_pool()
        event_uuid = parse_event_id(event_id)

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {HISTORY_COLUMNS}
                    FROM qa_history
                    WHERE owner_id = $1 AND event_id = $2
                    ORDER BY created_at DESC, id DESC
                    """,
                    owner_id,
                    event_uuid,
                )
                return [_row_to_record(row) for row in rows]
        except Exception as e:
            raise DatabaseError(f"Failed to fetch history: {str(e)}") from e

    async def clear(self, owner_id: str, event_id: Optional[str] = None) -> int:
        """
        Delete history records.

        Without an event id every record of the owner is removed.

        Args:
            owner_id: Owner identity.
            event_id: Optional event scope.

        Returns:
            Number of records deleted.
        """
        pool = self.database.require_pool()
        if event_id is None:
            query = "DELETE FROM qa_history WHERE owner_id = $1"
            args = [owner_id]
        else:
            query = "DELETE FROM qa_history WHERE owner_id = $1 AND event_id = $2"
            args = [owner_id, parse_event_id(event_id)]

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(query, *args)
        except Exception as e:
            raise DatabaseError(f"Failed to clear history: {str(e)}") from e

        deleted = int(result.split()[-1])
        logger.info(
            f"Cleared {deleted} history record(s) for owner={owner_id} event={event_id or '*'}"
        )
        return deleted

    async def delete_for_document(self, owner_id: str, document_key: str) -> int:
        """
        Delete records whose provenance references a document.

        Args:
            owner_id: Owner identity.
            document_key: Key of the deleted document.

        Returns:
            Number of records deleted.
        """
        pool = self.database.require_pool()

        try:
            async with pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM qa_history WHERE owner_id = $1 AND $2 = ANY(source_keys)",
                    owner_id,
                    document_key,
                )
        except Exception as e:
            raise DatabaseError(f"Failed to delete history: {str(e)}") from e
        return int(result.split()[-1])

    @staticmethod
    def export_text(records: Sequence[QARecord]) -> str:
        """
        Render records as a plain-text transcript.

        Args:
            records: Records to render, in the order given.

        Returns:
            One block per record separated by ``HISTORY_DELIMITER``.
        """
        blocks = []
        for record in records:
            sources = ", ".join(record.source_keys) if record.source_keys else "none"
            blocks.append(
                f"Time: {record.created_at.isoformat()}\n"
                f"Q: {record.question}\n"
                f"A: {record.answer}\n"
                f"Source: {sources}\n"
            )
        return HISTORY_DELIMITER.join(blocks)
