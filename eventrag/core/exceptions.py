"""Custom exceptions for the application.

Every error carries a stable ``code`` so callers can map failures to
HTTP statuses or UI messages without parsing the text.
"""

from typing import Optional


class RAGError(Exception):
    """Base class for all pipeline errors."""

    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Return the machine-checkable code with a readable message."""
        return {"code": self.code, "message": self.message}


class InvalidRequestError(RAGError, ValueError):
    """Raised when a request is well-formed but its content is unusable."""

    code = "invalid_request"


class InvalidScopeError(RAGError):
    """Raised when an event does not exist or belongs to another owner."""

    code = "invalid_scope"


class DocumentNotFoundError(RAGError):
    """Raised when a document key is unknown within the owner's event."""

    code = "document_not_found"


class EmptyScopeError(RAGError):
    """Raised when a question targets an event without any chunks."""

    code = "empty_scope"


class EmbeddingError(RAGError):
    """Raised when embedding generation fails."""

    code = "embedding_failure"


class LLMError(RAGError):
    """Raised when answer generation fails."""

    code = "generation_failure"


class StorageError(RAGError):
    """Raised when a persistence backend fails."""

    code = "storage_failure"


class VectorDBError(StorageError):
    """Raised when vector database operations fail."""

    pass


class DatabaseError(StorageError):
    """Raised when database operations fail."""

    pass


class UnsupportedFormatError(RAGError):
    """Raised when an uploaded file type cannot be ingested."""

    code = "unsupported_format"


class ExtractionError(RAGError):
    """Raised when text could not be extracted from an upload."""

    code = "extraction_failure"


class PartialIngestionError(RAGError):
    """Raised when ingestion stopped after some chunks were stored."""

    code = "partial_ingestion"

    def __init__(
        self,
        message: str,
        chunks_inserted: int,
        chunks_total: int,
        cause: Optional[RAGError] = None,
    ) -> None:
        super().__init__(message)
        self.chunks_inserted = chunks_inserted
        self.chunks_total = chunks_total
        self.cause = cause

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["chunks_inserted"] = self.chunks_inserted
        data["chunks_total"] = self.chunks_total
        if self.cause is not None:
            data["cause"] = getattr(self.cause, "code", "internal_error")
        return data


class CacheError(RAGError):
    """Raised when cache operations fail."""

    code = "cache_failure"
