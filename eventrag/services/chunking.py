"""Document chunking service."""

from typing import List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from eventrag.core.config import settings

FIXED_STRATEGY = "fixed"
RECURSIVE_STRATEGY = "recursive"


def split_fixed(text: str, size: int) -> List[str]:
    """
    Split text into consecutive, non-overlapping spans.

    Args:
        text: Text to split.
        size: Maximum span length in characters.

    Returns:
        Spans whose concatenation equals ``text``. Empty text yields no spans.

    Raises:
        ValueError: If size is not positive.
    """
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [text[i:i + size] for i in range(0, len(text), size)]


class ChunkingService:
    """Service for chunking documents into smaller pieces."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        strategy: Optional[str] = None,
    ) -> None:
        """
        Initialize the chunking service.

        Args:
            chunk_size: Default maximum chunk length.
            chunk_overlap: Overlap used by the recursive strategy.
            strategy: "fixed" or "recursive".
        """
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        self.chunk_overlap = (
            settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        )
        self.strategy = strategy or settings.chunk_strategy
        if self.strategy not in (FIXED_STRATEGY, RECURSIVE_STRATEGY):
            raise ValueError(f"Unknown chunk strategy: {self.strategy}")

    def _recursive_splitter(self, size: int) -> RecursiveCharacterTextSplitter:
        return RecursiveCharacterTextSplitter(
            chunk_size=size,
            chunk_overlap=min(self.chunk_overlap, size - 1),
            length_function=len,
        )

    def split_text(self, text: str, size: Optional[int] = None) -> List[str]:
        """
        Split text into spans using the configured strategy.

        Args:
            text: Extracted document text.
            size: Maximum span length, defaults to the configured chunk size.

        Returns:
            Spans in source order.
        """
        size = self.chunk_size if size is None else size
        if self.strategy == RECURSIVE_STRATEGY:
            if size <= 0:
                raise ValueError(f"Chunk size must be positive, got {size}")
            return self._recursive_splitter(size).split_text(text)
        return split_fixed(text, size)

    def chunk_document(
        self, content: str, document_key: str, size: Optional[int] = None
    ) -> List[dict]:
        """
        Chunk a document into smaller pieces.

        Args:
            content: Document content to chunk.
            document_key: Key of the source document.
            size: Optional override of the chunk size.

        Returns:
            List of chunk dictionaries with content and position.
        """
        chunk_objects = []
        for idx, chunk_text in enumerate(self.split_text(content, size)):
            chunk_objects.append(
                {
                    "content": chunk_text,
                    "chunk_index": idx,
                    "document_key": document_key,
                }
            )
        return chunk_objects
