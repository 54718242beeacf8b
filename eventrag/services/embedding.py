"""OpenAI embedding generation service."""

from typing import List, Optional

from openai import AsyncOpenAI

from eventrag.core.config import settings
from eventrag.core.exceptions import EmbeddingError


class EmbeddingService:
    """Service for generating embeddings using OpenAI."""

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        """
        Initialize the embedding service.

        Args:
            client: Preconfigured OpenAI client. Built from settings on first use if omitted.
        """
        self._client = client
        self.model = settings.embedding_model
        self.dimensions = settings.embedding_dimensions

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.embedding_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed.

        Returns:
            List of embedding vectors, in the same order as ``texts``.

        Raises:
            EmbeddingError: If embedding generation fails.
        """
        if not texts:
            return []

        kwargs = {"model": self.model, "input": texts}
        # Only the text-embedding-3 family accepts a custom dimension
        if self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.dimensions

        try:
            response = await self.client.embeddings.create(**kwargs)
        except Exception as e:
            raise EmbeddingError(
                f"Failed to generate embeddings: {str(e)}") from e

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got {len(data)}")

        embeddings = [list(item.embedding) for item in data]
        for embedding in embeddings:
            if len(embedding) != self.dimensions:
                raise EmbeddingError(
                    f"Embedding has {len(embedding)} dimensions, expected {self.dimensions}"
                )
        return embeddings

    async def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text string to embed.

        Returns:
            Embedding vector.
        """
        embeddings = await self.generate_embeddings([text])
        return embeddings[0]
