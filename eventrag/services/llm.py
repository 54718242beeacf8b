"""OpenAI LLM service for grounded answer generation."""

from typing import Optional

from openai import AsyncOpenAI

from eventrag.core.config import settings
from eventrag.core.exceptions import LLMError

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about an event's documents. "
    "Answer the user's question based only on the provided context. "
    "Each context block starts with the key of the document it came from. "
    "If the context does not contain the answer, say so plainly instead of guessing."
)


class LLMService:
    """Service for generating answers from retrieved context."""

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        """
        Initialize the LLM service.

        Args:
            client: Preconfigured OpenAI client. Built from settings on first use if omitted.
        """
        self._client = client
        self.model = settings.llm_model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def generate_answer(
        self, question: str, context: str, system_prompt: str = SYSTEM_PROMPT
    ) -> str:
        """
        Generate an answer using the LLM.

        Args:
            question: User question.
            context: Retrieved context block.
            system_prompt: Instruction given to the model.

        Returns:
            Answer text.

        Raises:
            LLMError: If response generation fails or returns nothing.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": f"Context:\n{context}\n\nQuestion: {question}",
                    },
                ],
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )
        except Exception as e:
            raise LLMError(f"Failed to generate response: {str(e)}") from e

        if not response.choices:
            raise LLMError("Empty response from LLM")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise LLMError("Empty response from LLM")
        return content.strip()
