from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator

from labintake.extraction.models import ExtractionRequest


class BaseExtractionClient(ABC):
    """Contract for provider-specific extraction AI clients."""

    @abstractmethod
    def stream_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        prompt: str,
        request: ExtractionRequest,
    ) -> AsyncGenerator[str, None]:
        """Yield the provider response as text chunks, in arrival order.

        ``prompt`` is the instruction text; ``request.content`` holds the
        documents, already labelled, as text and image blocks.

        Raises:
            ExtractionNetworkError: on transport or provider failures.
        """
