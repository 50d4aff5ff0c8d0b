from abc import ABC, abstractmethod
from collections.abc import Sequence

from labintake.batching.models import Batch
from labintake.documents.models import ProcessedDocument
from labintake.extraction.models import ExtractionResult


class BaseExtractor(ABC):
    """Contract for all extraction adapters."""

    async def extract(self, batch: Batch) -> list[ExtractionResult]:
        """Extract every document of a planned batch in one round trip."""
        return await self.extract_documents(batch.documents)

    @abstractmethod
    async def extract_documents(
        self, documents: Sequence[ProcessedDocument]
    ) -> list[ExtractionResult]:
        """Transform documents into one extraction result each, in input order.

        Args:
            documents: One or more processable documents.

        Returns:
            A list of ExtractionResult aligned with *documents*.

        Raises:
            ExtractionError: on any failure that should trigger a retry.
        """
