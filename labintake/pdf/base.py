from abc import ABC, abstractmethod

from labintake.pdf.models import PdfText


class BasePdfExtractor(ABC):
    """Contract for all PDF adapters: a text layer and page images."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> PdfText:
        """Extract the per-page text layer from PDF bytes.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """

    @abstractmethod
    def render_pages(self, pdf_bytes: bytes, dpi: int, max_pages: int) -> list[bytes]:
        """Render up to *max_pages* pages as PNG images for vision extraction.

        Raises:
            PdfExtractionError: if rendering fails for any reason.
        """
