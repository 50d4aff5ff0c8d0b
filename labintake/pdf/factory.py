from typing import ClassVar

from labintake.config.settings import Settings
from labintake.pdf.base import BasePdfExtractor
from labintake.pdf.pdfplumber_adapter import PdfPlumberAdapter
from labintake.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the PDF engine used for text layers and page rendering."""

    ADAPTERS: ClassVar[dict[str, type[BasePdfExtractor]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
        "fitz": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings, engine: str | None = None) -> BasePdfExtractor:
        name = (engine or settings.pdf_engine).strip().lower()
        try:
            adapter_cls = cls.ADAPTERS[name]
        except KeyError:
            raise ValueError(
                f"Unknown PDF engine '{name}'. Choose from: {cls.supported_engines()}"
            ) from None
        return adapter_cls()

    @classmethod
    def supported_engines(cls) -> list[str]:
        return sorted(cls.ADAPTERS)
