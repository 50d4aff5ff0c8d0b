import pymupdf

from labintake.pdf.base import BasePdfExtractor
from labintake.pdf.exceptions import PdfExtractionError
from labintake.pdf.models import PdfText


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads and rasterizes PDFs with PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> PdfText:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return PdfText(pages=[page.get_text() for page in doc])
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc

    def render_pages(self, pdf_bytes: bytes, dpi: int, max_pages: int) -> list[bytes]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return [
                    page.get_pixmap(dpi=dpi).tobytes("png")
                    for index, page in enumerate(doc)
                    if index < max_pages
                ]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf rendering failed: {exc}") from exc
