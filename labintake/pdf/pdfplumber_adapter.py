import io

import pdfplumber

from labintake.pdf.base import BasePdfExtractor
from labintake.pdf.exceptions import PdfExtractionError
from labintake.pdf.models import PdfText


class PdfPlumberAdapter(BasePdfExtractor):
    """Reads PDFs with pdfplumber; pages are rasterized through its pypdfium2 backend."""

    def extract(self, pdf_bytes: bytes) -> PdfText:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return PdfText(pages=[page.extract_text() or "" for page in pdf.pages])
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc

    def render_pages(self, pdf_bytes: bytes, dpi: int, max_pages: int) -> list[bytes]:
        try:
            images: list[bytes] = []
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                for page in pdf.pages[:max_pages]:
                    buffer = io.BytesIO()
                    page.to_image(resolution=dpi).original.save(buffer, format="PNG")
                    images.append(buffer.getvalue())
            return images
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber rendering failed: {exc}") from exc
