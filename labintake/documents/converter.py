"""Turns uploaded files into ProcessedDocument records."""

import mimetypes
from pathlib import Path

from labintake.documents.exceptions import DocumentConversionError, UnsupportedDocumentTypeError
from labintake.documents.models import ProcessedDocument
from labintake.logging.logger import Log
from labintake.pdf.base import BasePdfExtractor
from labintake.pdf.exceptions import PdfExtractionError

PDF_MIME_TYPE = "application/pdf"
_TEXT_MIME_TYPES = frozenset({"application/json", "application/xml"})


class DocumentConverter:
    """Produces text for text-layer PDFs and page images for scanned ones.

    A PDF whose text layer is shorter than ``min_text_chars`` is treated as a
    scan: its pages are rendered to PNG so the extraction service can read
    them in vision mode.
    """

    def __init__(
        self,
        pdf_extractor: BasePdfExtractor,
        *,
        render_dpi: int = 150,
        max_render_pages: int = 20,
        min_text_chars: int = 50,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._render_dpi = render_dpi
        self._max_render_pages = max_render_pages
        self._min_text_chars = min_text_chars

    def convert_path(self, path: Path) -> ProcessedDocument:
        """Read a file from disk and convert it.

        Raises:
            FileNotFoundError: if *path* does not exist.
            DocumentConversionError: if the file cannot be converted.
        """
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return self.convert(path.name, path.read_bytes())

    def convert(
        self, file_name: str, data: bytes, mime_type: str | None = None
    ) -> ProcessedDocument:
        mime_type = mime_type or guess_mime_type(file_name)
        if mime_type == PDF_MIME_TYPE:
            return self._convert_pdf(file_name, data)
        if mime_type.startswith("image/"):
            Log.info(f"{file_name}: image upload ({len(data)} bytes)")
            return ProcessedDocument(file_name=file_name, mime_type=mime_type, image_data=data)
        if mime_type.startswith("text/") or mime_type in _TEXT_MIME_TYPES:
            text = data.decode("utf-8", errors="replace")
            return ProcessedDocument(file_name=file_name, mime_type=mime_type, extracted_text=text)
        raise UnsupportedDocumentTypeError(f"{file_name}: unsupported type '{mime_type}'")

    def _convert_pdf(self, file_name: str, data: bytes) -> ProcessedDocument:
        try:
            pdf_text = self._pdf_extractor.extract(data)
            text = pdf_text.text
            if len(text) >= self._min_text_chars:
                Log.info(
                    f"{file_name}: {len(text)} chars of text from {pdf_text.page_count} page(s)"
                )
                return ProcessedDocument(
                    file_name=file_name,
                    mime_type=PDF_MIME_TYPE,
                    extracted_text=text,
                    page_count=pdf_text.page_count,
                )

            pages = self._pdf_extractor.render_pages(
                data, dpi=self._render_dpi, max_pages=self._max_render_pages
            )
        except PdfExtractionError as exc:
            raise DocumentConversionError(f"{file_name}: {exc}") from exc

        Log.info(
            f"{file_name}: weak text layer ({len(text)} chars), "
            f"rendered {len(pages)} of {pdf_text.page_count} page(s)"
        )
        return ProcessedDocument(
            file_name=file_name,
            mime_type=PDF_MIME_TYPE,
            extracted_text=text or None,
            image_pages=tuple(pages),
            page_count=pdf_text.page_count,
        )


def guess_mime_type(file_name: str) -> str:
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type or "application/octet-stream"
