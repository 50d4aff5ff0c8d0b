class DocumentConversionError(Exception):
    """Base exception for turning an uploaded file into a ProcessedDocument."""


class UnsupportedDocumentTypeError(DocumentConversionError):
    """Raised for MIME types that are neither PDF, image nor plain text."""
