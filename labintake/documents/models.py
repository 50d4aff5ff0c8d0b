from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class ProcessedDocument:
    """One uploaded file after conversion to text and/or page images.

    Image payloads are raw (not base64) bytes. Produced by the document
    converter and never modified afterwards.
    """

    file_name: str
    mime_type: str
    extracted_text: str | None = None
    image_data: bytes | None = None
    image_pages: tuple[bytes, ...] = ()
    page_count: int = 1

    @property
    def text(self) -> str:
        return self.extracted_text or ""

    @property
    def images(self) -> tuple[bytes, ...]:
        """All image payloads; a single image wins over rendered pages."""
        if self.image_data:
            return (self.image_data,)
        return tuple(page for page in self.image_pages if page)

    @property
    def has_images(self) -> bool:
        return bool(self.images)


class SkipReason(str, Enum):
    EMPTY = "empty document"
    INSUFFICIENT_SIGNAL = "insufficient lab indicators"
    TOO_LARGE = "file too large"


@dataclass(frozen=True)
class FilterVerdict:
    """Outcome of the pre-filter for exactly one document."""

    document: ProcessedDocument
    processable: bool
    reason: SkipReason | None = None
    detail: str = ""

    @property
    def file_name(self) -> str:
        return self.document.file_name

    def describe(self) -> str:
        if self.reason is None:
            return "processable"
        if self.detail:
            return f"{self.reason.value} ({self.detail})"
        return self.reason.value


@dataclass
class FilterOutcome:
    """Partition of the filter input into processable and skipped documents."""

    processable: list[ProcessedDocument] = field(default_factory=list)
    skipped: list[FilterVerdict] = field(default_factory=list)


@dataclass(frozen=True)
class FilterConfig:
    """Thresholds for the document pre-filter."""

    min_text_chars: int = 50
    min_numeric_tokens: int = 3
    max_file_bytes: int = 6 * 1024 * 1024
