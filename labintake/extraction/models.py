from dataclasses import dataclass, field

from labintake.extraction.errors import ErrorType


@dataclass(frozen=True)
class Biomarker:
    """A single measurement as reported by the extraction service."""

    name: str
    value: str | None = None
    unit: str = ""


@dataclass(frozen=True)
class PatientInfo:
    """Patient demographics; any field may be missing from a report."""

    name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    test_date: str | None = None

    def is_empty(self) -> bool:
        return not any((self.name, self.date_of_birth, self.gender, self.test_date))


@dataclass(frozen=True)
class ExtractionResult:
    """Extraction output for one source document."""

    biomarkers: list[Biomarker] = field(default_factory=list)
    patient_info: PatientInfo = field(default_factory=PatientInfo)
    panel_name: str | None = None
    source_file: str = ""
    note: str = ""


@dataclass(frozen=True)
class FailedFile:
    """A document that could not be extracted, even after its individual retry."""

    file_name: str
    error_type: ErrorType
    message: str = ""
    retry_count: int = 0


# ----------------------------------------------------------------------
# Request content (provider-neutral)
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ImageBlock:
    mime_type: str
    data: bytes


ContentBlock = TextBlock | ImageBlock


@dataclass(frozen=True)
class ExtractionRequest:
    """One outbound call: ordered content blocks for a set of documents."""

    content: list[ContentBlock]
    file_names: list[str]

    @property
    def document_count(self) -> int:
        return len(self.file_names)

    @property
    def image_count(self) -> int:
        return sum(1 for block in self.content if isinstance(block, ImageBlock))


# ----------------------------------------------------------------------
# Parse outcomes
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Parsed:
    """The response held a well-formed payload for every document."""

    results: list[ExtractionResult]


@dataclass(frozen=True)
class EmptyFindings:
    """The response held no JSON at all; the input was likely not a lab report."""

    diagnostic: str


@dataclass(frozen=True)
class ParseFailure:
    """A JSON span was found but could not be parsed or had the wrong shape."""

    reason: str
    invalid_shape: bool = False


ExtractionOutcome = Parsed | EmptyFindings | ParseFailure
