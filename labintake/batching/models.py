from dataclasses import dataclass, field
from enum import Enum

from labintake.documents.models import ProcessedDocument

MIB = 1024 * 1024


class LimitType(str, Enum):
    NONE = "none"
    PAYLOAD = "payload"
    TOKENS = "tokens"
    FILE_COUNT = "file_count"


class BatchType(str, Enum):
    TEXT_HEAVY = "text-heavy"
    IMAGE_HEAVY = "image-heavy"
    MIXED = "mixed"


@dataclass(frozen=True)
class BatchingConfig:
    """Hard ceilings a single extraction request must stay under."""

    max_files: int = 10
    max_payload_bytes: int = 12 * MIB
    max_tokens: int = 75_000


DEFAULT_BATCHING = BatchingConfig()
# Vision requests carry small per-page payloads, so more files fit per call.
IMAGE_HEAVY_BATCHING = BatchingConfig(
    max_files=50,
    max_payload_bytes=15 * MIB,
    max_tokens=100_000,
)


@dataclass(frozen=True)
class FileMetrics:
    """Size and token estimate for one document."""

    file_name: str
    text_bytes: int
    image_bytes: int
    total_bytes: int
    estimated_tokens: int


@dataclass(frozen=True)
class PayloadEstimate:
    total_bytes: int = 0
    estimated_tokens: int = 0
    has_images: bool = False
    largest_file_bytes: int = 0
    largest_file_name: str = ""
    exceeds_limit: bool = False
    limit_type: LimitType = LimitType.NONE


@dataclass(frozen=True)
class Batch:
    """Documents sent together in one extraction request."""

    batch_id: str
    documents: tuple[ProcessedDocument, ...]
    estimate: PayloadEstimate
    batch_type: BatchType
    oversized: bool = False

    @property
    def file_count(self) -> int:
        return len(self.documents)

    @property
    def file_names(self) -> list[str]:
        return [doc.file_name for doc in self.documents]


@dataclass(frozen=True)
class BatchValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DelayConfig:
    """Pacing between successive extraction requests."""

    min_ms: int = 500
    max_ms: int = 5000
    fraction: float = 0.1
    long_request_ms: int = 90_000
