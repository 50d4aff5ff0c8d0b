from dataclasses import dataclass
from enum import Enum

from labintake.batching.models import FileMetrics
from labintake.extraction.errors import ErrorType


class AttemptKind(str, Enum):
    BATCH = "batch"
    INDIVIDUAL = "individual"


@dataclass(frozen=True)
class BatchMetrics:
    """One timed extraction attempt, either a whole batch or a single-document retry."""

    batch_id: str
    timestamp: float
    file_count: int
    payload_bytes: int
    estimated_tokens: int
    duration_ms: float
    success: bool
    status_code: int | None = None
    error_type: ErrorType | None = None
    error_message: str = ""
    per_file: tuple[FileMetrics, ...] = ()
    attempt: AttemptKind = AttemptKind.BATCH

    @property
    def is_timeout(self) -> bool:
        return self.error_type in (ErrorType.TIMEOUT, ErrorType.GATEWAY_TIMEOUT) or (
            self.status_code == 504
        )

    @property
    def is_rate_limited(self) -> bool:
        return self.error_type == ErrorType.RATE_LIMIT or self.status_code == 429


@dataclass(frozen=True)
class TelemetrySummary:
    total: int = 0
    success_rate: float = 0.0
    average_duration_ms: float = 0.0
    average_payload_bytes: float = 0.0
    timeout_count: int = 0
    rate_limit_count: int = 0
    failure_count: int = 0
