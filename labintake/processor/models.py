from dataclasses import dataclass, field
from enum import Enum

from labintake.consolidation.models import ConsolidationResult
from labintake.documents.models import FilterVerdict
from labintake.extraction.models import ExtractionResult, FailedFile
from labintake.matching.models import ClientMatchCandidate, SuggestedAction
from labintake.telemetry.models import TelemetrySummary


class BatchState(str, Enum):
    PENDING = "pending"
    BATCH_ATTEMPTED = "batch_attempted"
    SUCCESS = "success"
    INDIVIDUAL_RETRY = "individual_retry"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class BatchOutcome:
    """What one planned batch produced, after any individual retries."""

    batch_id: str
    results: list[ExtractionResult] = field(default_factory=list)
    failed: list[FailedFile] = field(default_factory=list)
    states: tuple[BatchState, ...] = ()
    # duration of the last network call made for this batch; 0 when none was made
    last_duration_ms: float = 0.0


@dataclass(frozen=True)
class PipelineResult:
    """Combined outcome of a run; partial success is the normal case."""

    run_id: str
    results: list[ExtractionResult]
    failed_files: list[FailedFile]
    skipped_files: list[FilterVerdict]
    consolidation: ConsolidationResult
    candidates: list[ClientMatchCandidate]
    suggested_action: SuggestedAction
    telemetry: TelemetrySummary
    batch_count: int = 0
