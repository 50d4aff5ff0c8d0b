import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from labintake.batching.models import Batch, BatchingConfig
from labintake.consolidation.models import ConsolidationResult
from labintake.documents.models import FilterVerdict, ProcessedDocument
from labintake.extraction.models import ExtractionResult, FailedFile
from labintake.matching.models import ClientMatchCandidate, ClientRecord, SuggestedAction
from labintake.processor.models import BatchOutcome


@dataclass(slots=True)
class PipelineRun:
    """Mutable state of one pipeline run, handed from step to step."""

    run_id: str
    documents: list[ProcessedDocument]
    registry: list[ClientRecord]
    cancel_event: asyncio.Event | None = None
    processable: list[ProcessedDocument] = field(default_factory=list)
    skipped: list[FilterVerdict] = field(default_factory=list)
    batching_config: BatchingConfig | None = None
    batches: list[Batch] = field(default_factory=list)
    outcomes: list[BatchOutcome] = field(default_factory=list)
    results: list[ExtractionResult] = field(default_factory=list)
    failed: list[FailedFile] = field(default_factory=list)
    last_duration_ms: float = 0.0
    consolidation: ConsolidationResult | None = None
    candidates: list[ClientMatchCandidate] = field(default_factory=list)
    suggested_action: SuggestedAction | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: PipelineRun) -> PipelineRun:
        raise NotImplementedError
