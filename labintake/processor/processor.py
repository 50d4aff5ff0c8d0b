import asyncio
import uuid
from collections.abc import Sequence

from labintake.batching.delay import DelayController
from labintake.batching.estimator import PayloadEstimator
from labintake.batching.models import BatchingConfig, DelayConfig
from labintake.batching.planner import BatchPlanner
from labintake.config.settings import Settings
from labintake.consolidation.consolidator import Consolidator
from labintake.consolidation.models import ConsolidatedPatientInfo, ConsolidationResult
from labintake.documents.filter import DocumentFilter
from labintake.documents.models import FilterConfig, ProcessedDocument
from labintake.extraction.base import BaseExtractor
from labintake.extraction.factory import ExtractorFactory
from labintake.logging.logger import Log
from labintake.matching.client_matcher import ClientMatcher
from labintake.matching.models import ClientRecord, SuggestedAction
from labintake.processor.models import PipelineResult
from labintake.processor.pipeline import PipelineRun, PipelineStep
from labintake.processor.retry_controller import RetryController
from labintake.processor.steps import (
    ConsolidateStep,
    ExtractBatchesStep,
    FilterStep,
    MatchClientStep,
    PlanStep,
    Sleep,
    ValidateBatchesStep,
)
from labintake.telemetry.recorder import TelemetryRecorder


class Processor:
    """Orchestrates one upload session end to end.

    Pipeline: filter -> plan -> validate -> extract (per batch, with retry
    and pacing) -> consolidate -> match clients.
    """

    def __init__(
        self,
        *,
        document_filter: DocumentFilter,
        planner: BatchPlanner,
        retry_controller: RetryController,
        delay_controller: DelayController,
        telemetry: TelemetryRecorder,
        consolidator: Consolidator,
        matcher: ClientMatcher,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._telemetry = telemetry
        self._steps: list[PipelineStep] = [
            FilterStep(document_filter),
            PlanStep(planner),
            ValidateBatchesStep(),
            ExtractBatchesStep(retry_controller, delay_controller, sleep=sleep),
            ConsolidateStep(consolidator),
            MatchClientStep(matcher),
        ]

    @property
    def telemetry(self) -> TelemetryRecorder:
        return self._telemetry

    async def run(
        self,
        documents: Sequence[ProcessedDocument],
        registry: Sequence[ClientRecord],
        cancel_event: asyncio.Event | None = None,
    ) -> PipelineResult:
        """Run the pipeline; only cancellation propagates as an exception.

        Raises:
            PipelineCancelledError: if *cancel_event* is set before a batch.
        """
        context = PipelineRun(
            run_id=f"run_{uuid.uuid4().hex[:12]}",
            documents=list(documents),
            registry=list(registry),
            cancel_event=cancel_event,
        )
        Log.info(f"[{context.run_id}] processing {len(context.documents)} document(s)")

        for step in self._steps:
            context = await step.run(context)

        result = PipelineResult(
            run_id=context.run_id,
            results=context.results,
            failed_files=context.failed,
            skipped_files=context.skipped,
            consolidation=context.consolidation
            or ConsolidationResult(patient_info=ConsolidatedPatientInfo()),
            candidates=context.candidates,
            suggested_action=context.suggested_action or SuggestedAction.MANUAL_SELECT,
            telemetry=self._telemetry.aggregate(),
            batch_count=len(context.batches),
        )
        Log.info(
            f"[{context.run_id}] done: {len(result.results)} extracted, "
            f"{len(result.failed_files)} failed, {len(result.skipped_files)} skipped"
        )
        return result


def build_processor(
    settings: Settings,
    extractor: BaseExtractor | None = None,
) -> Processor:
    """Build a Processor with all components configured from settings."""
    estimator = PayloadEstimator()
    telemetry = TelemetryRecorder(max_entries=settings.telemetry_max_entries)
    extractor = extractor or ExtractorFactory.create(settings)
    return Processor(
        document_filter=DocumentFilter(
            FilterConfig(
                min_text_chars=settings.filter_min_text_chars,
                min_numeric_tokens=settings.filter_min_numeric_tokens,
                max_file_bytes=settings.filter_max_file_bytes,
            ),
            estimator=estimator,
        ),
        planner=BatchPlanner(
            estimator,
            default_config=BatchingConfig(
                max_files=settings.batch_max_files,
                max_payload_bytes=settings.batch_max_payload_bytes,
                max_tokens=settings.batch_max_tokens,
            ),
            image_heavy_config=BatchingConfig(
                max_files=settings.batch_image_max_files,
                max_payload_bytes=settings.batch_image_max_payload_bytes,
                max_tokens=settings.batch_image_max_tokens,
            ),
        ),
        retry_controller=RetryController(extractor, telemetry, estimator),
        delay_controller=DelayController(
            DelayConfig(
                min_ms=settings.delay_min_ms,
                max_ms=settings.delay_max_ms,
                fraction=settings.delay_fraction,
                long_request_ms=settings.delay_long_request_ms,
            )
        ),
        telemetry=telemetry,
        consolidator=Consolidator(),
        matcher=ClientMatcher(),
    )
