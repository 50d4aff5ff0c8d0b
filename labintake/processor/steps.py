import asyncio
import dataclasses
from collections.abc import Awaitable, Callable

from labintake.batching.delay import DelayController
from labintake.batching.planner import BatchPlanner, validate_batch
from labintake.consolidation.consolidator import Consolidator
from labintake.documents.filter import DocumentFilter
from labintake.logging.logger import Log
from labintake.matching.client_matcher import ClientMatcher
from labintake.processor.exceptions import PipelineCancelledError
from labintake.processor.pipeline import PipelineRun, PipelineStep
from labintake.processor.retry_controller import RetryController

Sleep = Callable[[float], Awaitable[None]]


class FilterStep(PipelineStep):
    def __init__(self, document_filter: DocumentFilter) -> None:
        self._filter = document_filter

    async def run(self, context: PipelineRun) -> PipelineRun:
        outcome = self._filter.filter(context.documents)
        context.processable = outcome.processable
        context.skipped = outcome.skipped
        return context


class PlanStep(PipelineStep):
    def __init__(self, planner: BatchPlanner) -> None:
        self._planner = planner

    async def run(self, context: PipelineRun) -> PipelineRun:
        if not context.processable:
            Log.info(f"[{context.run_id}] nothing to extract")
            return context
        context.batching_config = self._planner.select_config(context.processable)
        context.batches = self._planner.plan(context.processable, context.batching_config)
        return context


class ValidateBatchesStep(PipelineStep):
    """Flags batches that break a ceiling so they are never dispatched."""

    async def run(self, context: PipelineRun) -> PipelineRun:
        if context.batching_config is None:
            return context
        checked = []
        for batch in context.batches:
            validation = validate_batch(batch, context.batching_config)
            for warning in validation.warnings:
                Log.warning(f"[{batch.batch_id}] {warning}")
            if not validation.valid and not batch.oversized:
                Log.error(f"[{batch.batch_id}] invalid batch: {'; '.join(validation.errors)}")
                batch = dataclasses.replace(batch, oversized=True)
            checked.append(batch)
        context.batches = checked
        return context


class ExtractBatchesStep(PipelineStep):
    """Dispatches batches one at a time, pausing between them."""

    def __init__(
        self,
        retry_controller: RetryController,
        delay_controller: DelayController,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._retry_controller = retry_controller
        self._delay_controller = delay_controller
        self._sleep = sleep

    async def run(self, context: PipelineRun) -> PipelineRun:
        total = len(context.batches)
        for index, batch in enumerate(context.batches):
            if context.cancelled:
                raise PipelineCancelledError(
                    f"Run {context.run_id} cancelled before batch {index + 1}/{total}",
                    completed_batches=index,
                )
            if index > 0 and context.last_duration_ms > 0 and not batch.oversized:
                delay_ms = self._delay_controller.next_delay(context.last_duration_ms)
                if delay_ms:
                    Log.debug(f"[{context.run_id}] waiting {delay_ms} ms before next batch")
                    await self._sleep(delay_ms / 1000)

            Log.info(
                f"[{context.run_id}] batch {index + 1}/{total} "
                f"({batch.batch_id}, {batch.file_count} file(s))"
            )
            outcome = await self._retry_controller.process(batch)
            context.outcomes.append(outcome)
            context.results.extend(outcome.results)
            context.failed.extend(outcome.failed)
            if outcome.last_duration_ms:
                context.last_duration_ms = outcome.last_duration_ms
        return context


class ConsolidateStep(PipelineStep):
    def __init__(self, consolidator: Consolidator) -> None:
        self._consolidator = consolidator

    async def run(self, context: PipelineRun) -> PipelineRun:
        context.consolidation = self._consolidator.consolidate(context.results)
        return context


class MatchClientStep(PipelineStep):
    def __init__(self, matcher: ClientMatcher) -> None:
        self._matcher = matcher

    async def run(self, context: PipelineRun) -> PipelineRun:
        if context.consolidation is None:
            raise ValueError("PipelineRun.consolidation must be set before client matching")
        patient_info = context.consolidation.patient_info
        context.candidates = self._matcher.match(patient_info, context.registry)
        context.suggested_action = self._matcher.suggest_action(
            patient_info, context.candidates
        )
        return context
