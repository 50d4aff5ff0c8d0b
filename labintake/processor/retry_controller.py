"""Split-on-failure handling for one planned batch.

A batch moves PENDING -> BATCH_ATTEMPTED -> SUCCESS | INDIVIDUAL_RETRY ->
RESOLVED. When the combined request fails, every document is sent once on
its own so a single bad document costs only itself.
"""

import time
from collections.abc import Callable, Sequence

from labintake.batching.estimator import PayloadEstimator
from labintake.batching.models import Batch
from labintake.documents.models import ProcessedDocument
from labintake.extraction.base import BaseExtractor
from labintake.extraction.errors import ErrorType, classify_error
from labintake.extraction.exceptions import ExtractionError, PayloadTooLargeError
from labintake.extraction.models import ExtractionResult, FailedFile
from labintake.logging.logger import Log
from labintake.processor.models import BatchOutcome, BatchState
from labintake.telemetry.models import AttemptKind
from labintake.telemetry.recorder import TelemetryRecorder, build_batch_metrics

# Errors contained to the batch or document they came from.
RECOVERABLE_ERRORS: tuple[type[BaseException], ...] = (ExtractionError, TimeoutError)


class RetryController:
    def __init__(
        self,
        extractor: BaseExtractor,
        telemetry: TelemetryRecorder,
        estimator: PayloadEstimator | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._extractor = extractor
        self._telemetry = telemetry
        self._estimator = estimator or PayloadEstimator()
        self._clock = clock

    async def process(self, batch: Batch) -> BatchOutcome:
        states = [BatchState.PENDING]

        if batch.oversized:
            rejection = PayloadTooLargeError(
                f"exceeds the {batch.estimate.limit_type.value} ceiling"
            )
            Log.warning(f"[{batch.batch_id}] not sent: {rejection}")
            failed = [
                FailedFile(
                    file_name=document.file_name,
                    error_type=classify_error(rejection),
                    message=str(rejection),
                    retry_count=0,
                )
                for document in batch.documents
            ]
            states.append(BatchState.RESOLVED)
            return BatchOutcome(batch_id=batch.batch_id, failed=failed, states=tuple(states))

        states.append(BatchState.BATCH_ATTEMPTED)
        results, error, duration_ms = await self._attempt(
            batch.batch_id, batch.documents, AttemptKind.BATCH
        )
        if error is None:
            states.extend((BatchState.SUCCESS, BatchState.RESOLVED))
            return BatchOutcome(
                batch_id=batch.batch_id,
                results=results,
                states=tuple(states),
                last_duration_ms=duration_ms,
            )

        error_type = classify_error(error)
        if batch.file_count == 1 and error_type == ErrorType.PAYLOAD_TOO_LARGE:
            # the same request would be rejected again
            Log.error(f"[{batch.batch_id}] {batch.file_names[0]} rejected as too large")
            states.append(BatchState.RESOLVED)
            return BatchOutcome(
                batch_id=batch.batch_id,
                failed=[
                    FailedFile(
                        file_name=batch.file_names[0],
                        error_type=error_type,
                        message=str(error),
                        retry_count=0,
                    )
                ],
                states=tuple(states),
                last_duration_ms=duration_ms,
            )

        Log.warning(
            f"[{batch.batch_id}] batch failed ({error_type.value}): {error}; "
            f"retrying {batch.file_count} file(s) individually"
        )
        states.append(BatchState.INDIVIDUAL_RETRY)
        outcome = await self._retry_individually(batch)
        states.append(BatchState.RESOLVED)
        return BatchOutcome(
            batch_id=batch.batch_id,
            results=outcome.results,
            failed=outcome.failed,
            states=tuple(states),
            last_duration_ms=outcome.last_duration_ms,
        )

    async def _retry_individually(self, batch: Batch) -> BatchOutcome:
        results: list[ExtractionResult] = []
        failed: list[FailedFile] = []
        last_duration_ms = 0.0

        for document in batch.documents:
            document_results, error, last_duration_ms = await self._attempt(
                batch.batch_id, (document,), AttemptKind.INDIVIDUAL
            )
            if error is None:
                results.extend(document_results)
                continue
            error_type = classify_error(error)
            Log.error(
                f"[{batch.batch_id}] {document.file_name} failed after retry "
                f"({error_type.value}): {error}"
            )
            failed.append(
                FailedFile(
                    file_name=document.file_name,
                    error_type=error_type,
                    message=str(error),
                    retry_count=1,
                )
            )

        Log.info(
            f"[{batch.batch_id}] individual retry: {len(results)} succeeded, "
            f"{len(failed)} failed"
        )
        return BatchOutcome(
            batch_id=batch.batch_id,
            results=results,
            failed=failed,
            last_duration_ms=last_duration_ms,
        )

    async def _attempt(
        self,
        batch_id: str,
        documents: Sequence[ProcessedDocument],
        attempt: AttemptKind,
    ) -> tuple[list[ExtractionResult], BaseException | None, float]:
        """Run one timed extraction call and record it; never raises recoverable errors."""
        started = self._clock()
        error: BaseException | None = None
        results: list[ExtractionResult] = []
        try:
            results = await self._extractor.extract_documents(documents)
        except RECOVERABLE_ERRORS as exc:
            error = exc
        duration_ms = (self._clock() - started) * 1000

        self._telemetry.record(
            build_batch_metrics(
                batch_id=batch_id,
                documents=documents,
                duration_ms=duration_ms,
                error=error,
                attempt=attempt,
                estimator=self._estimator,
            )
        )
        return results, error, duration_ms
