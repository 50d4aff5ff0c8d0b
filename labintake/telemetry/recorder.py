"""In-memory, best-effort log of extraction attempts."""

import time
from collections import deque
from collections.abc import Sequence

from labintake.batching.estimator import PayloadEstimator
from labintake.documents.models import ProcessedDocument
from labintake.extraction.errors import classify_error, status_code_of
from labintake.logging.logger import Log
from labintake.telemetry.models import AttemptKind, BatchMetrics, TelemetrySummary

DEFAULT_MAX_ENTRIES = 100


def build_batch_metrics(
    *,
    batch_id: str,
    documents: Sequence[ProcessedDocument],
    duration_ms: float,
    error: BaseException | None = None,
    attempt: AttemptKind = AttemptKind.BATCH,
    estimator: PayloadEstimator | None = None,
) -> BatchMetrics:
    """Build the metrics record for one attempt; *error* is None on success."""
    estimator = estimator or PayloadEstimator()
    per_file = tuple(estimator.file_metrics(doc) for doc in documents)
    estimate = estimator.estimate(list(documents))
    return BatchMetrics(
        batch_id=batch_id,
        timestamp=time.time(),
        file_count=len(documents),
        payload_bytes=estimate.total_bytes,
        estimated_tokens=estimate.estimated_tokens,
        duration_ms=duration_ms,
        success=error is None,
        status_code=status_code_of(error) if error is not None else None,
        error_type=classify_error(error) if error is not None else None,
        error_message=str(error) if error is not None else "",
        per_file=per_file,
        attempt=attempt,
    )


class TelemetryRecorder:
    """Keeps the most recent attempts and summarizes them.

    Recording never raises: a failure inside the recorder is logged as a
    warning and the pipeline carries on.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._entries: deque[BatchMetrics] = deque(maxlen=max_entries)

    def record(self, metrics: BatchMetrics) -> None:
        try:
            self._entries.append(metrics)
            Log.info(self._summary_line(metrics))
        except Exception as exc:
            Log.warning(f"Telemetry record failed: {exc}")

    def recent(self, n: int = 20) -> list[BatchMetrics]:
        try:
            if n <= 0:
                return []
            return list(self._entries)[-n:]
        except Exception as exc:
            Log.warning(f"Telemetry read failed: {exc}")
            return []

    def all(self) -> list[BatchMetrics]:
        return self.recent(len(self._entries))

    def aggregate(self) -> TelemetrySummary:
        try:
            entries = list(self._entries)
            if not entries:
                return TelemetrySummary()
            total = len(entries)
            successes = sum(1 for entry in entries if entry.success)
            return TelemetrySummary(
                total=total,
                success_rate=successes / total,
                average_duration_ms=sum(entry.duration_ms for entry in entries) / total,
                average_payload_bytes=sum(entry.payload_bytes for entry in entries) / total,
                timeout_count=sum(1 for entry in entries if entry.is_timeout),
                rate_limit_count=sum(1 for entry in entries if entry.is_rate_limited),
                failure_count=total - successes,
            )
        except Exception as exc:
            Log.warning(f"Telemetry aggregation failed: {exc}")
            return TelemetrySummary()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _summary_line(metrics: BatchMetrics) -> str:
        error = metrics.error_type.value if metrics.error_type else "unknown"
        status = "ok" if metrics.success else f"failed ({error})"
        return (
            f"[{metrics.batch_id}] {metrics.attempt.value} attempt {status}: "
            f"{metrics.file_count} file(s), {metrics.payload_bytes / 1024:.1f} KB, "
            f"~{metrics.estimated_tokens} tokens, {metrics.duration_ms:.0f} ms"
        )
