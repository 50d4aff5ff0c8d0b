"""Adaptive batch planning.

Documents are ordered by a packing weight (text bytes count fully, image
bytes at 0.75 since images compress well once encoded) and packed greedily,
largest first. Every addition is checked against the true aggregate estimate,
so the weight only shapes ordering and never lets a batch cross a ceiling.
"""

import time
import uuid
from typing import ClassVar

from labintake.batching.estimator import PayloadEstimator
from labintake.batching.models import (
    DEFAULT_BATCHING,
    IMAGE_HEAVY_BATCHING,
    Batch,
    BatchingConfig,
    BatchType,
    BatchValidation,
    FileMetrics,
    LimitType,
)
from labintake.documents.models import ProcessedDocument
from labintake.logging.logger import Log


def generate_batch_id() -> str:
    return f"batch_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class BatchPlanner:
    """Partitions filtered documents into batches under all request ceilings."""

    TEXT_WEIGHT: ClassVar[float] = 1.0
    IMAGE_WEIGHT: ClassVar[float] = 0.75
    IMAGE_HEAVY_RATIO: ClassVar[float] = 0.7
    TEXT_HEAVY_RATIO: ClassVar[float] = 0.3

    def __init__(
        self,
        estimator: PayloadEstimator | None = None,
        default_config: BatchingConfig = DEFAULT_BATCHING,
        image_heavy_config: BatchingConfig = IMAGE_HEAVY_BATCHING,
    ) -> None:
        self._estimator = estimator or PayloadEstimator()
        self._default_config = default_config
        self._image_heavy_config = image_heavy_config

    def select_config(self, documents: list[ProcessedDocument]) -> BatchingConfig:
        """Use the image-heavy profile when most documents carry images."""
        image_count = sum(1 for doc in documents if doc.has_images)
        if image_count > len(documents) / 2:
            return self._image_heavy_config
        return self._default_config

    def plan(
        self,
        documents: list[ProcessedDocument],
        config: BatchingConfig | None = None,
    ) -> list[Batch]:
        if not documents:
            return []
        config = config or self.select_config(documents)

        ordered = sorted(
            ((doc, self._estimator.file_metrics(doc)) for doc in documents),
            key=lambda item: -self.packing_weight(item[1]),
        )

        batches: list[Batch] = []
        current: list[ProcessedDocument] = []
        current_bytes = 0
        current_tokens = 0
        overhead_bytes = PayloadEstimator.JSON_OVERHEAD_BYTES
        overhead_tokens = PayloadEstimator.JSON_OVERHEAD_TOKENS

        for document, metrics in ordered:
            doc_bytes = metrics.total_bytes + overhead_bytes
            doc_tokens = metrics.estimated_tokens + overhead_tokens

            alone = PayloadEstimator.violated_limit(1, doc_bytes, doc_tokens, config)
            if alone is not LimitType.NONE:
                Log.warning(
                    f"Document '{document.file_name}' exceeds the {alone.value} "
                    "ceiling on its own; planning it as a singleton batch"
                )
                batches.append(self._finalize([document], config, oversized=True))
                continue

            violated = PayloadEstimator.violated_limit(
                len(current) + 1,
                current_bytes + doc_bytes,
                current_tokens + doc_tokens,
                config,
            )
            if current and violated is not LimitType.NONE:
                batches.append(self._finalize(current, config))
                current, current_bytes, current_tokens = [], 0, 0

            current.append(document)
            current_bytes += doc_bytes
            current_tokens += doc_tokens

        if current:
            batches.append(self._finalize(current, config))

        Log.info(f"Created {len(batches)} batch(es) from {len(documents)} file(s)")
        for index, batch in enumerate(batches, start=1):
            Log.info(
                f"  Batch {index}: {batch.file_count} files, "
                f"{batch.estimate.total_bytes / 1024 / 1024:.2f} MB, "
                f"~{batch.estimate.estimated_tokens:,} tokens [{batch.batch_type.value}]"
                + (" OVERSIZED" if batch.oversized else "")
            )
        return batches

    def packing_weight(self, metrics: FileMetrics) -> float:
        return metrics.text_bytes * self.TEXT_WEIGHT + metrics.image_bytes * self.IMAGE_WEIGHT

    def classify(self, documents: list[ProcessedDocument]) -> BatchType:
        text_total = 0
        image_total = 0
        for document in documents:
            metrics = self._estimator.file_metrics(document)
            text_total += metrics.text_bytes
            image_total += metrics.image_bytes

        total = text_total + image_total
        if total == 0:
            return BatchType.TEXT_HEAVY
        image_ratio = image_total / total
        if image_ratio > self.IMAGE_HEAVY_RATIO:
            return BatchType.IMAGE_HEAVY
        if image_ratio < self.TEXT_HEAVY_RATIO:
            return BatchType.TEXT_HEAVY
        return BatchType.MIXED

    def _finalize(
        self,
        documents: list[ProcessedDocument],
        config: BatchingConfig,
        oversized: bool = False,
    ) -> Batch:
        return Batch(
            batch_id=generate_batch_id(),
            documents=tuple(documents),
            estimate=self._estimator.estimate(documents, config),
            batch_type=self.classify(documents),
            oversized=oversized,
        )


def validate_batch(batch: Batch, config: BatchingConfig) -> BatchValidation:
    """Check a planned batch right before dispatch.

    Errors mean the request must not be sent; warnings flag batches close to
    a ceiling, which tend to be slow.
    """
    errors: list[str] = []
    warnings: list[str] = []
    estimate = batch.estimate

    if batch.file_count == 0:
        errors.append("Batch contains no files")
    if batch.file_count > config.max_files:
        errors.append(f"Batch has {batch.file_count} files, limit is {config.max_files}")
    if estimate.total_bytes > config.max_payload_bytes:
        errors.append(
            f"Batch payload {estimate.total_bytes / 1024 / 1024:.2f} MB exceeds "
            f"{config.max_payload_bytes / 1024 / 1024:.2f} MB limit"
        )
    if estimate.estimated_tokens > config.max_tokens:
        errors.append(
            f"Batch estimated tokens {estimate.estimated_tokens:,} exceeds "
            f"{config.max_tokens:,} limit"
        )

    if not errors:
        if estimate.total_bytes > config.max_payload_bytes * 0.8:
            warnings.append("Batch payload near limit, may be slow")
        if estimate.estimated_tokens > config.max_tokens * 0.8:
            warnings.append("High token count, may take longer to process")

    return BatchValidation(valid=not errors, errors=errors, warnings=warnings)
