"""Offline payload size and token estimation for extraction requests."""

import math
from typing import ClassVar

from labintake.batching.models import (
    BatchingConfig,
    FileMetrics,
    LimitType,
    PayloadEstimate,
)
from labintake.documents.models import ProcessedDocument


class PayloadEstimator:
    """Approximates request bytes and tokens without touching the network.

    Text costs one token per four characters. Each image costs a fixed base
    plus a surcharge per KiB. Every document also carries a fixed JSON
    envelope (file name, labels, content-block wrapping).
    """

    CHARS_PER_TOKEN: ClassVar[int] = 4
    IMAGE_BASE_TOKENS: ClassVar[int] = 1500
    IMAGE_TOKENS_PER_KB: ClassVar[int] = 10
    JSON_OVERHEAD_BYTES: ClassVar[int] = 500
    JSON_OVERHEAD_TOKENS: ClassVar[int] = math.ceil(JSON_OVERHEAD_BYTES / CHARS_PER_TOKEN)

    def file_metrics(self, document: ProcessedDocument) -> FileMetrics:
        text = document.text
        text_bytes = len(text.encode("utf-8"))
        image_bytes = sum(len(image) for image in document.images)

        tokens = math.ceil(len(text) / self.CHARS_PER_TOKEN)
        for image in document.images:
            tokens += self.IMAGE_BASE_TOKENS + math.ceil(
                len(image) / 1024 * self.IMAGE_TOKENS_PER_KB
            )

        return FileMetrics(
            file_name=document.file_name,
            text_bytes=text_bytes,
            image_bytes=image_bytes,
            total_bytes=text_bytes + image_bytes,
            estimated_tokens=tokens,
        )

    def serialized_size(self, document: ProcessedDocument) -> int:
        """Bytes this document adds to a request, envelope included."""
        return self.file_metrics(document).total_bytes + self.JSON_OVERHEAD_BYTES

    def estimate(
        self,
        documents: list[ProcessedDocument] | tuple[ProcessedDocument, ...],
        config: BatchingConfig | None = None,
    ) -> PayloadEstimate:
        """Aggregate estimate for a candidate request.

        When *config* is given, ``exceeds_limit``/``limit_type`` report the
        first violated ceiling (file count, then payload, then tokens).
        """
        total_bytes = 0
        total_tokens = 0
        has_images = False
        largest_bytes = 0
        largest_name = ""

        for document in documents:
            metrics = self.file_metrics(document)
            total_bytes += metrics.total_bytes + self.JSON_OVERHEAD_BYTES
            total_tokens += metrics.estimated_tokens + self.JSON_OVERHEAD_TOKENS
            if metrics.image_bytes > 0:
                has_images = True
            if metrics.total_bytes > largest_bytes or not largest_name:
                largest_bytes = metrics.total_bytes
                largest_name = metrics.file_name

        limit_type = LimitType.NONE
        if config is not None:
            limit_type = self.violated_limit(
                len(documents), total_bytes, total_tokens, config
            )

        return PayloadEstimate(
            total_bytes=total_bytes,
            estimated_tokens=total_tokens,
            has_images=has_images,
            largest_file_bytes=largest_bytes,
            largest_file_name=largest_name,
            exceeds_limit=limit_type is not LimitType.NONE,
            limit_type=limit_type,
        )

    @staticmethod
    def violated_limit(
        file_count: int,
        total_bytes: int,
        total_tokens: int,
        config: BatchingConfig,
    ) -> LimitType:
        if file_count > config.max_files:
            return LimitType.FILE_COUNT
        if total_bytes > config.max_payload_bytes:
            return LimitType.PAYLOAD
        if total_tokens > config.max_tokens:
            return LimitType.TOKENS
        return LimitType.NONE
