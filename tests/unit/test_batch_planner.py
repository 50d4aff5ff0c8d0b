import re

from labintake.batching.models import (
    IMAGE_HEAVY_BATCHING,
    MIB,
    Batch,
    BatchingConfig,
    BatchType,
    PayloadEstimate,
)
from labintake.batching.planner import BatchPlanner, generate_batch_id, validate_batch
from labintake.documents.models import ProcessedDocument


def _text_doc(chars: int, name: str) -> ProcessedDocument:
    return ProcessedDocument(file_name=name, mime_type="text/plain", extracted_text="x" * chars)


def _image_doc(size: int, name: str) -> ProcessedDocument:
    return ProcessedDocument(file_name=name, mime_type="image/png", image_data=b"\0" * size)


def _all_names(batches: list[Batch]) -> list[str]:
    return [name for batch in batches for name in batch.file_names]


class TestPlanPartition:
    def test_empty_input_gives_no_batches(self) -> None:
        assert BatchPlanner().plan([]) == []

    def test_small_documents_share_one_batch(self) -> None:
        docs = [_text_doc(1000, f"{i}.txt") for i in range(5)]
        batches = BatchPlanner().plan(docs)
        assert len(batches) == 1
        assert batches[0].file_count == 5

    def test_every_document_in_exactly_one_batch(self) -> None:
        docs = [_text_doc(1000 * (i + 1), f"{i}.txt") for i in range(23)]
        batches = BatchPlanner().plan(docs)
        names = _all_names(batches)
        assert sorted(names) == sorted(doc.file_name for doc in docs)
        assert len(names) == len(set(names))
        assert all(batch.file_count > 0 for batch in batches)

    def test_file_count_ceiling(self) -> None:
        docs = [_text_doc(100, f"{i}.txt") for i in range(25)]
        config = BatchingConfig(max_files=10, max_payload_bytes=MIB, max_tokens=100_000)
        batches = BatchPlanner().plan(docs, config)
        assert [batch.file_count for batch in batches] == [10, 10, 5]

    def test_no_batch_exceeds_any_ceiling(self) -> None:
        config = BatchingConfig(max_files=4, max_payload_bytes=20_000, max_tokens=3_000)
        docs = [_text_doc(700 * (i % 7 + 1), f"t{i}.txt") for i in range(30)]
        docs += [_image_doc(900 * (i % 3 + 1), f"i{i}.png") for i in range(5)]
        batches = BatchPlanner().plan(docs, config)
        for batch in batches:
            if batch.oversized:
                assert batch.file_count == 1
                continue
            assert batch.file_count <= config.max_files
            assert batch.estimate.total_bytes <= config.max_payload_bytes
            assert batch.estimate.estimated_tokens <= config.max_tokens
            assert batch.estimate.exceeds_limit is False

    def test_largest_documents_are_packed_first(self) -> None:
        docs = [_text_doc(100, "small.txt"), _text_doc(5000, "large.txt"), _text_doc(900, "mid.txt")]
        batches = BatchPlanner().plan(docs)
        assert batches[0].file_names == ["large.txt", "mid.txt", "small.txt"]

    def test_images_weigh_less_than_text(self) -> None:
        docs = [_image_doc(1200, "img.png"), _text_doc(1000, "text.txt")]
        batches = BatchPlanner().plan(docs, BatchingConfig())
        # 1200 * 0.75 = 900 < 1000
        assert batches[0].file_names == ["text.txt", "img.png"]


class TestOversizedDocuments:
    def test_document_over_ceiling_gets_own_flagged_batch(self) -> None:
        config = BatchingConfig(max_files=10, max_payload_bytes=5_000, max_tokens=100_000)
        docs = [_text_doc(100, "a.txt"), _text_doc(10_000, "huge.txt"), _text_doc(100, "b.txt")]
        batches = BatchPlanner().plan(docs, config)
        oversized = [batch for batch in batches if batch.oversized]
        assert len(oversized) == 1
        assert oversized[0].file_names == ["huge.txt"]
        assert oversized[0].estimate.exceeds_limit is True
        normal = [batch for batch in batches if not batch.oversized]
        assert sorted(_all_names(normal)) == ["a.txt", "b.txt"]

    def test_oversized_document_is_not_split(self) -> None:
        config = BatchingConfig(max_files=10, max_payload_bytes=1_000, max_tokens=100)
        batches = BatchPlanner().plan([_text_doc(50_000, "huge.txt")], config)
        assert len(batches) == 1
        assert batches[0].documents[0].extracted_text == "x" * 50_000


class TestConfigSelection:
    def test_image_majority_uses_image_profile(self) -> None:
        docs = [_image_doc(10, "a.png"), _image_doc(10, "b.png"), _text_doc(10, "c.txt")]
        assert BatchPlanner().select_config(docs) == IMAGE_HEAVY_BATCHING

    def test_text_majority_uses_default_profile(self) -> None:
        docs = [_image_doc(10, "a.png"), _text_doc(10, "b.txt"), _text_doc(10, "c.txt")]
        assert BatchPlanner().select_config(docs) == BatchingConfig()


class TestClassify:
    def test_text_only_is_text_heavy(self) -> None:
        assert BatchPlanner().classify([_text_doc(100, "a")]) == BatchType.TEXT_HEAVY

    def test_image_only_is_image_heavy(self) -> None:
        assert BatchPlanner().classify([_image_doc(100, "a")]) == BatchType.IMAGE_HEAVY

    def test_balanced_is_mixed(self) -> None:
        docs = [_image_doc(100, "a"), _text_doc(100, "b")]
        assert BatchPlanner().classify(docs) == BatchType.MIXED


class TestValidateBatch:
    def _batch(self, file_count: int, total_bytes: int, tokens: int) -> Batch:
        docs = tuple(_text_doc(1, f"{i}") for i in range(file_count))
        return Batch(
            batch_id="batch_1_x",
            documents=docs,
            estimate=PayloadEstimate(total_bytes=total_bytes, estimated_tokens=tokens),
            batch_type=BatchType.TEXT_HEAVY,
        )

    def test_valid_batch(self) -> None:
        result = validate_batch(self._batch(2, 1000, 100), BatchingConfig())
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_empty_batch_is_invalid(self) -> None:
        result = validate_batch(self._batch(0, 0, 0), BatchingConfig())
        assert result.valid is False
        assert "no files" in result.errors[0]

    def test_over_limits_are_errors(self) -> None:
        config = BatchingConfig(max_files=1, max_payload_bytes=100, max_tokens=10)
        result = validate_batch(self._batch(2, 200, 20), config)
        assert len(result.errors) == 3

    def test_near_limit_warns(self) -> None:
        config = BatchingConfig(max_files=10, max_payload_bytes=1000, max_tokens=1000)
        result = validate_batch(self._batch(1, 900, 900), config)
        assert result.valid is True
        assert len(result.warnings) == 2


class TestBatchId:
    def test_format(self) -> None:
        assert re.fullmatch(r"batch_\d{13}_[0-9a-f]{9}", generate_batch_id())

    def test_unique(self) -> None:
        assert generate_batch_id() != generate_batch_id()
