import json
from pathlib import Path
from unittest.mock import patch

import pytest

from labintake.consolidation.models import ConsolidatedPatientInfo, ConsolidationResult
from labintake.documents.converter import DocumentConverter
from labintake.extraction.errors import ErrorType
from labintake.extraction.models import ExtractionResult, FailedFile
from labintake.main import build_report, convert_files, main, parse_args
from labintake.matching.models import SuggestedAction
from labintake.processor.models import PipelineResult
from labintake.telemetry.models import TelemetrySummary

LAB_TEXT = "Glucose 92 mg/dL (70-99)\nTotal Cholesterol 180 mg/dL\nHDL 55 mg/dL\n"


class TestParseArgs:
    def test_files_and_flags(self) -> None:
        args = parse_args(["a.pdf", "b.png", "--user-id", "7", "--no-registry"])
        assert args.files == [Path("a.pdf"), Path("b.png")]
        assert args.user_id == "7"
        assert args.no_registry is True


class TestConvertFiles:
    def test_unreadable_files_are_reported(self, tmp_path: Path) -> None:
        report = tmp_path / "report.txt"
        report.write_text(LAB_TEXT, encoding="utf-8")
        archive = tmp_path / "bundle.zip"
        archive.write_bytes(b"PK\x03\x04")
        converter = DocumentConverter(pdf_extractor=None)  # type: ignore[arg-type]

        documents, unreadable = convert_files(
            converter, [report, archive, tmp_path / "missing.txt"]
        )

        assert [doc.file_name for doc in documents] == ["report.txt"]
        assert [item["file_name"] for item in unreadable] == ["bundle.zip", "missing.txt"]


class TestBuildReport:
    def test_serializes_to_json(self) -> None:
        result = PipelineResult(
            run_id="run_1",
            results=[ExtractionResult(source_file="a.pdf")],
            failed_files=[FailedFile("b.pdf", ErrorType.TIMEOUT, "timed out", 1)],
            skipped_files=[],
            consolidation=ConsolidationResult(patient_info=ConsolidatedPatientInfo()),
            candidates=[],
            suggested_action=SuggestedAction.MANUAL_SELECT,
            telemetry=TelemetrySummary(),
            batch_count=1,
        )
        report = build_report(result)
        decoded = json.loads(json.dumps(report))
        assert decoded["failed_files"][0]["error_type"] == "timeout"
        assert decoded["suggested_action"] == "manual_select"
        assert decoded["patient_info"]["confidence"] == "high"


class TestMain:
    def test_runs_with_example_provider(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("EXTRACTION_PROVIDER", "example")
        report = tmp_path / "report.txt"
        report.write_text(LAB_TEXT, encoding="utf-8")

        with patch("labintake.main.Log.configure"):
            exit_code = main([str(report), "--no-registry"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["results"][0]["source_file"] == "report.txt"
        assert output["suggested_action"] == "manual_select"
        assert output["unreadable_files"] == []
