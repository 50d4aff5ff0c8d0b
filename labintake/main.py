import argparse
import asyncio
import json
import signal
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path

from labintake.config.settings import Settings
from labintake.database.connection import close_pool, init_pool
from labintake.database.exceptions import ClientRegistryError
from labintake.database.repositories.client_repository import ClientRepository
from labintake.documents.converter import DocumentConverter
from labintake.documents.exceptions import DocumentConversionError
from labintake.documents.models import ProcessedDocument
from labintake.logging.logger import Log
from labintake.matching.models import ClientRecord
from labintake.pdf.factory import PdfExtractorFactory
from labintake.processor.exceptions import PipelineCancelledError
from labintake.processor.models import PipelineResult
from labintake.processor.processor import Processor, build_processor


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="labintake",
        description="Extract biomarkers from lab reports and match them to a client.",
    )
    parser.add_argument("files", nargs="+", type=Path, help="PDF, image or text files")
    parser.add_argument("--user-id", help="only match against clients of this practitioner")
    parser.add_argument(
        "--no-registry",
        action="store_true",
        help="skip loading the client registry from the database",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: convert files -> load registry -> run pipeline -> print report."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    converter = DocumentConverter(
        PdfExtractorFactory.create(settings),
        render_dpi=settings.pdf_render_dpi,
        max_render_pages=settings.pdf_max_render_pages,
        min_text_chars=settings.pdf_min_text_chars,
    )
    documents, unreadable = convert_files(converter, args.files)
    registry = [] if args.no_registry else load_registry(settings, args.user_id)
    processor = build_processor(settings)

    try:
        result = asyncio.run(run_pipeline(processor, documents, registry))
    except PipelineCancelledError as exc:
        Log.error(f"Pipeline cancelled: {exc}")
        return 130

    report = build_report(result)
    report["unreadable_files"] = unreadable
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 0 if result.results or not documents else 1


def convert_files(
    converter: DocumentConverter, paths: Sequence[Path]
) -> tuple[list[ProcessedDocument], list[dict[str, str]]]:
    documents: list[ProcessedDocument] = []
    unreadable: list[dict[str, str]] = []
    for path in paths:
        try:
            documents.append(converter.convert_path(path))
        except (FileNotFoundError, DocumentConversionError) as exc:
            Log.error(f"Cannot read {path}: {exc}")
            unreadable.append({"file_name": path.name, "error": str(exc)})
    return documents, unreadable


def load_registry(settings: Settings, user_id: str | None) -> list[ClientRecord]:
    init_pool(settings)
    try:
        clients = ClientRepository().list_clients(user_id)
        Log.info(f"Loaded {len(clients)} client(s) from the registry")
        return clients
    except ClientRegistryError as exc:
        Log.warning(f"{exc}; continuing without client matching")
        return []
    finally:
        close_pool()


async def run_pipeline(
    processor: Processor,
    documents: list[ProcessedDocument],
    registry: list[ClientRecord],
) -> PipelineResult:
    """Run the pipeline; SIGTERM cancels it before the next batch."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        Log.debug("SIGTERM handler unavailable; run cannot be cancelled by signal")
    return await processor.run(documents, registry, cancel_event=cancel_event)


def build_report(result: PipelineResult) -> dict[str, object]:
    """JSON-ready summary of a run for the downstream persistence step."""
    consolidation = result.consolidation
    return {
        "run_id": result.run_id,
        "batch_count": result.batch_count,
        "results": [asdict(item) for item in result.results],
        "failed_files": [asdict(item) for item in result.failed_files],
        "skipped_files": [
            {"file_name": verdict.file_name, "reason": verdict.describe()}
            for verdict in result.skipped_files
        ],
        "patient_info": asdict(consolidation.patient_info),
        "biomarkers": {key: asdict(value) for key, value in consolidation.biomarkers.items()},
        "candidates": [asdict(candidate) for candidate in result.candidates],
        "suggested_action": result.suggested_action.value,
        "telemetry": asdict(result.telemetry),
    }


if __name__ == "__main__":
    raise SystemExit(main())
