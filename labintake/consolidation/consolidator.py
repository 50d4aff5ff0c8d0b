"""Merges per-document extraction results of one upload session."""

from collections.abc import Sequence
from datetime import date

from labintake.consolidation.biomarker_names import is_placeholder, normalize_biomarker_name
from labintake.consolidation.models import (
    ConsolidatedBiomarker,
    ConsolidatedBiomarkerSet,
    ConsolidatedPatientInfo,
    ConsolidationResult,
    Confidence,
    Discrepancy,
)
from labintake.extraction.models import ExtractionResult
from labintake.logging.logger import Log

PATIENT_FIELDS = ("name", "date_of_birth", "gender", "test_date")
_MEDIUM_CONFIDENCE_MAX_DISCREPANCIES = 2


class Consolidator:
    """Builds one patient record and one biomarker set from many results.

    Pure: the same input always yields an equal output, and inputs are never
    modified.
    """

    def consolidate(self, results: Sequence[ExtractionResult]) -> ConsolidationResult:
        patient_info = self.consolidate_patient_info(results)
        biomarkers = self.consolidate_biomarkers(results)
        Log.info(
            f"Consolidated {len(results)} result(s): {len(biomarkers)} biomarkers, "
            f"{len(patient_info.discrepancies)} discrepancies "
            f"({patient_info.confidence.value} confidence)"
        )
        return ConsolidationResult(patient_info=patient_info, biomarkers=biomarkers)

    def consolidate_patient_info(
        self, results: Sequence[ExtractionResult]
    ) -> ConsolidatedPatientInfo:
        kept: dict[str, str | None] = {}
        discrepancies: list[Discrepancy] = []
        reporting = [result for result in results if not result.patient_info.is_empty()]

        for field_name in PATIENT_FIELDS:
            value: str | None = None
            seen: set[str] = set()
            for result in reporting:
                candidate = getattr(result.patient_info, field_name)
                if candidate is None or not candidate.strip():
                    continue
                candidate_key = _comparison_key(candidate)
                if value is None:
                    value = candidate
                    seen.add(candidate_key)
                elif candidate_key not in seen:
                    seen.add(candidate_key)
                    discrepancies.append(
                        Discrepancy(
                            field=field_name,
                            kept_value=value,
                            alternate_value=candidate,
                            source_file=result.source_file,
                        )
                    )
            kept[field_name] = value

        for discrepancy in discrepancies:
            Log.warning(f"Patient info discrepancy: {discrepancy.describe()}")

        name = kept["name"]
        return ConsolidatedPatientInfo(
            name=to_display_name(name) if name else None,
            date_of_birth=kept["date_of_birth"],
            gender=kept["gender"],
            test_date=kept["test_date"],
            discrepancies=tuple(discrepancies),
            confidence=_confidence(len(discrepancies)),
        )

    def consolidate_biomarkers(
        self, results: Sequence[ExtractionResult]
    ) -> ConsolidatedBiomarkerSet:
        merged: ConsolidatedBiomarkerSet = {}
        for result in results:
            test_date = result.patient_info.test_date
            for biomarker in result.biomarkers:
                key = normalize_biomarker_name(biomarker.name)
                if not key:
                    continue
                candidate = ConsolidatedBiomarker(
                    name=biomarker.name,
                    value=None if is_placeholder(biomarker.value) else biomarker.value,
                    unit=biomarker.unit,
                    test_date=test_date,
                    source_file=result.source_file,
                )
                current = merged.get(key)
                if current is None or _supersedes(candidate, current):
                    merged[key] = candidate
        return merged


def _supersedes(candidate: ConsolidatedBiomarker, current: ConsolidatedBiomarker) -> bool:
    """Whether *candidate* should replace the value kept so far."""
    if candidate.value is None:
        return False
    if current.value is None:
        return True
    candidate_date = _parse_date(candidate.test_date)
    current_date = _parse_date(current.test_date)
    if candidate_date is None:
        return False
    return current_date is None or candidate_date > current_date


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _comparison_key(value: str) -> str:
    return " ".join(value.lower().split())


def _confidence(discrepancy_count: int) -> Confidence:
    if discrepancy_count == 0:
        return Confidence.HIGH
    if discrepancy_count <= _MEDIUM_CONFIDENCE_MAX_DISCREPANCIES:
        return Confidence.MEDIUM
    return Confidence.LOW


def to_display_name(name: str) -> str:
    """Title-case names reported in a single case ("JANE DOE", "jane doe")."""
    collapsed = " ".join(name.split())
    if collapsed.isupper() or collapsed.islower():
        return collapsed.title()
    return collapsed
