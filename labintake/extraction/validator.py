"""Turns a raw response text into a tagged extraction outcome."""

import json
from typing import Any

from labintake.consolidation.biomarker_names import is_placeholder
from labintake.extraction.exceptions import ExtractionValidationError
from labintake.extraction.json_span import JsonSpanError, find_json_span
from labintake.extraction.models import (
    Biomarker,
    EmptyFindings,
    ExtractionOutcome,
    ExtractionResult,
    ParseFailure,
    Parsed,
    PatientInfo,
)
from labintake.extraction.panels import derive_panel_name

_MAX_BIOMARKERS = 500
_DIAGNOSTIC_CHARS = 200

_GENDER_ALIASES = {
    "male": "male",
    "m": "male",
    "man": "male",
    "masculino": "male",
    "masculin": "male",
    "männlich": "male",
    "female": "female",
    "f": "female",
    "woman": "female",
    "femenino": "female",
    "feminino": "female",
    "féminin": "female",
    "weiblich": "female",
    "other": "other",
    "o": "other",
    "x": "other",
    "diverse": "other",
    "divers": "other",
    "non-binary": "other",
    "nonbinary": "other",
    "intersex": "other",
    "otro": "other",
    "outro": "other",
    "autre": "other",
}


def parse_response(raw: str, file_names: list[str]) -> ExtractionOutcome:
    """Parse a complete response for the documents named in *file_names*.

    A response with no JSON at all is reported as ``EmptyFindings``; anything
    else that is not a well-formed payload for every document is a
    ``ParseFailure``.
    """
    try:
        span = find_json_span(raw)
    except JsonSpanError as exc:
        return ParseFailure(reason=f"Malformed JSON in response: {exc}")
    if span is None:
        snippet = raw.strip()[:_DIAGNOSTIC_CHARS]
        return EmptyFindings(diagnostic=f"No JSON found in response: {snippet!r}")

    try:
        data = json.loads(span)
    except json.JSONDecodeError as exc:
        return ParseFailure(reason=f"Invalid JSON response: {exc}")

    try:
        return Parsed(results=validate_and_build(data, file_names))
    except ExtractionValidationError as exc:
        return ParseFailure(reason=str(exc), invalid_shape=True)


def validate_and_build(data: Any, file_names: list[str]) -> list[ExtractionResult]:
    """Validate parsed JSON and build one result per document, in order.

    Raises:
        ExtractionValidationError: on any shape violation.
    """
    if isinstance(data, list):
        if len(data) != len(file_names):
            raise ExtractionValidationError(
                f"Expected {len(file_names)} results, got {len(data)}"
            )
        return [_build_result(item, name) for item, name in zip(data, file_names)]
    if isinstance(data, dict):
        if len(file_names) != 1:
            raise ExtractionValidationError(
                f"Expected an array of {len(file_names)} results, got a single object"
            )
        return [_build_result(data, file_names[0])]
    raise ExtractionValidationError("JSON response must be an object or an array")


def empty_result(file_name: str, note: str) -> ExtractionResult:
    return ExtractionResult(source_file=file_name, note=note)


def _build_result(raw: Any, file_name: str) -> ExtractionResult:
    if not isinstance(raw, dict):
        raise ExtractionValidationError(f"Result for {file_name} must be an object")
    biomarkers = _build_biomarkers(raw.get("biomarkers"), file_name)
    patient_info = _build_patient_info(raw.get("patientInfo"), file_name)
    panel_name = _optional_str(raw.get("panelName")) or derive_panel_name(biomarkers)
    return ExtractionResult(
        biomarkers=biomarkers,
        patient_info=patient_info,
        panel_name=panel_name,
        source_file=file_name,
    )


def _build_biomarkers(raw: Any, file_name: str) -> list[Biomarker]:
    if not isinstance(raw, list):
        raise ExtractionValidationError(f"Missing biomarkers array for {file_name}")
    if len(raw) > _MAX_BIOMARKERS:
        raise ExtractionValidationError(
            f"Too many biomarkers for {file_name}: {len(raw)} (max {_MAX_BIOMARKERS})"
        )
    biomarkers: list[Biomarker] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ExtractionValidationError(
                f"Biomarker at index {index} for {file_name} must be an object"
            )
        name = _optional_str(item.get("name"))
        if name is None:
            continue
        biomarkers.append(
            Biomarker(
                name=name,
                value=_optional_str(item.get("value")),
                unit=_optional_str(item.get("unit")) or "",
            )
        )
    return biomarkers


def _build_patient_info(raw: Any, file_name: str) -> PatientInfo:
    if raw is None:
        return PatientInfo()
    if not isinstance(raw, dict):
        raise ExtractionValidationError(
            f"'patientInfo' for {file_name} must be an object or null"
        )
    return PatientInfo(
        name=_optional_str(raw.get("name")),
        date_of_birth=_optional_str(raw.get("dateOfBirth")),
        gender=_normalize_gender(_optional_str(raw.get("gender"))),
        test_date=_optional_str(raw.get("testDate")),
    )


def _normalize_gender(value: str | None) -> str | None:
    """Known aliases only; "unknown", "U" and placeholders stay unset."""
    if value is None or is_placeholder(value):
        return None
    return _GENDER_ALIASES.get(value.strip().lower())


def _optional_str(raw: Any) -> str | None:
    """Coerce scalars to stripped strings; blanks and the literal "null" become None."""
    if raw is None or isinstance(raw, (dict, list)):
        return None
    if isinstance(raw, bool):
        return str(raw).lower()
    text = str(raw).strip()
    if not text or text.lower() == "null":
        return None
    return text
