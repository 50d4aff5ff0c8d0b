from dataclasses import dataclass, field
from enum import Enum


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Discrepancy:
    """A later document disagreed with the value already kept for a field."""

    field: str
    kept_value: str
    alternate_value: str
    source_file: str

    def describe(self) -> str:
        return (
            f"{self.field}: kept {self.kept_value!r}, "
            f"{self.source_file} reported {self.alternate_value!r}"
        )


@dataclass(frozen=True)
class ConsolidatedPatientInfo:
    name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    test_date: str | None = None
    discrepancies: tuple[Discrepancy, ...] = ()
    confidence: Confidence = Confidence.HIGH


@dataclass(frozen=True)
class ConsolidatedBiomarker:
    name: str
    value: str | None
    unit: str
    test_date: str | None
    source_file: str


# normalized biomarker name -> retained measurement, at most one per name
ConsolidatedBiomarkerSet = dict[str, ConsolidatedBiomarker]


@dataclass(frozen=True)
class ConsolidationResult:
    patient_info: ConsolidatedPatientInfo
    biomarkers: ConsolidatedBiomarkerSet = field(default_factory=dict)
