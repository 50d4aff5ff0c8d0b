from dataclasses import dataclass
from enum import Enum


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SuggestedAction(str, Enum):
    USE_EXISTING = "use_existing"
    CREATE_NEW = "create_new"
    MANUAL_SELECT = "manual_select"


@dataclass(frozen=True)
class ClientRecord:
    """An existing client in the practitioner's registry (read-only)."""

    client_id: str
    full_name: str
    date_of_birth: str | None = None
    gender: str | None = None


@dataclass(frozen=True)
class ClientMatchCandidate:
    client_id: str
    full_name: str
    score: float
    confidence_tier: ConfidenceTier
    name_similarity: float
    date_of_birth_match: bool | None
