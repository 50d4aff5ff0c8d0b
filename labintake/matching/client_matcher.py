"""Ranks registry clients against consolidated patient demographics."""

from collections.abc import Sequence
from typing import ClassVar

from rapidfuzz.distance import Levenshtein

from labintake.consolidation.models import ConsolidatedPatientInfo
from labintake.logging.logger import Log
from labintake.matching.models import (
    ClientMatchCandidate,
    ClientRecord,
    ConfidenceTier,
    SuggestedAction,
)
from labintake.matching.name_normalizer import NameNormalizer


class ClientMatcher:
    """Scores every registry entry; never picks one on the caller's behalf.

    Points: name similarity is worth 3, an equal date of birth 3 and an equal
    gender 1. Date of birth and gender only count when both sides carry them,
    and the score is the share of available points earned.
    """

    NAME_POINTS: ClassVar[float] = 3.0
    DOB_POINTS: ClassVar[float] = 3.0
    GENDER_POINTS: ClassVar[float] = 1.0
    HIGH_THRESHOLD: ClassVar[float] = 0.85
    MEDIUM_THRESHOLD: ClassVar[float] = 0.6

    def __init__(self, name_normalizer: NameNormalizer | None = None) -> None:
        self._names = name_normalizer or NameNormalizer()

    def match(
        self,
        patient_info: ConsolidatedPatientInfo,
        registry: Sequence[ClientRecord],
        limit: int | None = None,
    ) -> list[ClientMatchCandidate]:
        if not patient_info.name and not patient_info.date_of_birth:
            Log.info("No patient name or date of birth; skipping client matching")
            return []

        target_name = self._names.normalize(patient_info.name) if patient_info.name else ""
        candidates = [self._score(patient_info, target_name, client) for client in registry]
        candidates.sort(key=lambda candidate: candidate.score, reverse=True)
        if limit is not None:
            candidates = candidates[:limit]

        if candidates:
            top = candidates[0]
            Log.info(
                f"Client matching: {len(registry)} clients scored, top {top.client_id} "
                f"score={top.score:.2f} ({top.confidence_tier.value})"
            )
        return candidates

    def suggest_action(
        self,
        patient_info: ConsolidatedPatientInfo,
        candidates: Sequence[ClientMatchCandidate],
    ) -> SuggestedAction:
        if not patient_info.name and not patient_info.date_of_birth:
            return SuggestedAction.MANUAL_SELECT
        if candidates and candidates[0].confidence_tier == ConfidenceTier.HIGH:
            return SuggestedAction.USE_EXISTING
        if not any(c.confidence_tier != ConfidenceTier.LOW for c in candidates):
            return SuggestedAction.CREATE_NEW
        return SuggestedAction.MANUAL_SELECT

    def _score(
        self,
        patient_info: ConsolidatedPatientInfo,
        target_name: str,
        client: ClientRecord,
    ) -> ClientMatchCandidate:
        earned = 0.0
        available = 0.0

        similarity = 0.0
        if target_name:
            available += self.NAME_POINTS
            similarity = Levenshtein.normalized_similarity(
                target_name, self._names.normalize(client.full_name)
            )
            earned += self.NAME_POINTS * similarity

        dob_match: bool | None = None
        if patient_info.date_of_birth and client.date_of_birth:
            available += self.DOB_POINTS
            dob_match = _same_date(patient_info.date_of_birth, client.date_of_birth)
            if dob_match:
                earned += self.DOB_POINTS

        if patient_info.gender and client.gender:
            available += self.GENDER_POINTS
            if patient_info.gender.strip().lower() == client.gender.strip().lower():
                earned += self.GENDER_POINTS

        score = earned / available if available else 0.0
        return ClientMatchCandidate(
            client_id=client.client_id,
            full_name=client.full_name,
            score=score,
            confidence_tier=self._tier(score),
            name_similarity=similarity,
            date_of_birth_match=dob_match,
        )

    @classmethod
    def _tier(cls, score: float) -> ConfidenceTier:
        if score >= cls.HIGH_THRESHOLD:
            return ConfidenceTier.HIGH
        if score >= cls.MEDIUM_THRESHOLD:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.LOW


def _same_date(left: str, right: str) -> bool:
    return left.strip()[:10] == right.strip()[:10]
