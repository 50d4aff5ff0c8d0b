"""Pre-filter that drops documents unlikely to contain lab results.

Runs before any network call. Rules are evaluated per document and the first
matching rule decides the verdict:

1. Too little text and no image payload -> empty document.
2. Text-only document with almost no numbers and no lab vocabulary ->
   insufficient lab indicators.
3. Serialized size above the per-file ceiling -> file too large.
"""

import re
from typing import ClassVar

from labintake.batching.estimator import PayloadEstimator
from labintake.documents.models import (
    FilterConfig,
    FilterOutcome,
    FilterVerdict,
    ProcessedDocument,
    SkipReason,
)
from labintake.logging.logger import Log


class DocumentFilter:
    """Partitions documents into processable and skipped ones."""

    # Units are matched as plain substrings; words need word boundaries so
    # that e.g. "alt" does not fire inside "health".
    UNIT_KEYWORDS: ClassVar[tuple[str, ...]] = (
        "mg/dl", "mg/l", "mmol/l", "µmol/l", "umol/l", "pg/ml", "ng/ml",
        "iu/l", "u/l", "g/dl", "g/l", "miu/l", "pmol/l", "nmol/l", "meq/l",
        "k/µl", "k/ul", "×10³/µl", "×10¹²/l", "10^3/ul", "10^9/l",
    )
    WORD_KEYWORDS: ClassVar[tuple[str, ...]] = (
        # English analytes
        "glucose", "cholesterol", "hemoglobin", "haemoglobin", "creatinine",
        "albumin", "sodium", "potassium", "calcium", "tsh", "vitamin", "hdl",
        "ldl", "triglyceride", "triglycerides", "bilirubin", "ferritin", "wbc",
        "rbc", "platelet", "platelets", "hematocrit", "ast", "alt", "alp",
        "hba1c",
        # English report vocabulary
        "laboratory", "lab result", "test result", "specimen",
        "reference range", "normal range", "optimal range", "collection date",
        # Spanish
        "glucosa", "colesterol", "hemoglobina", "creatinina", "albumina",
        "sodio", "potasio", "calcio", "vitamina", "triglicéridos",
        "laboratorio", "resultado", "paciente", "rango", "referencia",
        # Portuguese
        "glicose", "laboratório", "triglicerídeos",
        # French
        "glycémie", "cholestérol", "hémoglobine", "vitamine", "résultat",
        "créatinine",
        # German
        "glukose", "cholesterin", "hämoglobin", "kreatinin", "ergebnis",
        "befund",
    )

    _NUMERIC_RE: ClassVar[re.Pattern[str]] = re.compile(r"\d+(?:[.,]\d+)?")
    _WORD_RES: ClassVar[tuple[re.Pattern[str], ...]] = tuple(
        re.compile(rf"(?<!\w){re.escape(word)}(?!\w)") for word in WORD_KEYWORDS
    )

    def __init__(
        self,
        config: FilterConfig | None = None,
        estimator: PayloadEstimator | None = None,
    ) -> None:
        self._config = config or FilterConfig()
        self._estimator = estimator or PayloadEstimator()

    def filter(self, documents: list[ProcessedDocument]) -> FilterOutcome:
        """Give every document exactly one verdict and partition the input."""
        outcome = FilterOutcome()
        for document in documents:
            verdict = self.evaluate(document)
            if verdict.processable:
                outcome.processable.append(document)
            else:
                outcome.skipped.append(verdict)
                Log.info(f"Skipping '{document.file_name}': {verdict.describe()}")

        if outcome.skipped:
            Log.info(
                f"Filtered {len(documents)} documents: "
                f"{len(outcome.processable)} processable, {len(outcome.skipped)} skipped"
            )
        return outcome

    def evaluate(self, document: ProcessedDocument) -> FilterVerdict:
        text = document.text
        has_images = document.has_images

        if len(text.strip()) < self._config.min_text_chars and not has_images:
            return FilterVerdict(
                document=document,
                processable=False,
                reason=SkipReason.EMPTY,
                detail=f"{len(text.strip())} characters, no images",
            )

        if not has_images:
            numeric_count, keyword_count = self.count_signals(text)
            if numeric_count < self._config.min_numeric_tokens and keyword_count == 0:
                return FilterVerdict(
                    document=document,
                    processable=False,
                    reason=SkipReason.INSUFFICIENT_SIGNAL,
                    detail=f"{numeric_count} numbers, {keyword_count} keywords",
                )

        size = self._estimator.serialized_size(document)
        if size > self._config.max_file_bytes:
            return FilterVerdict(
                document=document,
                processable=False,
                reason=SkipReason.TOO_LARGE,
                detail=(
                    f"{size / 1024 / 1024:.1f} MB exceeds "
                    f"{self._config.max_file_bytes / 1024 / 1024:.1f} MB limit"
                ),
            )

        return FilterVerdict(document=document, processable=True)

    def count_signals(self, text: str) -> tuple[int, int]:
        """Return (numeric token count, distinct lab keyword count)."""
        lowered = text.lower()
        numeric_count = len(self._NUMERIC_RE.findall(lowered))
        keyword_count = sum(1 for unit in self.UNIT_KEYWORDS if unit in lowered)
        keyword_count += sum(1 for pattern in self._WORD_RES if pattern.search(lowered))
        return numeric_count, keyword_count
