"""Canonical keys for biomarker names as they appear across labs and languages."""

import re

import icu  # type: ignore[import-untyped]

_TRANSLITERATOR = icu.Transliterator.createInstance("Any-Latin; Latin-ASCII; Lower")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")

# Specimen words carry no identity: "Serum Ferritin" and "Ferritin" are one analyte.
_SPECIMEN_PREFIXES = ("serum ", "plasma ", "blood ", "s ")
_SPECIMEN_SUFFIXES = (" serum", " plasma", " level", " count")

BIOMARKER_ALIASES: dict[str, tuple[str, ...]] = {
    "hemoglobin": ("hgb", "hb", "haemoglobin", "hemoglobina", "hämoglobin"),
    "hematocrit": ("hct", "haematocrit", "hematocrito", "hämatokrit"),
    "wbc": ("white blood cells", "white blood cell", "leukocytes", "leucocitos", "leukozyten"),
    "rbc": ("red blood cells", "red blood cell", "erythrocytes", "eritrocitos", "erythrozyten"),
    "platelets": ("plt", "platelet", "thrombocytes", "plaquetas", "thrombozyten"),
    "glucose": ("fasting glucose", "glucose fasting", "glucosa", "glicose", "glykämie"),
    "hba1c": ("hemoglobin a1c", "a1c", "glycated hemoglobin", "glycohemoglobin"),
    "total cholesterol": ("cholesterol", "cholesterol total", "chol", "colesterol total"),
    "hdl cholesterol": ("hdl", "hdl c", "colesterol hdl"),
    "ldl cholesterol": ("ldl", "ldl c", "colesterol ldl"),
    "triglycerides": ("triglyceride", "tg", "trig", "triglicéridos", "triglicerídeos"),
    "tsh": ("thyroid stimulating hormone", "thyrotropin"),
    "alt": ("alanine aminotransferase", "sgpt", "alt sgpt"),
    "ast": ("aspartate aminotransferase", "sgot", "ast sgot"),
    "alp": ("alkaline phosphatase", "alk phos", "alkp"),
    "ggt": ("gamma glutamyl transferase", "gamma gt", "ggtp"),
    "bun": ("blood urea nitrogen", "urea nitrogen", "urea"),
    "creatinine": ("creat", "crea", "creatinina", "kreatinin"),
    "vitamin d": ("25 hydroxy vitamin d", "25 oh vitamin d", "vitamin d 25 oh", "25 oh d"),
    "vitamin b12": ("b12", "cobalamin"),
    "crp": ("c reactive protein", "hs crp", "hscrp"),
    "sodium": ("na",),
    "potassium": ("k",),
    "chloride": ("cl",),
    "calcium": ("ca", "calcium total", "total calcium"),
}

def _ascii_key(name: str) -> str:
    ascii_name = _TRANSLITERATOR.transliterate(name)
    return _NON_ALNUM_RE.sub(" ", ascii_name).strip()


_ALIAS_INDEX: dict[str, str] = {
    _ascii_key(alias): canonical
    for canonical, aliases in BIOMARKER_ALIASES.items()
    for alias in (canonical, *aliases)
}

PLACEHOLDER_VALUES = frozenset(
    {"", "n/a", "na", "-", "--", "null", "none", "nil", "pending", "tbd", "see note", "see comment"}
)


def normalize_biomarker_name(name: str) -> str:
    """Map a reported biomarker name onto its grouping key.

    >>> normalize_biomarker_name("Serum Ferritin")
    'ferritin'
    >>> normalize_biomarker_name("HDL-C")
    'hdl cholesterol'
    """
    key = _ascii_key(name)
    if not key:
        # nothing transliterable, e.g. symbols only
        return " ".join(name.casefold().split())
    if key in _ALIAS_INDEX:
        return _ALIAS_INDEX[key]
    stripped = _strip_specimen(key)
    return _ALIAS_INDEX.get(stripped, stripped)


def is_placeholder(value: str | None) -> bool:
    return value is None or value.strip().lower() in PLACEHOLDER_VALUES


def _strip_specimen(key: str) -> str:
    for prefix in _SPECIMEN_PREFIXES:
        if key.startswith(prefix) and len(key) > len(prefix):
            key = key[len(prefix) :]
            break
    for suffix in _SPECIMEN_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            key = key[: -len(suffix)]
            break
    return key
