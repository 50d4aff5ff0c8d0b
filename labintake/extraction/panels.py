from labintake.extraction.models import Biomarker

# Ordered: the first matching category is listed first in the panel name.
PANEL_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("CBC", ("wbc", "rbc", "hemoglobin", "hematocrit", "platelet")),
    ("Lipid Panel", ("cholesterol", "hdl", "ldl", "triglyceride")),
    ("Hormone Panel", ("testosterone", "estrogen", "estradiol", "cortisol", "dhea")),
    ("Metabolic Panel", ("glucose", "sodium", "potassium", "creatinine")),
    ("Thyroid Panel", ("tsh", "t3", "t4", "thyroid")),
    ("Iron Studies", ("iron", "ferritin", "tibc")),
    ("Vitamin Panel", ("vitamin", "b12", "folate")),
    ("Heavy Metals", ("lead", "mercury", "arsenic", "cadmium")),
)


def derive_panel_name(biomarkers: list[Biomarker]) -> str | None:
    """Summarize a result by the categories its biomarker names fall into."""
    if not biomarkers:
        return None
    names = [marker.name.lower() for marker in biomarkers]
    categories = [
        category
        for category, keywords in PANEL_KEYWORDS
        if any(keyword in name for name in names for keyword in keywords)
    ]
    if not categories:
        return f"Lab Panel ({len(biomarkers)} biomarkers)"
    return " + ".join(categories)
