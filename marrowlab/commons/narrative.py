"""
CBC narrative.

Builds the paragraph that goes into the PERIPHERAL BLOOD section of the
report, always in the same order:

1. lab values with units ("CBC results are as follows: WBC 7.2 K/μL, ...")
2. differential ("Manual differential demonstrates 55% neutrophils, ...")
   or the not-performed sentence
3. extra findings (IG, NRBC, abnormal morphology), continuing the
   differential sentence when it is still open

Values reported as negative/normal/completed are left out. The output is a
pure function of the bundle.
"""
from typing import List, Optional, Tuple, Union

from marrowlab.parsers.differential import DIFFERENTIAL_ORDER
from marrowlab.parsers.models import ParsedBundle

LAB_DISPLAY: Tuple[Tuple[str, str, str], ...] = (
    ("wbc", "WBC", "K/μL"),
    ("rbc", "RBC", "M/μL"),
    ("hgb", "HGB", "g/dL"),
    ("hct", "HCT", "%"),
    ("mcv", "MCV", "fL"),
    ("mch", "MCH", "pg"),
    ("mchc", "MCHC", "g/dL"),
    ("rdw", "RDW", "%"),
    ("plt", "PLT", "K/μL"),
    ("mpv", "MPV", "fL"),
)

CELL_DISPLAY = {
    "neutrophils": "neutrophils",
    "bands": "bands",
    "lymphocytes": "lymphocytes",
    "atypical_lymphocytes": "atypical lymphocytes",
    "monocytes": "monocytes",
    "eosinophils": "eosinophils",
    "basophils": "basophils",
    "metamyelocytes": "metamyelocytes",
    "myelocytes": "myelocytes",
    "promyelocytes": "promyelocytes",
    "blasts": "blasts",
    "other": "other",
}

# (label, text used in the paragraph)
QUALITATIVE_ORDER: Tuple[Tuple[str, str], ...] = (
    ("toxic_granulation", "toxic granulation"),
    ("dohle_bodies", "Döhle bodies"),
    ("giant_platelets", "giant platelets"),
    ("platelet_clumps", "platelet clumps"),
    ("schistocytes", "schistocytes"),
    ("rbc_morphology", "RBC morphology"),
    ("smear_review", "smear review"),
)

SUPPRESSED_VALUES = frozenset(
    {"negative", "normal", "completed", "complete", "none", "none seen", "not seen", "absent"}
)
PRESENT_VALUES = frozenset({"present", "positive", "seen", "yes"})

NOT_PERFORMED_SENTENCE = "A differential was not performed."


def format_number(value: Union[float, int, str]) -> str:
    """7.0 -> '7', 7.25 -> '7.25'."""
    if isinstance(value, str):
        return value
    text = "%f" % float(value)
    return text.rstrip("0").rstrip(".") if "." in text else text


def join_words(items: List[str]) -> str:
    """'a', 'a and b', 'a, b, and c'."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


def _is_suppressed(value: str) -> bool:
    return value.strip().rstrip(".").lower() in SUPPRESSED_VALUES


def _lab_sentence(bundle: ParsedBundle) -> Optional[str]:
    parts = []
    for label, name, unit in LAB_DISPLAY:
        value = bundle.labs.get(label)
        if value is None:
            continue
        sep = "" if unit == "%" else " "
        parts.append(f"{name} {format_number(value)}{sep}{unit}")
    if not parts:
        return None
    date = bundle.labs.get("date")
    lead = f"CBC results from {date} are as follows:" if date else "CBC results are as follows:"
    return f"{lead} {', '.join(parts)}."


def _differential_lead(method: Optional[str]) -> str:
    if not method:
        return "Differential shows"
    if method == "manual":
        return "Manual differential demonstrates"
    return f"{method.capitalize()} differential shows"


def _differential_clause(bundle: ParsedBundle) -> Optional[str]:
    parts = [
        f"{format_number(bundle.differential[cell])}% {CELL_DISPLAY[cell]}"
        for cell in DIFFERENTIAL_ORDER
        if cell in bundle.differential
    ]
    if not parts:
        return None
    return f"{_differential_lead(bundle.differential_method)} {', '.join(parts)}"


def _qualitative(label: str, name: str, value: str) -> str:
    if label == "rbc_morphology":
        return f"{name} notable for {value.lower()}"
    if label == "smear_review":
        return f"{name} {value.lower()}"
    if value.lower() in PRESENT_VALUES:
        return name
    return f"{name} ({value.lower()})"


def _extra_findings(bundle: ParsedBundle) -> List[str]:
    found = []
    diff = bundle.differential
    morph = bundle.morphology

    ig = diff.get("immature_granulocytes")
    if ig is not None:
        found.append(f"{format_number(ig)}% immature granulocytes")

    nrbc = diff.get("nrbc")
    if nrbc is None and "nrbc" in morph:
        nrbc = morph["nrbc"].value
    if nrbc is not None:
        found.append(f"{format_number(nrbc)}% NRBCs")

    if "atypical_lymphocytes" not in diff and "atypical_lymphocytes" in morph:
        found.append(f"{format_number(morph['atypical_lymphocytes'].value)}% atypical lymphocytes")

    for label, name in QUALITATIVE_ORDER:
        finding = morph.get(label)
        if finding is None:
            continue
        value = str(finding.value)
        if not value or _is_suppressed(value):
            continue
        found.append(_qualitative(label, name, value))
    return found


def compose_narrative(bundle: ParsedBundle) -> str:
    sentences: List[str] = []

    labs = _lab_sentence(bundle)
    if labs:
        sentences.append(labs)

    open_clause = None
    if bundle.differential_not_performed:
        sentences.append(NOT_PERFORMED_SENTENCE)
    else:
        open_clause = _differential_clause(bundle)

    extras = _extra_findings(bundle)
    if open_clause and extras:
        sentences.append(f"{open_clause}, with {join_words(extras)}.")
    elif open_clause:
        sentences.append(f"{open_clause}.")
    elif extras:
        sentences.append(f"Additional findings include {join_words(extras)}.")

    return " ".join(sentences)
