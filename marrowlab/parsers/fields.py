import re
from typing import Dict, Optional, Tuple

from .base import _to_float, first_match
from .models import LabValue, LabValuePattern

_SP = r"[^\S\n]*"  # horizontal whitespace only; a value never spans lines


def _numeric(label: str, *names: str) -> LabValuePattern:
    alt = "|".join(names)
    rx = re.compile(
        rf"^{_SP}(?:{alt})\b{_SP}(?:\([^)\n]*\))?{_SP}:?{_SP}[*<>]?{_SP}([-+]?[\d.]+)",
        re.IGNORECASE | re.MULTILINE,
    )
    return LabValuePattern(label=label, pattern=rx, kind="numeric")


def _literal(label: str, rx: str) -> LabValuePattern:
    return LabValuePattern(
        label=label, pattern=re.compile(rx, re.IGNORECASE | re.MULTILINE), kind="literal"
    )


# Order is the canonical order used by the narrative.
LAB_PATTERNS: Tuple[LabValuePattern, ...] = (
    _literal(
        "date",
        rf"^{_SP}(?:(?:collection|result|report){_SP}date|collected|date)(?:/time)?{_SP}:{_SP}"
        r"(\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2})",
    ),
    _numeric("wbc", "WBC", "White Blood Cells?", "White Cell Count", "Leukocytes"),
    _numeric("rbc", "RBC", "Red Blood Cells?", "Red Cell Count"),
    _numeric("hgb", "HGB", "Hgb", "Hemoglobin", "Haemoglobin", "Hb"),
    _numeric("hct", "HCT", "Hematocrit", "Haematocrit"),
    _numeric("mcv", "MCV"),
    _numeric("mch", "MCH"),
    _numeric("mchc", "MCHC"),
    _numeric("rdw", "RDW(?:-CV)?"),
    _numeric("plt", "PLT", "Platelet Count", "Platelets?"),
    _numeric("mpv", "MPV"),
)


def extract_lab_values(
    text: Optional[str], patterns: Tuple[LabValuePattern, ...] = LAB_PATTERNS
) -> Dict[str, LabValue]:
    """
    Apply each labeled pattern to ``text`` and keep the first match per label.

    Numeric labels are coerced to float and dropped when the capture is not a
    decimal (e.g. ``1.2.3``); literal labels keep the captured string as-is.
    Labels without a match are absent from the result. Never raises.
    """
    out: Dict[str, LabValue] = {}
    if not text:
        return out
    for pat in patterns:
        match = first_match(pat.label, pat.pattern, text)
        if match is None:
            continue
        if pat.kind == "literal":
            out[pat.label] = match.raw
            continue
        num = _to_float(match.raw)
        if num is not None:
            out[pat.label] = num
    return out
