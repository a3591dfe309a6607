import re
from typing import Dict, Optional, Tuple

from .base import _split_lines, _to_float, first_match, is_absolute_count
from .models import LabValuePattern, MorphologyFinding

_SP = r"[^\S\n]*"


def _flag(label: str, name: str) -> LabValuePattern:
    rx = re.compile(rf"^{_SP}(?:{name}){_SP}:{_SP}([^\n]*\S)", re.IGNORECASE | re.MULTILINE)
    return LabValuePattern(label=label, pattern=rx, kind="literal")


MORPHOLOGY_PATTERNS: Tuple[LabValuePattern, ...] = (
    _flag("toxic_granulation", r"toxic\s+granulation"),
    _flag("dohle_bodies", r"d[oö]hle\s+bodies"),
    _flag("giant_platelets", r"giant\s+platelets?|large\s+platelets"),
    _flag("platelet_clumps", r"platelet\s+clump(?:s|ing)"),
    _flag("schistocytes", r"schistocytes?"),
    _flag("rbc_morphology", r"(?:rbc|red\s+(?:blood\s+)?cell)\s+morphology"),
    _flag("smear_review", r"(?:peripheral\s+)?smear\s+review"),
    LabValuePattern(
        label="atypical_lymphocytes",
        pattern=re.compile(
            rf"^{_SP}(?:atypical|reactive|variant){_SP}lymph(?:ocyte)?s?\b[^:\n]*:{_SP}(\d+(?:\.\d+)?)",
            re.IGNORECASE | re.MULTILINE,
        ),
        kind="numeric",
    ),
)

# Label spelling varies a lot between sources ("NRBC%", "NRBC/100 WBC",
# "Nucleated RBC 2"), so this one is looked up line by line. The label must
# open the line: "WBC (corrected for NRBC): 7.5" is a WBC row.
NRBC_RX = re.compile(
    rf"^{_SP}(?:nrbcs?|nucleated{_SP}(?:rbcs?|red{_SP}(?:blood{_SP})?cells?))\b"
    rf"(?:[^:\n]*:|{_SP}%?){_SP}(\d+(?:\.\d+)?)",
    re.IGNORECASE,
)


def _first_percentage(pattern: re.Pattern, text: Optional[str]) -> Optional[float]:
    for line in _split_lines(text):
        if is_absolute_count(line):
            continue
        m = pattern.search(line)
        if m:
            return _to_float(m.group(1))
    return None


def extract_nrbc(text: Optional[str]) -> Optional[float]:
    """First NRBC percentage in ``text``; absolute-count lines are skipped."""
    return _first_percentage(NRBC_RX, text)


def extract_morphology(
    text: Optional[str], patterns: Tuple[LabValuePattern, ...] = MORPHOLOGY_PATTERNS
) -> Dict[str, MorphologyFinding]:
    """
    Qualitative smear findings plus the NRBC percentage.

    Same contract as the lab fields: first match per label, values trimmed,
    no match means no finding (never a default "normal"). Numeric findings
    ignore absolute-count lines.
    """
    out: Dict[str, MorphologyFinding] = {}
    if not text:
        return out
    for pat in patterns:
        if pat.kind == "numeric":
            # percentages only; "#"/"abs" rows are counts
            num = _first_percentage(pat.pattern, text)
            if num is not None:
                out[pat.label] = MorphologyFinding(label=pat.label, value=num)
            continue
        match = first_match(pat.label, pat.pattern, text)
        if match is not None:
            out[pat.label] = MorphologyFinding(label=pat.label, value=match.raw.strip())

    nrbc = extract_nrbc(text)
    if nrbc is not None:
        out["nrbc"] = MorphologyFinding(label="nrbc", value=nrbc)
    return out
