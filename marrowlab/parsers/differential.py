"""
Differential classifier.

Turns "label: percentage" lines into one percentage per canonical cell type.
The same cell type often shows up several times in a pasted result (the
analyzer value, a manual correction, a "(%)"-qualified row...); entries are
ranked by how explicitly the source line states a percentage and the best
one survives:

    3  label carries a "(%)" qualifier        "Lymphs (%): 42"
    2  label carries another "(...)" qualifier "Neutrophils (auto): 55"
    1  bare label                              "Lymphs: 40"

Ties keep the first line seen.
"""
import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from marrowlab.commons.logger import logger

from .base import _split_lines, _to_float, is_absolute_count
from .models import DifferentialEntry, DifferentialResult

# label (anything up to the colon, with an optional "(...)" right before it), colon, number
LINE_RX = re.compile(r"^\s*(?:(?P<label>[^:\n]*?)\s*(?P<qual>\([^()\n]*\))?\s*)?:\s*(?P<value>\d+(?:\.\d+)?)\b")
QUALIFIER_RX = re.compile(r"\(([^()]*)\)")
PERCENT_QUALIFIER_RX = re.compile(r"\(\s*%\s*\)")
METHOD_RX = re.compile(
    r"^\s*(?:manual\s+)?diff(?:erential)?\s+(?:method|type|status)\s*:\s*(?P<value>[^\n]+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)
NOT_RX = re.compile(r"\bnot\b")

PRIORITY_PERCENT = 3
PRIORITY_QUALIFIED = 2
PRIORITY_BARE = 1

CELL_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        # neutrophils
        "neutrophil": "neutrophils",
        "neutrophils": "neutrophils",
        "neut": "neutrophils",
        "neuts": "neutrophils",
        "polys": "neutrophils",
        "segs": "neutrophils",
        "segmented neutrophils": "neutrophils",
        "neutrophils, segmented": "neutrophils",
        "pmn": "neutrophils",
        # bands
        "band": "bands",
        "bands": "bands",
        "band neutrophils": "bands",
        "neutrophils, band": "bands",
        "stabs": "bands",
        # lymphocytes
        "lymph": "lymphocytes",
        "lymphs": "lymphocytes",
        "lymphocyte": "lymphocytes",
        "lymphocytes": "lymphocytes",
        # atypical / reactive lymphocytes
        "atypical lymphs": "atypical_lymphocytes",
        "atypical lymphocytes": "atypical_lymphocytes",
        "reactive lymphs": "atypical_lymphocytes",
        "reactive lymphocytes": "atypical_lymphocytes",
        "variant lymphs": "atypical_lymphocytes",
        "variant lymphocytes": "atypical_lymphocytes",
        "lymphs, atypical": "atypical_lymphocytes",
        "lymphs, reactive": "atypical_lymphocytes",
        "lymphs, atypical/reactive": "atypical_lymphocytes",
        "lymphocytes, atypical": "atypical_lymphocytes",
        "lymphocytes, atypical/reactive": "atypical_lymphocytes",
        # monocytes
        "mono": "monocytes",
        "monos": "monocytes",
        "monocyte": "monocytes",
        "monocytes": "monocytes",
        # eosinophils
        "eos": "eosinophils",
        "eosinophil": "eosinophils",
        "eosinophils": "eosinophils",
        # basophils
        "baso": "basophils",
        "basos": "basophils",
        "basophil": "basophils",
        "basophils": "basophils",
        # immature myeloid
        "metamyelocyte": "metamyelocytes",
        "metamyelocytes": "metamyelocytes",
        "metas": "metamyelocytes",
        "myelocyte": "myelocytes",
        "myelocytes": "myelocytes",
        "myelos": "myelocytes",
        "promyelocyte": "promyelocytes",
        "promyelocytes": "promyelocytes",
        "promyelos": "promyelocytes",
        "blast": "blasts",
        "blasts": "blasts",
        "other": "other",
        "other cells": "other",
        # immature granulocytes
        "ig": "immature_granulocytes",
        "igs": "immature_granulocytes",
        "imm gran": "immature_granulocytes",
        "immature gran": "immature_granulocytes",
        "immature granulocyte": "immature_granulocytes",
        "immature granulocytes": "immature_granulocytes",
        # nucleated red cells
        "nrbc": "nrbc",
        "nrbcs": "nrbc",
        "nucleated rbc": "nrbc",
        "nucleated rbcs": "nrbc",
        "nucleated red blood cells": "nrbc",
        "nucleated red cells": "nrbc",
    }
)

# Canonical order for the differential clause; IG and NRBC are reported apart.
DIFFERENTIAL_ORDER = (
    "neutrophils",
    "bands",
    "lymphocytes",
    "atypical_lymphocytes",
    "monocytes",
    "eosinophils",
    "basophils",
    "metamyelocytes",
    "myelocytes",
    "promyelocytes",
    "blasts",
    "other",
)


def normalize_cell_label(label: Optional[str]) -> Optional[str]:
    """Map a source label to its canonical cell type, or None if unknown."""
    if not label:
        return None
    key = QUALIFIER_RX.sub(" ", label.lower())
    key = key.replace("%", " ").replace(".", " ")
    key = re.sub(r"\s*([,/])\s*", r"\1 ", key)
    key = re.sub(r"\s+", " ", key).strip(" ,")
    key = key.replace("/ ", "/")
    return CELL_SYNONYMS.get(key)


def label_priority(label: str) -> int:
    if PERCENT_QUALIFIER_RX.search(label):
        return PRIORITY_PERCENT
    if QUALIFIER_RX.search(label):
        return PRIORITY_QUALIFIED
    return PRIORITY_BARE


def detect_method(text: Optional[str]) -> Optional[str]:
    """Return ``manual``, ``automated``, ``not performed`` or None."""
    if not text:
        return None
    m = METHOD_RX.search(text)
    if not m:
        return None
    value = m.group("value").strip().lower()
    if NOT_RX.search(value) and ("perform" in value or "done" in value):
        return "not performed"
    if value.startswith("manual"):
        return "manual"
    if value.startswith("auto") or "instrument" in value:
        return "automated"
    return value


def collect_entries(text: Optional[str]) -> List[DifferentialEntry]:
    """Every recognized percentage line, in input order, before resolution."""
    entries: List[DifferentialEntry] = []
    for line in _split_lines(text):
        if is_absolute_count(line):
            continue
        m = LINE_RX.match(line)
        if not m:
            continue
        label = (m.group("label") or "") + (m.group("qual") or "")
        cell_type = normalize_cell_label(label)
        if cell_type is None:
            logger.debug(f"Differential: unrecognized label in {line!r}")
            continue
        value = _to_float(m.group("value"))
        if value is None or not 0 <= value <= 100:
            logger.debug(f"Differential: percentage out of range in {line!r}")
            continue
        entries.append(
            DifferentialEntry(
                cell_type=cell_type,
                value=value,
                priority=label_priority(label),
                line=line.strip(),
            )
        )
    return entries


def resolve_entries(entries: List[DifferentialEntry]) -> Dict[str, DifferentialEntry]:
    """One entry per cell type: highest priority wins, first seen on a tie."""
    winners: Dict[str, DifferentialEntry] = {}
    for entry in entries:
        current = winners.get(entry.cell_type)
        if current is None or entry.priority > current.priority:
            winners[entry.cell_type] = entry
    return winners


def classify_differential(text: Optional[str]) -> DifferentialResult:
    method = detect_method(text)
    if method == "not performed":
        return DifferentialResult(method=method)
    winners = resolve_entries(collect_entries(text))
    return DifferentialResult(
        method=method,
        counts={cell_type: e.value for cell_type, e in winners.items()},
        entries=winners,
    )
