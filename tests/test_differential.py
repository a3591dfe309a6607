"""
test_differential.py

Unit tests for the differential classifier.

Covers:
- label synonyms and canonical cell types.
- priority between plain, qualified and "(%)" lines.
- absolute-count lines and the not-performed short-circuit.
"""

import pytest

from marrowlab.parsers.differential import (
    PRIORITY_BARE,
    PRIORITY_PERCENT,
    PRIORITY_QUALIFIED,
    classify_differential,
    collect_entries,
    detect_method,
    label_priority,
    normalize_cell_label,
)

# Same cell type four times, the "(%)" row must win
NEUTRO_VARIANTS = """Polys: 61
Neutrophils (auto): 57
Segs: 60
Neutrophils (%): 58
Lymphs: 30
"""


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Polys", "neutrophils"),
        ("Neutrophil", "neutrophils"),
        ("Lymphs, atypical/reactive (auto)", "atypical_lymphocytes"),
        ("Lymphs, Atypical / Reactive", "atypical_lymphocytes"),
        ("Imm. Gran.", "immature_granulocytes"),
        ("Immature Granulocytes (%)", "immature_granulocytes"),
        ("NRBC%", "nrbc"),
        ("Blasts", "blasts"),
        ("Smudge cells", None),
        ("", None),
    ],
)
def test_normalize_cell_label(label, expected):
    assert normalize_cell_label(label) == expected


def test_label_priority():
    assert label_priority("Lymphs (%)") == PRIORITY_PERCENT
    assert label_priority("Lymphs (manual)") == PRIORITY_QUALIFIED
    assert label_priority("Lymphs") == PRIORITY_BARE


def test_percent_qualified_beats_plain():
    res = classify_differential("Lymphs: 40\nLymphs (%): 42")
    assert res.counts == {"lymphocytes": 42.0}
    res = classify_differential("Lymphs (%): 42\nLymphs: 40")
    assert res.counts == {"lymphocytes": 42.0}


def test_qualified_beats_plain_and_percent_beats_qualified():
    assert classify_differential("Neutrophils: 50\nNeutrophils (auto): 55").counts == {"neutrophils": 55.0}
    assert classify_differential("Neutrophils (manual): 60\nNeutrophils (%): 58").counts == {
        "neutrophils": 58.0
    }


def test_tie_keeps_first_seen():
    assert classify_differential("Polys: 60\nNeutrophils: 62").counts == {"neutrophils": 60.0}


def test_one_entry_per_canonical_type():
    res = classify_differential(NEUTRO_VARIANTS)
    assert res.counts == {"neutrophils": 58.0, "lymphocytes": 30.0}
    assert res.entries["neutrophils"].line == "Neutrophils (%): 58"
    # all four neutrophil rows were seen before resolution
    assert len([e for e in collect_entries(NEUTRO_VARIANTS) if e.cell_type == "neutrophils"]) == 4


def test_absolute_counts_are_excluded():
    res = classify_differential("Neutrophils #: 4.2\nAbsolute Lymphocytes: 1.8\nMonos (abs): 0.5")
    assert res.counts == {}


def test_unknown_labels_and_out_of_range_dropped():
    res = classify_differential("Smudge cells: 4\nWBC: 7.2\nNeutrophils: 155\nEos: 3")
    assert res.counts == {"eosinophils": 3.0}


def test_atypical_and_nrbc_have_their_own_types():
    res = classify_differential("Lymphs, atypical/reactive (auto): 3\nNRBC%: 2\nIG (%): 0.4")
    assert res.counts == {"atypical_lymphocytes": 3.0, "nrbc": 2.0, "immature_granulocytes": 0.4}


def test_not_performed_short_circuit():
    res = classify_differential("Differential Method: Not Performed\nNeutrophils: 55\nLymphs: 30")
    assert res.method == "not performed"
    assert res.not_performed
    assert res.counts == {}
    assert res.entries == {}


def test_detect_method():
    assert detect_method("Differential Type: Manual") == "manual"
    assert detect_method("Diff Method: Automated (instrument)") == "automated"
    assert detect_method("Manual Diff Status: not done") == "not performed"
    assert detect_method("Differential Status: annotated, performed") == "annotated, performed"
    assert detect_method("Differential Status: Notes reviewed, done") == "notes reviewed, done"
    assert detect_method("WBC: 7.2") is None
    assert detect_method(None) is None


def test_empty_input():
    res = classify_differential("")
    assert res.counts == {} and res.method is None
