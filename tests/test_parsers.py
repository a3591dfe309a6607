# flake8: noqa

from marrowlab.parsers.fields import extract_lab_values
from marrowlab.parsers.morphology import extract_morphology, extract_nrbc

CBC = """Collection Date: 03/14/2025
WBC: 7.2
RBC 4.51
Hemoglobin (g/dL): 13.1
HCT: 39.8
MCV: 88
MCHC: 33.4.1
PLT: 245
WBC: 9.9
"""

SMEAR = """Toxic Granulation: Present
Giant Platelets: Negative
RBC Morphology:   Anisocytosis, slight
Atypical Lymphs (%): 4
NRBC/100 WBC: 1.5
"""


def test_lab_values_first_match_and_types():
    labs = extract_lab_values(CBC)
    assert labs["date"] == "03/14/2025"
    assert labs["wbc"] == 7.2  # the later "WBC: 9.9" is ignored
    assert labs["rbc"] == 4.51
    assert labs["hgb"] == 13.1
    assert labs["hct"] == 39.8
    assert labs["mcv"] == 88.0
    assert labs["plt"] == 245.0


def test_lab_values_omits_missing_and_malformed():
    labs = extract_lab_values(CBC)
    assert "mchc" not in labs  # "33.4.1" is not a number
    assert "mch" not in labs
    assert "rdw" not in labs
    assert "mpv" not in labs


def test_lab_values_empty_input():
    assert extract_lab_values("") == {}
    assert extract_lab_values(None) == {}


def test_lab_values_case_insensitive():
    labs = extract_lab_values("wbc: 5\nplatelets 310")
    assert labs == {"wbc": 5.0, "plt": 310.0}


def test_lab_labels_do_not_bleed_into_each_other():
    labs = extract_lab_values("NRBC: 2\nMCHC: 33\nHbA1c: 6.1")
    assert labs == {"mchc": 33.0}


def test_morphology_findings():
    morph = extract_morphology(SMEAR)
    assert morph["toxic_granulation"].value == "Present"
    assert morph["giant_platelets"].value == "Negative"
    assert morph["rbc_morphology"].value == "Anisocytosis, slight"
    assert morph["atypical_lymphocytes"].value == 4.0
    assert morph["nrbc"].value == 1.5


def test_morphology_absent_means_omitted():
    morph = extract_morphology(SMEAR)
    assert "dohle_bodies" not in morph
    assert "schistocytes" not in morph
    assert extract_morphology("") == {}


def test_nrbc_label_variants_and_absolute_skip():
    assert extract_nrbc("NRBC%: 2") == 2.0
    assert extract_nrbc("Nucleated RBC 3.5") == 3.5
    assert extract_nrbc("NRBC #: 0.02\nNRBC (%): 1") == 1.0
    assert extract_nrbc("NRBC: none seen") is None


def test_nrbc_label_must_open_the_line():
    assert extract_nrbc("WBC (corrected for NRBC): 7.5") is None
    assert extract_nrbc("WBC (corrected for NRBC): 7.5\n  NRBC/100 WBC: 2") == 2.0


def test_atypical_lymphocytes_skip_absolute_counts():
    assert "atypical_lymphocytes" not in extract_morphology("Reactive Lymphs #: 0.3")
    assert "atypical_lymphocytes" not in extract_morphology("Atypical Lymphocytes (Abs): 0.2")
    morph = extract_morphology("Atypical Lymphs #: 0.2\nAtypical Lymphs: 4")
    assert morph["atypical_lymphocytes"].value == 4.0
