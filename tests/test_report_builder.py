# flake8: noqa

import pytest
from pydantic import ValidationError

from marrowlab.commons.types import AspirateAdequacy, LineageFindings, ReportForm, SectionFindings
from marrowlab.helpers.report_builder import EMPTY_REPORT, RULE, ReportBuilder
from marrowlab.validation.validators import validate_lab_text_or_raise, validate_report_form_or_raise

LAB_TEXT = "WBC: 7.2\nHGB: 13.1\nNeutrophils (%): 55\nLymphs: 30\nNRBC%: 2"


def full_form(**overrides):
    data = dict(
        accession="SP25-1234",
        laterality="Right",
        specimens=["Core biopsy", "Aspirate"],
        clinical_summary="MDS s/p SCT",
        biopsy_adequacy="Adequate",
        limitations="fragmented",
        core=SectionFindings(
            megakaryocytes=LineageFindings(
                grade="Adequate", descriptors={"size": ["small"], "nuclear": ["hypolobated"]}
            ),
            lymphocytes=LineageFindings(description="scattered small lymphocytes"),
        ),
        aspirate_adequacy=AspirateAdequacy(cellularity="Cellular", spicules="Present"),
        aspirate=SectionFindings(erythroid=LineageFindings(grade="Decreased")),
        lab_text=LAB_TEXT,
    )
    data.update(overrides)
    return ReportForm(**data)


def test_empty_form_gives_placeholder():
    assert ReportBuilder().build(ReportForm()) == EMPTY_REPORT


def test_full_report_sections_in_order():
    text = ReportBuilder().build(full_form())
    lines = text.splitlines()
    assert lines[:6] == [
        "A. BONE MARROW, BIOPSY:",
        "Please enter a diagnosis",
        "Accession #: SP25-1234",
        "Laterality: Right",
        "Specimens: Core biopsy, Aspirate",
        "Clinical Summary: MDS s/p SCT",
    ]
    assert lines[6] == RULE
    order = [
        "CORE BIOPSY:",
        "Biopsy adequacy: Adequate; fragmented.",
        "Megakaryocytes: Adequate.",
        "Megakaryocyte features include: small, hypolobated.",
        "Additional lymphocyte/plasma cell findings: scattered small lymphocytes.",
        "ASPIRATE:",
        "Aspirate adequacy: Cellular, spicules: Present, touch prep: Not specified.",
        "Erythroid lineage: Decreased.",
        "PERIPHERAL BLOOD:",
        "(Clinical summary: MDS s/p SCT)",
    ]
    positions = [lines.index(line) for line in order]
    assert positions == sorted(positions)
    assert text.endswith("(Clinical summary: MDS s/p SCT)\n")


def test_cbc_paragraph_is_spliced_in():
    lines = ReportBuilder().build(full_form()).splitlines()
    paragraph = lines[lines.index("PERIPHERAL BLOOD:") + 1]
    assert paragraph.startswith("CBC results are as follows: WBC 7.2 K/μL, HGB 13.1 g/dL.")


def test_no_lab_text_no_peripheral_blood_section():
    text = ReportBuilder().build(full_form(lab_text=None))
    assert "PERIPHERAL BLOOD:" not in text


def test_laterality_do_not_report_is_hidden():
    text = ReportBuilder().build(full_form(laterality="do not report"))
    assert "Laterality:" not in text


def test_validate_report_form():
    form = validate_report_form_or_raise({"accession": "SP25-1", "laterality": "Left"})
    assert form.accession == "SP25-1"
    with pytest.raises(ValidationError):
        validate_report_form_or_raise({"laterality": "upside"})
    with pytest.raises(ValidationError):
        validate_report_form_or_raise({"accession": "   "})


def test_validate_lab_text():
    assert validate_lab_text_or_raise(LAB_TEXT) == LAB_TEXT
    with pytest.raises(ValidationError):
        validate_lab_text_or_raise("  \n ")
