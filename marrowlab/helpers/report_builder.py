from typing import List, Optional

from marrowlab.commons.lab_normalizer import LabTextNormalizer
from marrowlab.commons.narrative import compose_narrative
from marrowlab.commons.types import LineageFindings, ReportForm, SectionFindings

RULE = "_" * 65

EMPTY_REPORT = (
    "A. BONE MARROW, BIOPSY:\n"
    "Please enter a diagnosis\n"
    "COMMENT: No data entered yet\n"
    f"{RULE}\n\n"
    "No form data has been entered. Please fill out at least some sections "
    "of the form before generating a report."
)

# attribute, grade line label, features label, additional findings label
LINEAGES = (
    ("megakaryocytes", "Megakaryocytes", "Megakaryocyte", "megakaryocyte"),
    ("erythroid", "Erythroid lineage", "Erythroid", "erythroid"),
    ("myeloid", "Myeloid lineage", "Myeloid", "myeloid"),
    ("lymphocytes", None, "Lymphocyte/plasma cell", "lymphocyte/plasma cell"),
)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _lineage_lines(
    findings: LineageFindings, grade_label: Optional[str], features_label: str, extra_label: str
) -> List[str]:
    lines = []
    grade = _clean(findings.grade)
    if grade_label and grade:
        lines.append(f"{grade_label}: {grade}.")
    features = findings.features()
    if features:
        lines.append(f"{features_label} features include: {', '.join(features)}.")
    description = _clean(findings.description)
    if description:
        lines.append(f"Additional {extra_label} findings: {description}.")
    return lines


def _section_lines(section: SectionFindings) -> List[str]:
    lines = []
    for attr, grade_label, features_label, extra_label in LINEAGES:
        lines += _lineage_lines(getattr(section, attr), grade_label, features_label, extra_label)
    return lines


class ReportBuilder:
    """Assembles the marrow report text from a filled-in form."""

    def __init__(self, normalizer: Optional[LabTextNormalizer] = None):
        self.normalizer = normalizer or LabTextNormalizer()

    def cbc_paragraph(self, lab_text: Optional[str]) -> str:
        if not _clean(lab_text):
            return ""
        outcome = self.normalizer.safe_normalize(lab_text)
        if not outcome.ok:
            return ""
        return compose_narrative(outcome.bundle)

    def build(self, form: ReportForm) -> str:
        if not form.has_data():
            return EMPTY_REPORT

        out = ["A. BONE MARROW, BIOPSY:", "Please enter a diagnosis"]

        if _clean(form.accession):
            out.append(f"Accession #: {_clean(form.accession)}")
        laterality = _clean(form.laterality)
        if laterality and laterality.lower() != "do not report":
            out.append(f"Laterality: {laterality}")
        specimens = [s for s in form.specimens if _clean(s)]
        if specimens:
            out.append(f"Specimens: {', '.join(specimens)}")
        summary = _clean(form.clinical_summary)
        if summary:
            out.append(f"Clinical Summary: {summary}")
        out += [RULE, ""]

        out.append("CORE BIOPSY:")
        adequacy = _clean(form.biopsy_adequacy)
        if adequacy:
            limitations = _clean(form.limitations)
            suffix = f"; {limitations}" if limitations else ""
            out.append(f"Biopsy adequacy: {adequacy}{suffix}.")
        out += _section_lines(form.core)
        out.append("")

        out.append("ASPIRATE:")
        asp = form.aspirate_adequacy
        if _clean(asp.cellularity) or _clean(asp.spicules) or _clean(asp.touch_prep):
            out.append(
                f"Aspirate adequacy: {_clean(asp.cellularity) or 'Not specified'}, "
                f"spicules: {_clean(asp.spicules) or 'Not specified'}, "
                f"touch prep: {_clean(asp.touch_prep) or 'Not specified'}."
            )
        out += _section_lines(form.aspirate)
        out.append("")

        paragraph = self.cbc_paragraph(form.lab_text)
        if paragraph:
            out += ["PERIPHERAL BLOOD:", paragraph, ""]

        if summary:
            out.append(f"(Clinical summary: {summary})")

        return "\n".join(out) + "\n"
