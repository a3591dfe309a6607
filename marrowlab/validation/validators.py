# marrowlab/validation/validators.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from marrowlab.commons.types import ReportForm

MAX_LAB_TEXT_CHARS = 200_000
LATERALITY_VALUES = ("left", "right", "bilateral", "do not report")


class LabTextPayload(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str):
        if not v or not v.strip():
            raise ValueError("Lab text is empty")
        if len(v) > MAX_LAB_TEXT_CHARS:
            raise ValueError(f"Lab text too long: {len(v)} > {MAX_LAB_TEXT_CHARS} characters")
        return v


class ReportHeader(BaseModel):
    accession: Optional[str] = None
    laterality: Optional[str] = None

    @field_validator("accession")
    @classmethod
    def _accession_not_blank(cls, v: Optional[str]):
        if v is not None and not v.strip():
            raise ValueError("Accession # must not be blank when given")
        return v

    @field_validator("laterality")
    @classmethod
    def _known_laterality(cls, v: Optional[str]):
        if v and v.strip().lower() not in LATERALITY_VALUES:
            raise ValueError(f"Unknown laterality {v!r}; expected one of {', '.join(LATERALITY_VALUES)}")
        return v


def validate_lab_text_or_raise(text: str) -> str:
    """Raises ValidationError if the lab text is blank or oversized."""
    return LabTextPayload(text=text).text


def validate_report_form_or_raise(data: Dict[str, Any]) -> ReportForm:
    """Build the form model; raises ValidationError on bad shape or header values."""
    form = ReportForm(**(data or {}))
    ReportHeader(accession=form.accession, laterality=form.laterality)
    return form
