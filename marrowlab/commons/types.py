from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class LineageFindings(BaseModel):
    grade: Optional[str] = None
    # descriptor group -> checked values, e.g. {"size": ["small"], "nuclear": [...]}
    descriptors: Dict[str, List[str]] = {}
    description: Optional[str] = None

    def features(self) -> List[str]:
        return [v for values in self.descriptors.values() for v in values if v]

    def has_data(self) -> bool:
        return bool((self.grade or "").strip() or self.features() or (self.description or "").strip())


class SectionFindings(BaseModel):
    megakaryocytes: LineageFindings = LineageFindings()
    erythroid: LineageFindings = LineageFindings()
    myeloid: LineageFindings = LineageFindings()
    lymphocytes: LineageFindings = LineageFindings()

    def has_data(self) -> bool:
        return any(
            lin.has_data() for lin in (self.megakaryocytes, self.erythroid, self.myeloid, self.lymphocytes)
        )


class AspirateAdequacy(BaseModel):
    cellularity: Optional[str] = None
    spicules: Optional[str] = None
    touch_prep: Optional[str] = None


class ReportForm(BaseModel):
    accession: Optional[str] = None
    laterality: Optional[str] = None
    specimens: List[str] = []
    clinical_summary: Optional[str] = None
    biopsy_adequacy: Optional[str] = None
    limitations: Optional[str] = None
    core: SectionFindings = SectionFindings()
    aspirate_adequacy: AspirateAdequacy = AspirateAdequacy()
    aspirate: SectionFindings = SectionFindings()
    lab_text: Optional[str] = None

    def has_data(self) -> bool:
        texts = (
            self.accession,
            self.laterality,
            self.clinical_summary,
            self.biopsy_adequacy,
            self.limitations,
            self.aspirate_adequacy.cellularity,
            self.aspirate_adequacy.spicules,
            self.aspirate_adequacy.touch_prep,
            self.lab_text,
        )
        if any((t or "").strip() for t in texts) or self.specimens:
            return True
        return self.core.has_data() or self.aspirate.has_data()


class Settings(BaseModel):
    app: Dict[str, Any]
    paths: Dict[str, str]
    engine: Dict[str, Any] = {}
    export: Dict[str, str] = {"filename_pattern": "marrow_report_{date}.txt"}
    watch: Dict[str, str] = {"filename_glob": "*.txt"}
