# ===============================
# File: marrowlab/parsers/models.py
# ===============================
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

LabValue = Union[float, str]


@dataclass(frozen=True)
class LabValuePattern:
    label: str
    pattern: re.Pattern
    kind: str = "numeric"  # numeric | literal


@dataclass(frozen=True)
class RawMatch:
    label: str
    raw: str
    line: str


@dataclass(frozen=True)
class DifferentialEntry:
    cell_type: str
    value: float
    priority: int
    line: str  # source line, for diagnostics


@dataclass
class DifferentialResult:
    method: Optional[str] = None  # manual | automated | not performed
    counts: Dict[str, float] = field(default_factory=dict)
    entries: Dict[str, DifferentialEntry] = field(default_factory=dict)

    @property
    def not_performed(self) -> bool:
        return self.method == "not performed"


@dataclass(frozen=True)
class MorphologyFinding:
    label: str
    value: Union[str, float]


@dataclass(frozen=True)
class ParsedBundle:
    labs: Dict[str, LabValue]
    differential: Dict[str, float]
    morphology: Dict[str, MorphologyFinding]
    original_text: str
    differential_method: Optional[str] = None

    @property
    def differential_not_performed(self) -> bool:
        return self.differential_method == "not performed"

    def is_empty(self) -> bool:
        return not (self.labs or self.differential or self.morphology or self.differential_method)


@dataclass
class ParseOutcome:
    ok: bool
    bundle: Optional[ParsedBundle] = None
    error: Optional[str] = None
