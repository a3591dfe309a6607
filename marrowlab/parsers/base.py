import re
from typing import List, Optional

from .models import RawMatch

ABSOLUTE_MARKER = re.compile(r"#|\babs(?:olute)?\b", re.IGNORECASE)


def _split_lines(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [line for line in re.split(r"\r\n|\n|\r", text) if line.strip()]


def _to_float(raw: Optional[str]) -> Optional[float]:
    """Parse a captured number; None when the capture is not a decimal."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def first_match(label: str, pattern: re.Pattern, text: str) -> Optional[RawMatch]:
    """
    First occurrence of ``pattern`` in ``text``. Later occurrences of the
    same label are ignored on purpose: one value per label per parse.
    """
    m = pattern.search(text)
    if not m:
        return None
    start = text.rfind("\n", 0, m.start()) + 1
    end = text.find("\n", m.end())
    line = text[start:] if end == -1 else text[start:end]
    return RawMatch(label=label, raw=m.group(1), line=line.strip())


def is_absolute_count(line: str) -> bool:
    return bool(ABSOLUTE_MARKER.search(line))
