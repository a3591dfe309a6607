from typing import Dict, Optional

from marrowlab.commons.logger import logger
from marrowlab.parsers.differential import classify_differential
from marrowlab.parsers.fields import extract_lab_values
from marrowlab.parsers.models import ParsedBundle, ParseOutcome
from marrowlab.parsers.morphology import extract_morphology


class LabTextNormalizer:
    """Runs the three extractors over one block of pasted lab text."""

    def normalize(self, text: Optional[str]) -> ParsedBundle:
        text = text or ""
        labs = extract_lab_values(text)
        diff = classify_differential(text)
        morphology = extract_morphology(text)
        return ParsedBundle(
            labs=labs,
            differential=diff.counts,
            morphology=morphology,
            original_text=text,
            differential_method=diff.method,
        )

    def safe_normalize(self, text: Optional[str]) -> ParseOutcome:
        """
        Same as ``normalize`` but never raises: an unexpected error becomes a
        failed outcome with a readable message and no bundle.
        """
        try:
            bundle = self.normalize(text)
        except Exception as ex:
            logger.exception(f"Error parsing lab text: {ex}")
            return ParseOutcome(ok=False, error=f"Could not parse lab text: {ex}")
        return ParseOutcome(ok=True, bundle=bundle)

    def to_payload(self, bundle: ParsedBundle, narrative: str = "") -> Dict:
        """Map a bundle into the JSON-friendly payload handed downstream."""
        return {
            "labs": dict(bundle.labs),
            "differential": {
                "method": bundle.differential_method,
                "counts": dict(bundle.differential),
            },
            "morphology": {k: f.value for k, f in bundle.morphology.items()},
            "narrative": narrative,
            "original_text": bundle.original_text,
        }
