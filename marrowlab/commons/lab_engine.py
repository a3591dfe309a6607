from typing import Any, Dict, Optional

import yaml

from marrowlab.commons.lab_normalizer import LabTextNormalizer
from marrowlab.commons.narrative import compose_narrative
from marrowlab.parsers.models import ParsedBundle, ParseOutcome


class LabEngine:
    """Engine facade that loads config and exposes parse/narrate methods.
    Accepts a settings YAML path or an already loaded dict.
    """

    def __init__(self, config_path_or_obj: Any = None):
        if isinstance(config_path_or_obj, str):
            with open(config_path_or_obj, "r", encoding="utf-8") as f:
                self.cfg = yaml.safe_load(f) or {}
        elif isinstance(config_path_or_obj, dict):
            self.cfg = config_path_or_obj
        else:
            self.cfg = {}

        engine_cfg = self.cfg.get("engine", {}) or {}
        self.include_original_text = bool(engine_cfg.get("include_original_text", True))
        self.normalizer = LabTextNormalizer()

    def normalize(self, text: Optional[str]) -> ParsedBundle:
        return self.normalizer.normalize(text)

    def safe_normalize(self, text: Optional[str]) -> ParseOutcome:
        return self.normalizer.safe_normalize(text)

    def narrate(self, text: Optional[str]) -> str:
        return compose_narrative(self.normalize(text))

    def parse_and_narrate(self, text: Optional[str]) -> Dict:
        """
        Full pipeline for one block of text. A failed parse comes back as
        ``{"ok": False, "error": ...}`` rather than an exception.
        """
        outcome = self.safe_normalize(text)
        if not outcome.ok:
            return {"ok": False, "error": outcome.error}
        payload = self.normalizer.to_payload(outcome.bundle, compose_narrative(outcome.bundle))
        if not self.include_original_text:
            payload.pop("original_text", None)
        payload["ok"] = True
        return payload
