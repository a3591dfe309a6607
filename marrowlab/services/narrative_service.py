# marrowlab/services/narrative_service.py
import asyncio
import json
import os
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from marrowlab.commons.lab_engine import LabEngine
from marrowlab.commons.logger import logger
from marrowlab.helpers.file_transport import FileWatcher
from marrowlab.validation.validators import validate_lab_text_or_raise


def generate_archive_filename(source: str, extension: str = "json") -> str:
    """
    Timestamped output name for a processed inbox file, e.g.
    20250821-170605-123456_cbc_patient_12.json
    """
    if not isinstance(source, str):
        raise TypeError(f"Invalid type for source: expected str, got {type(source).__name__}")
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
    base_name = os.path.splitext(os.path.basename(source))[0] or "manual"
    safe_base = re.sub(r"[^a-zA-Z0-9_\-]", "_", base_name)
    return f"{ts}_cbc_{safe_base}.{extension}"


class NarrativeService:
    """Turns pasted lab-text files from the inbox into JSON payloads in archive/."""

    def __init__(self, engine: LabEngine, paths):
        self.engine = engine
        self.paths = paths
        Path(paths["archive"]).mkdir(parents=True, exist_ok=True)
        Path(paths["error"]).mkdir(parents=True, exist_ok=True)

    def _to_error(self, text: str, src: str) -> Path:
        err_name = Path(src).name if src else "lab_text.err.txt"
        errp = Path(self.paths["error"]) / err_name
        errp.write_text(text, encoding="utf-8")
        if src and Path(src).exists():
            Path(src).unlink()
        return errp

    def process_text(self, text: str, src: str = "") -> Optional[Path]:
        """Process one block of text; returns the JSON path, or None if it went to error/."""
        if src and not Path(src).exists():
            # created + modified events for the same file; the first one already moved it
            logger.debug(f"Skipping {src}: already processed")
            return None
        try:
            validate_lab_text_or_raise(text)
            payload = self.engine.parse_and_narrate(text)
            if not payload["ok"]:
                errp = self._to_error(text, src)
                logger.error(f"{payload['error']}. Moved to {errp}")
                return None

            out_json = Path(self.paths["archive"]) / generate_archive_filename(src or "manual")
            out_json.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            logger.info(f"Narrative generated and archived: {out_json}")

            if src and Path(src).exists():
                dst_dir = Path(self.paths["archive"]) / "text"
                dst_dir.mkdir(parents=True, exist_ok=True)
                shutil.move(src, dst_dir / Path(src).name)
            return out_json

        except ValidationError as ve:
            errp = self._to_error(text, src)
            logger.error(f"Validation failed for {errp.name}: {ve}")
            return None
        except Exception as ex:
            # the watcher loop must keep running whatever happens to one file
            logger.exception(f"Error processing lab text from {src or 'manual input'}: {ex}")
            return None

    async def _process_text(self, text: str, src: str):
        self.process_text(text, src)

    async def _process_backlog(self, glob_pat: str):
        inbox = Path(self.paths["inbox"])
        files = sorted(inbox.glob(glob_pat))
        if not files:
            return
        logger.info(f"Backlog found: {len(files)} file(s) in {inbox}")
        for f in files:
            # one unreadable file must not stop the rest of the backlog
            try:
                try:
                    text = f.read_text(encoding="utf-8")
                except OSError as e:
                    logger.warning(f"Could not read {f}: {e}; retrying once...")
                    await asyncio.sleep(0.1)
                    text = f.read_text(encoding="utf-8")
                await self._process_text(text, str(f))
            except Exception as ex:
                logger.exception(f"Unexpected failure with {f}: {ex}")

    async def run_file_mode(self, glob_pat: str, stop_event: Optional[asyncio.Event] = None):
        loop = asyncio.get_running_loop()

        await self._process_backlog(glob_pat)

        watcher = FileWatcher(self.paths["inbox"], glob_pat, self._process_text, loop)
        watcher.start()
        logger.info(f"Watching {self.paths['inbox']} for lab text...")
        try:
            await (stop_event or asyncio.Event()).wait()
        finally:
            watcher.stop()
