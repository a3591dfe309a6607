import asyncio
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from watchdog.events import PatternMatchingEventHandler
from watchdog.observers import Observer


class FileSender:
    """Writes finished report text into the outbox folder."""

    def __init__(self, outbox: str, pattern: str):
        self.outbox = Path(outbox)
        self.outbox.mkdir(parents=True, exist_ok=True)
        self.pattern = pattern

    def send(self, text: str) -> str:
        fname = self.pattern.format(
            date=datetime.now().strftime("%Y-%m-%d"),
            timestamp=datetime.now().strftime("%Y%m%d%H%M%S"),
            uuid=uuid.uuid4().hex[:8],
        )
        p = self.outbox / fname
        p.write_text(text, encoding="utf-8")
        return str(p)


class InboxEventHandler(PatternMatchingEventHandler):
    """Reads a finished inbox file and schedules ``on_text(text, path)`` on ``loop``."""

    def __init__(self, glob: str, on_text, loop: asyncio.AbstractEventLoop, attempts: int = 10):
        super().__init__(patterns=[glob], ignore_directories=True)
        self.on_text = on_text
        self.loop = loop
        self.attempts = attempts

    def _read(self, path: Path) -> Optional[str]:
        for _ in range(self.attempts):
            try:
                if path.stat().st_size == 0:
                    # created but not written yet; the modified event follows
                    return None
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except OSError:
                time.sleep(0.05)
        return path.read_text(encoding="utf-8")

    def _submit(self, path: Path):
        text = self._read(path)
        if text is None:
            return
        asyncio.run_coroutine_threadsafe(self.on_text(text, str(path)), self.loop)

    def on_created(self, event):
        self._submit(Path(event.src_path))

    def on_modified(self, event):
        self._submit(Path(event.src_path))

    def on_moved(self, event):
        self._submit(Path(event.dest_path))


class FileWatcher:
    """Watches the inbox folder on a watchdog observer thread."""

    def __init__(self, inbox: str, glob: str, on_text, loop: asyncio.AbstractEventLoop):
        self.inbox = Path(inbox)
        self.inbox.mkdir(parents=True, exist_ok=True)
        self.handler = InboxEventHandler(glob, on_text, loop)
        self.observer = Observer()

    def start(self):
        self.observer.schedule(self.handler, str(self.inbox), recursive=False)
        self.observer.start()

    def stop(self):
        self.observer.stop()
        self.observer.join()
