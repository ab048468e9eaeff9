"""
watcher.py - Scan-ID Export Watcher
====================================
Watches the export file and runs the check-in pipeline every time the
scanner writes to it.

Events sent to the front end through on_event(event_type, data):

- "status"  : {"watching": bool, "path": str}   whenever watching starts/stops
- "newscan" : pipeline payload                  after each detected change
- "error"   : {"success": False, "error": ...}  when a change can't be processed

Each change runs one pipeline on the watchdog observer thread. Overlapping
runs are not de-duplicated; the front end shows whichever finishes last.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .errors import CheckinError

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Dict[str, Any]], None]
Pipeline = Callable[[], Dict[str, Any]]


def _same_file(a: str | Path, b: str | Path) -> bool:
    """Compare two paths after resolving them (case-insensitive on Windows)."""
    return os.path.normcase(str(Path(a).resolve())) == os.path.normcase(str(Path(b).resolve()))


class ScanFileHandler(FileSystemEventHandler):
    """Forwards create/modify/move-into events for one file."""

    def __init__(self, target: Path, on_change: Callable[[], None]) -> None:
        super().__init__()
        self.target = target
        self.on_change = on_change

    def on_created(self, event: FileSystemEvent) -> None:
        self._maybe_fire(event.src_path, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._maybe_fire(event.src_path, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Exporters that write to a temp file and rename it over the target
        self._maybe_fire(getattr(event, "dest_path", ""), event)

    def _maybe_fire(self, src, event: FileSystemEvent) -> None:
        if event.is_directory or not src:
            return
        if isinstance(src, bytes):
            src = src.decode("utf-8", errors="replace")
        if _same_file(src, self.target):
            logger.debug(f"Scan-ID export changed: {src}")
            self.on_change()


class ScanWatcher:
    """
    Start/stop/status control over a watchdog observer on the export file.

    Usage:
        watcher = ScanWatcher(settings.scan_csv_path, service.process_latest_scan, on_event)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        path: str | Path,
        pipeline: Pipeline,
        on_event: EventCallback,
        *,
        polling: bool = False,
        observer_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.path = Path(path)
        self.pipeline = pipeline
        self.on_event = on_event
        self.observer_factory = observer_factory or (PollingObserver if polling else Observer)
        self._observer = None

    @property
    def watching(self) -> bool:
        return self._observer is not None

    def status(self) -> Dict[str, Any]:
        return {"success": True, "watching": self.watching, "path": str(self.path)}

    def start(self) -> Dict[str, Any]:
        if self.watching:
            return self.status()

        directory = self.path.parent
        if not directory.is_dir():
            return self._fail(f"Scan-ID export folder not found: {directory}")

        observer = self.observer_factory()
        try:
            observer.schedule(ScanFileHandler(self.path, self.handle_change), str(directory), recursive=False)
            observer.start()
        except OSError as e:
            return self._fail(f"Could not watch {directory}: {e}")

        self._observer = observer
        logger.info(f"Watching Scan-ID export: {self.path}")
        self._emit_status()
        return self.status()

    def stop(self) -> Dict[str, Any]:
        if not self.watching:
            return self.status()

        observer, self._observer = self._observer, None
        observer.stop()
        observer.join(timeout=5)
        logger.info("Stopped watching Scan-ID export")
        self._emit_status()
        return self.status()

    def handle_change(self) -> None:
        """Run the pipeline for one detected change and report the outcome."""
        try:
            payload = self.pipeline()
        except (CheckinError, OSError, ValueError) as e:
            logger.error(f"Error processing new scan: {e}")
            self.on_event("error", {"success": False, "error": str(e)})
            return

        if "scan" in payload:
            self.on_event("newscan", payload)
        else:
            # The export is mid-write or unreadable; the next change retries
            self.on_event("error", payload)

    def _emit_status(self) -> None:
        self.on_event("status", {"watching": self.watching, "path": str(self.path)})

    def _fail(self, message: str) -> Dict[str, Any]:
        logger.error(message)
        self.on_event("error", {"success": False, "error": message})
        return {"success": False, "error": message, "watching": self.watching}
