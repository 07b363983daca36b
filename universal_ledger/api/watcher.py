"""File watcher for picking up state file changes made by other processes.

The CLI and the API server share one state file. When a CLI invocation
commits a transfer while the server is running, the watcher notices the
write and the server reloads the collection from disk.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileModifiedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import get_validated_config

logger = logging.getLogger(__name__)


class StateFileHandler(FileSystemEventHandler):
    """Handler for state file modification events.

    Saving a state file can fire several events in a row, so the callback
    runs once, after the file has been quiet for the debounce delay.
    """

    def __init__(
        self,
        file_path: Path,
        callback: Callable[[], Any],
        debounce_delay: float | None = None,
    ) -> None:
        self.file_path = file_path
        self.callback = callback
        if debounce_delay is None:
            debounce_delay = get_validated_config().api.reload_debounce_ms / 1000.0
        self._debounce_delay = debounce_delay
        self._timer: threading.Timer | None = None
        self._timer_lock = threading.Lock()

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification event."""
        if not isinstance(event, FileModifiedEvent):
            return

        src_path = event.src_path if isinstance(event.src_path, str) else event.src_path.decode()
        if Path(src_path).name != self.file_path.name:
            return

        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce_delay, self._run_callback)
            self._timer.daemon = True
            self._timer.start()

    def _run_callback(self) -> None:
        try:
            self.callback()
        except Exception:
            logger.exception("Reloading %s failed", self.file_path)

    def cancel(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class StateFileWatcher:
    """Watch a state file for changes and trigger a callback."""

    def __init__(self, state_path: str | Path, callback: Callable[[], Any]) -> None:
        self.state_path = Path(state_path).resolve()
        self.callback = callback
        self.observer: Any = None  # watchdog Observer - type not recognized by mypy
        self.handler: StateFileHandler | None = None
        self._running = False

    def start(self) -> None:
        """Start watching the file."""
        if self._running:
            return

        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.handler = StateFileHandler(self.state_path, self.callback)
        self.observer = Observer()
        self.observer.schedule(self.handler, str(self.state_path.parent), recursive=False)
        self.observer.start()
        self._running = True
        logger.info("Watching %s for external changes", self.state_path)

    def stop(self) -> None:
        """Stop watching the file."""
        if self.handler is not None:
            self.handler.cancel()
        if self.observer:
            self.observer.stop()
            self.observer.join(timeout=1.0)
            self.observer = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if watcher is running."""
        return self._running
