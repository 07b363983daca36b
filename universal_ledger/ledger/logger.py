"""JSONL event logger - single source of truth for committed ledger events"""

from __future__ import annotations

import json
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get
from .events import LedgerEvent


class EventLogger:
    """Append-only event log.

    Committed events are kept in a bounded in-memory buffer for queries and,
    when an output file is configured, appended to it as JSON lines. Every
    entry carries a monotonic 'sequence' so readers can order and dedupe.

    Only the Collection call boundary writes here, and only after a call has
    succeeded, so the log never contains events of a failed call.

    With defer_writes set, entries reach the file only on flush(). A process
    sharing a state file flushes after its save succeeds and discards the
    entries when the save is refused.
    """

    output_path: Path | None
    defer_writes: bool
    _unwritten: list[dict[str, Any]]
    _buffer: deque[dict[str, Any]]
    _sequence: int

    def __init__(
        self,
        output_file: str | Path | None = None,
        buffer_size: int | None = None,
        truncate: bool = True,
        start_sequence: int = 0,
        defer_writes: bool = False,
    ) -> None:
        """Initialize the event logger.

        Args:
            output_file: JSONL file path, or None to keep events in memory only
            buffer_size: In-memory events kept (default: logging.buffer_size)
            truncate: Clear the output file first (False when resuming a state file)
            start_sequence: Sequence number of the last event already logged
            defer_writes: Hold file writes until flush()
        """
        size = buffer_size or get("logging.buffer_size") or 1000
        self._buffer = deque(maxlen=size)
        self._sequence = start_sequence
        self.defer_writes = defer_writes
        self._unwritten = []
        self.output_path = Path(output_file) if output_file else None
        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            if truncate or not self.output_path.exists():
                self.output_path.write_text("")

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent event."""
        return self._sequence

    def _entry(self, event: LedgerEvent, sequence: int) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": sequence,
            "event_type": event.name,
            **event.to_dict()["args"],
        }

    def log(self, event: LedgerEvent) -> dict[str, Any]:
        """Record one committed event and return the stored entry."""
        return self.log_many([event])[0]

    def log_many(self, events: list[LedgerEvent]) -> list[dict[str, Any]]:
        """Record a batch of committed events in order.

        The batch is written to the output file (or held for flush) in one
        append before the buffer and sequence change, so a failed write
        records nothing.
        """
        entries = [
            self._entry(event, self._sequence + i) for i, event in enumerate(events, start=1)
        ]
        if not entries:
            return entries
        if self.defer_writes:
            self._unwritten.extend(entries)
        else:
            self._append(entries)
        self._buffer.extend(entries)
        self._sequence = entries[-1]["sequence"]
        return entries

    def _append(self, entries: list[dict[str, Any]]) -> None:
        if entries and self.output_path is not None:
            with open(self.output_path, "a") as f:
                f.write("".join(json.dumps(entry) + "\n" for entry in entries))

    def flush(self) -> int:
        """Write deferred entries to the output file. Returns how many."""
        count = len(self._unwritten)
        self._append(self._unwritten)
        self._unwritten = []
        return count

    def discard(self) -> int:
        """Forget deferred entries as if they were never logged. Returns how many."""
        count = len(self._unwritten)
        for _ in range(min(count, len(self._buffer))):
            self._buffer.pop()
        self._sequence -= count
        self._unwritten = []
        return count

    def catch_up(self, until: int = 0) -> int:
        """Pull in entries another process appended to the output file.

        `until` is the writer's sequence from its state file. Entries it has
        not flushed yet are skipped but still counted, so the next sequence
        number here follows the writer's.

        Returns the number of entries added.
        """
        added = 0
        if self.output_path is not None and self.output_path.exists():
            added = self._read_new_entries(self.output_path)
        self._sequence = max(self._sequence, until)
        return added

    def _read_new_entries(self, path: Path) -> int:
        added = 0
        with open(path) as f:
            for line in f:
                if not line.strip():
                    continue
                entry: dict[str, Any] = json.loads(line)
                if entry.get("sequence", 0) > self._sequence:
                    self._buffer.append(entry)
                    self._sequence = entry["sequence"]
                    added += 1
        return added

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Return the last N events, oldest first.

        N defaults to logging.default_recent from config.
        """
        if n is None:
            default_recent = get("logging.default_recent")
            n = default_recent if isinstance(default_recent, int) else 50
        if n <= 0:
            return []
        events = list(self._buffer)
        return events[-n:]
