"""Append-only ledger event log - the feed external indexers subscribe to

Every committed mutation publishes one or more events here. Events are
buffered while an operation runs and published only when it commits, so
subscribers never observe a rejected or rolled-back change.

Supports two sinks:
1. In-memory history (always on) for read_recent() and events()
2. Optional JSONL mirror (output_file), one event per line
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable


logger = logging.getLogger(__name__)

EventCallback = Callable[[dict[str, Any]], None]


class EventLog:
    """Append-only event log with monotonic sequence numbers."""

    output_path: Path | None
    _events: list[dict[str, Any]]
    _subscribers: list[EventCallback]
    _sequence: int  # Monotonic event counter
    _default_recent: int

    def __init__(self, output_file: str | None = None, default_recent: int = 50) -> None:
        """Initialize the event log.

        Args:
            output_file: Optional JSONL mirror path (cleared on init)
            default_recent: Number of events read_recent() returns by default
        """
        self._events = []
        self._subscribers = []
        self._sequence = 0
        self._default_recent = default_recent
        self.output_path = Path(output_file) if output_file else None
        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_text("")

    def log(self, event_type: str, data: dict[str, Any]) -> dict[str, Any]:
        """Append an event and notify subscribers.

        All events include a monotonic 'sequence' field for ordering.
        """
        self._sequence += 1
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            "event_type": event_type,
            **data,
        }
        self._events.append(event)
        if self.output_path is not None:
            with open(self.output_path, "a") as f:
                f.write(json.dumps(event, default=_json_default) + "\n")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # A broken indexer must not poison the ledger.
                logger.exception("Event subscriber failed on %s", event_type)
        return event

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register a callback for every future event.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        """All events, optionally filtered by type, oldest first."""
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e["event_type"] == event_type]

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events (defaults to logging.default_recent)."""
        if n is None:
            n = self._default_recent
        if n <= 0:
            return []
        return list(self._events[-n:])

    def __len__(self) -> int:
        return len(self._events)

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent event (0 if none)."""
        return self._sequence


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
