"""In-process telemetry for plan generation.

Each event is handed to every registered sink and then written to the
``study_planner.telemetry`` logger as a single ``TELEMETRY {json}`` line.
Sinks are how host services forward events elsewhere; a failing sink is logged
and skipped.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

logger = logging.getLogger("study_planner.telemetry")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_record(self) -> Dict[str, Any]:
        return {"event": self.name, **self.payload}


Sink = Callable[[TelemetryEvent], None]


class _SinkRegistry:
    def __init__(self) -> None:
        self._sinks: List[Sink] = []
        self._lock = RLock()

    def add(self, sink: Sink) -> Callable[[], None]:
        with self._lock:
            self._sinks.append(sink)

        def remove() -> None:
            with self._lock:
                if sink in self._sinks:
                    self._sinks.remove(sink)

        return remove

    def clear(self) -> None:
        with self._lock:
            self._sinks.clear()

    def snapshot(self) -> Tuple[Sink, ...]:
        with self._lock:
            return tuple(self._sinks)


_registry = _SinkRegistry()


def register_listener(listener: Sink) -> Callable[[], None]:
    """Add ``listener``. Call the returned function to remove it again."""
    return _registry.add(listener)


def clear_listeners() -> None:
    _registry.clear()


@contextmanager
def capture_events(name: Optional[str] = None) -> Iterator[List[TelemetryEvent]]:
    """Collect the events emitted inside the block, optionally only ``name``."""
    captured: List[TelemetryEvent] = []

    def _collect(event: TelemetryEvent) -> None:
        if name is None or event.name == name:
            captured.append(event)

    remove = _registry.add(_collect)
    try:
        yield captured
    finally:
        remove()


def emit_event(name: str, **fields: Any) -> TelemetryEvent:
    event = TelemetryEvent(name=name, payload={key: _jsonable(value) for key, value in fields.items()})

    for sink in _registry.snapshot():
        try:
            sink(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry sink failed for %s", name)

    if logger.isEnabledFor(logging.INFO):
        logger.info("TELEMETRY %s", json.dumps(event.as_record(), default=str, sort_keys=True))
    return event


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_jsonable(item) for item in value), key=str)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


__all__ = [
    "Sink",
    "TelemetryEvent",
    "capture_events",
    "clear_listeners",
    "emit_event",
    "register_listener",
]
