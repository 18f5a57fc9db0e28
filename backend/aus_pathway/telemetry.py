"""In-process telemetry for planner state changes.

Events are logged as a single ``TELEMETRY {json}`` line, fanned out to
registered listeners and retained in a short history that the debug endpoint
exposes.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from threading import RLock
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger("aus_pathway.telemetry")

PLAN_DERIVED = "plan_derived"
PROFILE_UPDATED = "profile_updated"
TASK_TOGGLED = "task_toggled"
STATE_RESET = "state_reset"
STATE_WRITE_FAILED = "state_write_failed"

MAX_EVENT_HISTORY = 50


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_listeners: List[Callable[[TelemetryEvent], None]] = []
_history: Deque[TelemetryEvent] = deque(maxlen=MAX_EVENT_HISTORY)
_lock = RLock()


def register_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    """Register an in-process listener (used in tests)."""
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    """Remove all registered listeners and forget the event history."""
    with _lock:
        _listeners.clear()
        _history.clear()


def recent_events(limit: int = 20) -> List[TelemetryEvent]:
    """Most recent events, newest first."""
    with _lock:
        events = list(_history)
    events.reverse()
    return events[: max(limit, 0)]


def emit_event(name: str, **fields: Any) -> None:
    payload = {key: _plain(value) for key, value in fields.items()}
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        _history.append(event)
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def _plain(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


__all__ = [
    "MAX_EVENT_HISTORY",
    "PLAN_DERIVED",
    "PROFILE_UPDATED",
    "STATE_RESET",
    "STATE_WRITE_FAILED",
    "TASK_TOGGLED",
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "recent_events",
    "register_listener",
]
