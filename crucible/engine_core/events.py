"""
Engine Events - Named, optionally timed notifications for the host.

The engine does not render. Anything a renderer may want to animate is
emitted as an EngineEvent; timed events carry the duration after which the
engine itself emits the matching clear event.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class EventType(Enum):
    """Types of engine events."""
    # Table
    SPAWNED = "spawned"
    DISCARDED = "discarded"

    # Resolution
    MERGED = "merged"
    DISCOVERED = "discovered"
    REJECTED = "rejected"
    SEPARATED = "separated"  # Rejected pair pushed apart
    BOUNCED = "bounced"  # Multi-output products spread out
    EXPLODED = "exploded"
    PUSHED_OUT = "pushed_out"

    # Feedback
    SUCCESS_FLASH = "success_flash"
    FLASH_CLEARED = "flash_cleared"

    # Palette
    PAGE_CHANGED = "page_changed"
    FILTER_CHANGED = "filter_changed"


@dataclass
class EngineEvent:
    """
    A single event.

    `duration` is set on timed events (seconds until auto-clear).
    """
    event_type: EventType
    token_ids: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    x: float | None = None
    y: float | None = None
    duration: float | None = None
    params: dict[str, Any] = field(default_factory=dict)


EventListener = Callable[[EngineEvent], None]


class EventEmitter:
    """Minimal fan-out of engine events to listeners."""

    def __init__(self):
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener):
        self._listeners.append(listener)

    def emit(self, event: EngineEvent) -> EngineEvent:
        for listener in self._listeners:
            listener(event)
        return event
