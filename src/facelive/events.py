"""Session events and listener registration.

Events are emitted synchronously from inside ``LivenessSession.process()``,
in the thread that feeds the session.

Event types:
- requirement: the pose now required (on start and every bearing change)
- state_change: session state transition
- progress: per-frame status and guidance
- capture: a capture was recorded
- session_end: terminal event with the result and error, emitted once

Example:
    >>> events = []
    >>> handle = session.add_listener(events.append)
    >>> ...
    >>> session.remove_listener(handle)
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from facelive.types import (
    Angle,
    Bearing,
    FaceAlignmentStatus,
    FaceRequirement,
    SessionResult,
    SessionState,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionEvent:
    """Base class for session events."""

    event_type: str = field(default="event", init=False)
    t: float = 0.0


@dataclass
class RequirementEvent(SessionEvent):
    """Pose required for the current bearing period."""

    event_type: str = field(default="requirement", init=False)
    requirement: Optional[FaceRequirement] = None


@dataclass
class StateChangeEvent(SessionEvent):
    event_type: str = field(default="state_change", init=False)
    old_state: SessionState = SessionState.NO_FACE
    new_state: SessionState = SessionState.NO_FACE


@dataclass
class ProgressEvent(SessionEvent):
    """Per-frame progress and guidance."""

    event_type: str = field(default="progress", init=False)
    frame_index: int = 0
    state: SessionState = SessionState.NO_FACE
    status: Optional[FaceAlignmentStatus] = None
    bearing: Optional[Bearing] = None
    offset: Optional[Angle] = None
    capture_count: int = 0


@dataclass
class CaptureEvent(SessionEvent):
    event_type: str = field(default="capture", init=False)
    frame_index: int = 0
    bearing: Optional[Bearing] = None
    capture_count: int = 0
    is_control: bool = False


@dataclass
class SessionEndEvent(SessionEvent):
    """Terminal event: result on success, result and error on failure."""

    event_type: str = field(default="session_end", init=False)
    result: Optional[SessionResult] = None
    error: Optional[Exception] = None


Listener = Callable[[SessionEvent], None]


@dataclass(frozen=True)
class ListenerHandle:
    """Returned by ``ListenerRegistry.add``; pass it back to remove."""

    listener_id: int


class ListenerRegistry:
    """Ordered observer list."""

    def __init__(self):
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count()

    def add(self, listener: Listener) -> ListenerHandle:
        handle = ListenerHandle(next(self._ids))
        self._listeners[handle.listener_id] = listener
        return handle

    def remove(self, handle: ListenerHandle) -> bool:
        """Unregister a listener. Returns False if it was not registered."""
        return self._listeners.pop(handle.listener_id, None) is not None

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def emit(self, event: SessionEvent) -> None:
        """Deliver an event to every listener, in registration order.

        A failing listener is logged and does not stop delivery or the
        session.
        """
        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception as exc:
                logger.warning("Listener raised on %s event: %s", event.event_type, exc)


class EventRecorder:
    """Listener that keeps every event, for tests and offline analysis."""

    def __init__(self):
        self.events: List[SessionEvent] = []

    def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[SessionEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()


__all__ = [
    "SessionEvent",
    "RequirementEvent",
    "StateChangeEvent",
    "ProgressEvent",
    "CaptureEvent",
    "SessionEndEvent",
    "Listener",
    "ListenerHandle",
    "ListenerRegistry",
    "EventRecorder",
]
