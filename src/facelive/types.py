"""Facelive data types.

Value types shared by the geometry, the session state machine and the
result evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import numpy as np


@dataclass(frozen=True)
class Angle:
    """Face angle in degrees.

    Coordinate system:
    - yaw: subject's right(-) / left(+)
    - pitch: up(-) / down(+)
    """

    yaw: float = 0.0
    pitch: float = 0.0


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (x, y, width, height) in pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def mirrored(self, image_width: float) -> Rect:
        """Mirror the rectangle horizontally across an image of the given width."""
        return Rect(image_width - self.x - self.width, self.y, self.width, self.height)


class Bearing(Enum):
    """Head pose direction requested from the subject."""

    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    LEFT_UP = "left_up"
    RIGHT_UP = "right_up"
    LEFT_DOWN = "left_down"
    RIGHT_DOWN = "right_down"

    @classmethod
    def from_string(cls, value: str) -> Bearing:
        """Parse a bearing name, e.g. "left_up" or "LEFT_UP".

        Raises:
            ValueError: If the name is not a known bearing.
        """
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        for bearing in cls:
            if bearing.value == normalized:
                return bearing
        raise ValueError(f"Unknown bearing: {value}")


class FaceAlignmentStatus(Enum):
    """Per-frame classification of the tracked face."""

    FOUND = "found"
    FIXED = "fixed"
    ALIGNED = "aligned"
    MISALIGNED = "misaligned"


class SessionState(Enum):
    """Liveness session state."""

    NO_FACE = "no_face"
    FACE_FOUND = "face_found"
    FIXED = "fixed"
    ALIGNED = "aligned"
    MISALIGNED = "misaligned"
    SPOOF_SUSPECTED = "spoof_suspected"
    ABORTED = "aborted"
    COMPLETE = "complete"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.ABORTED, SessionState.COMPLETE)


class Verdict(Enum):
    PASSED = "passed"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a session did not pass."""

    FACE_NOT_FOUND = "face_not_found"
    SPOOF_ATTEMPT = "spoof_attempt"
    TIMEOUT = "timeout"
    INVALID_TEMPLATE = "invalid_template"
    COMPARISON_FAILED = "comparison_failed"
    SETUP_FAILED = "setup_failed"
    CANCELLED = "cancelled"
    FACE_MISMATCH = "face_mismatch"


@dataclass(frozen=True)
class FaceMeasurement:
    """Face detector output for a single frame.

    Attributes:
        timestamp: Frame time in seconds.
        frame_index: Monotonic frame sequence number.
        bounds: Face bounds in pixels, None when no face was detected.
        angle: Face angle in degrees, None when no face was detected.
        confidence: Detection confidence [0, 1].
        template: Face recognition template (e.g. L2-normalized embedding).
    """

    timestamp: float
    frame_index: int
    bounds: Optional[Rect] = None
    angle: Optional[Angle] = None
    confidence: float = 0.0
    template: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @property
    def present(self) -> bool:
        return self.bounds is not None and self.angle is not None

    @classmethod
    def absent(cls, timestamp: float, frame_index: int) -> FaceMeasurement:
        """Measurement for a frame in which no face was detected."""
        return cls(timestamp=timestamp, frame_index=frame_index)


@dataclass(frozen=True)
class Capture:
    """Accepted face sample for one requested bearing."""

    measurement: FaceMeasurement
    bearing: Bearing
    image: Any = field(default=None, compare=False, repr=False)
    smoothed_angle: Optional[Angle] = None

    @property
    def template(self) -> Optional[np.ndarray]:
        return self.measurement.template


@dataclass(frozen=True)
class FaceRequirement:
    """Pose currently required from the subject (for on-screen prompts)."""

    bearing: Bearing
    target_angle: Angle
    min_angle: Angle
    max_angle: Angle
    index: int = 0


@dataclass
class SessionResult:
    """Terminal outcome of a liveness session."""

    captures: List[Capture] = field(default_factory=list)
    control_captures: List[Capture] = field(default_factory=list)
    verdict: Verdict = Verdict.FAILED
    recognition_score: Optional[float] = None
    failure: Optional[FailureReason] = None

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASSED

    @property
    def bearing_captures(self) -> List[Capture]:
        """Captures that are not part of the control set."""
        control_ids = {id(c) for c in self.control_captures}
        return [c for c in self.captures if id(c) not in control_ids]

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        captures: Optional[List[Capture]] = None,
        control_captures: Optional[List[Capture]] = None,
    ) -> SessionResult:
        return cls(
            captures=list(captures or []),
            control_captures=list(control_captures or []),
            verdict=Verdict.FAILED,
            failure=reason,
        )


@dataclass(frozen=True)
class SessionUpdate:
    """What a single session step produced.

    Attributes:
        state: Session state after the step.
        status: Alignment status of the frame (None when no face).
        bearing: Bearing requested during the step.
        smoothed_angle: Smoothed face angle, if any.
        smoothed_bounds: Smoothed face bounds, if any.
        offset: Normalized hint toward the requested bearing.
        capture: Capture recorded on this frame, if any.
        result: Final result once the session finished.
    """

    state: SessionState
    status: Optional[FaceAlignmentStatus] = None
    bearing: Optional[Bearing] = None
    smoothed_angle: Optional[Angle] = None
    smoothed_bounds: Optional[Rect] = None
    offset: Optional[Angle] = None
    capture: Optional[Capture] = None
    result: Optional[SessionResult] = None


__all__ = [
    "Angle",
    "Rect",
    "Bearing",
    "FaceAlignmentStatus",
    "SessionState",
    "Verdict",
    "FailureReason",
    "FaceMeasurement",
    "Capture",
    "FaceRequirement",
    "SessionResult",
    "SessionUpdate",
]
