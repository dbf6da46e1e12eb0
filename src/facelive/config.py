"""Configuration for liveness sessions.

Settings are fixed at session construction and shared, read-only, by the
evaluator, the sequencer and the session.

Example:
    >>> from facelive.config import SessionSettings
    >>> from facelive.types import Bearing
    >>>
    >>> settings = SessionSettings(
    ...     yaw_threshold=25.0,
    ...     bearings=(Bearing.STRAIGHT, Bearing.LEFT, Bearing.RIGHT),
    ...     max_bearings=3,
    ... )
    >>> settings = SessionSettings.from_yaml("session.yaml")
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Tuple

from facelive.types import Bearing


class ScorePolicy(Enum):
    """How pair scores are combined into one recognition score."""

    MAX = "max"
    MEAN = "mean"
    MIN = "min"

    @classmethod
    def from_string(cls, value: str) -> "ScorePolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown score policy: {value}. Use 'max', 'mean' or 'min'."
            ) from None


DEFAULT_BEARINGS: Tuple[Bearing, ...] = (
    Bearing.STRAIGHT,
    Bearing.LEFT,
    Bearing.RIGHT,
    Bearing.LEFT_UP,
    Bearing.RIGHT_UP,
)


@dataclass(frozen=True)
class SessionSettings:
    """Immutable liveness session configuration.

    Attributes:
        yaw_threshold: Yaw of the LEFT/RIGHT bearing targets (degrees).
        pitch_threshold: Pitch of the UP/DOWN bearing targets (degrees).
        yaw_tolerance: Yaw acceptance tolerance (degrees).
        pitch_tolerance: Pitch acceptance tolerance (degrees).
        bearings: Candidate bearings the sequencer picks from.
        max_bearings: Bearings requested per session, STRAIGHT included.
        angle_smoothing_window: Moving-average window for face angles (frames).
        bounds_smoothing_window: Moving-average window for face bounds (frames).
        fixed_jitter_ratio: Allowed smoothed-bounds movement between frames,
            as a fraction of the face width.
        min_fixed_duration: Seconds the bounds must stay stable before the
            face counts as fixed.
        aligned_frame_count: Consecutive aligned frames before a capture.
        missed_frame_grace: Consecutive missed detections absorbed without
            resetting the tracking.
        max_missed_frames: Consecutive missed detections before the session
            fails with FaceNotFound.
        max_angular_velocity: Maximum raw angle change per frame (degrees).
        max_opposite_movement: Maximum regression away from the requested
            bearing between consecutive smoothed samples (degrees).
        max_duration: Session deadline in seconds.
        recognition_threshold: Minimum aggregated recognition score.
        score_policy: Aggregation of control/bearing pair scores.
    """

    yaw_threshold: float = 20.0
    pitch_threshold: float = 15.0
    yaw_tolerance: float = 5.0
    pitch_tolerance: float = 5.0
    bearings: Tuple[Bearing, ...] = DEFAULT_BEARINGS
    max_bearings: int = 2
    angle_smoothing_window: int = 3
    bounds_smoothing_window: int = 3
    fixed_jitter_ratio: float = 0.1
    min_fixed_duration: float = 0.5
    aligned_frame_count: int = 2
    missed_frame_grace: int = 2
    max_missed_frames: int = 15
    max_angular_velocity: float = 15.0
    max_opposite_movement: float = 3.0
    max_duration: float = 30.0
    recognition_threshold: float = 0.4
    score_policy: ScorePolicy = field(default=ScorePolicy.MAX)

    def __post_init__(self) -> None:
        """Normalize list inputs and validate ranges."""
        if not isinstance(self.bearings, tuple):
            object.__setattr__(self, "bearings", tuple(self.bearings))
        if isinstance(self.score_policy, str):
            object.__setattr__(self, "score_policy", ScorePolicy.from_string(self.score_policy))

        if self.yaw_threshold <= 0 or self.pitch_threshold <= 0:
            raise ValueError("Threshold angles must be positive")
        if not 0 < self.yaw_tolerance < self.yaw_threshold:
            raise ValueError(
                f"yaw_tolerance must be in (0, {self.yaw_threshold}), got {self.yaw_tolerance}"
            )
        if not 0 < self.pitch_tolerance < self.pitch_threshold:
            raise ValueError(
                f"pitch_tolerance must be in (0, {self.pitch_threshold}), got {self.pitch_tolerance}"
            )
        if not self.bearings:
            raise ValueError("At least one candidate bearing is required")
        if self.max_bearings < 1:
            raise ValueError("max_bearings must be at least 1")
        if self.angle_smoothing_window < 1 or self.bounds_smoothing_window < 1:
            raise ValueError("Smoothing windows must be at least 1 frame")
        if self.aligned_frame_count < 1:
            raise ValueError("aligned_frame_count must be at least 1")
        if self.missed_frame_grace < 0 or self.max_missed_frames < self.missed_frame_grace:
            raise ValueError("max_missed_frames must be >= missed_frame_grace >= 0")
        if self.fixed_jitter_ratio < 0 or self.min_fixed_duration < 0:
            raise ValueError("Fixation limits must not be negative")
        if self.max_angular_velocity <= 0 or self.max_opposite_movement < 0:
            raise ValueError("Movement limits must be positive")
        if self.max_duration <= 0:
            raise ValueError("max_duration must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSettings":
        """Create settings from a dictionary (e.g., loaded from YAML).

        Bearings and the score policy may be given by name. Unknown keys
        raise ValueError.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        kwargs = dict(data)
        if "bearings" in kwargs:
            kwargs["bearings"] = tuple(
                b if isinstance(b, Bearing) else Bearing.from_string(b)
                for b in kwargs["bearings"]
            )
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "SessionSettings":
        """Load settings from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        import yaml

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for serialization."""
        data = asdict(self)
        data["bearings"] = [b.value for b in self.bearings]
        data["score_policy"] = self.score_policy.value
        return data


__all__ = ["SessionSettings", "ScorePolicy", "DEFAULT_BEARINGS"]
