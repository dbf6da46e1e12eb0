"""Angle/bearing geometry.

Maps each bearing to a target angle and an acceptance window on the
yaw/pitch plane, and answers the membership questions the session asks
every frame.

Windows are outward-open on the axis that drives a bearing so that
overshooting the target is accepted:

    LEFT (yaw_threshold=20, yaw_tolerance=5, pitch 15/5):
        yaw   in (15, +inf)
        pitch in (-10, 10)
"""

import math
from typing import Optional

from facelive.config import SessionSettings
from facelive.types import Angle, Bearing, FaceRequirement

_UP = frozenset({Bearing.UP, Bearing.LEFT_UP, Bearing.RIGHT_UP})
_DOWN = frozenset({Bearing.DOWN, Bearing.LEFT_DOWN, Bearing.RIGHT_DOWN})
_LEFT = frozenset({Bearing.LEFT, Bearing.LEFT_UP, Bearing.LEFT_DOWN})
_RIGHT = frozenset({Bearing.RIGHT, Bearing.RIGHT_UP, Bearing.RIGHT_DOWN})


class AngleBearingEvaluator:
    """Evaluates face angles against bearings.

    The same tolerances are used for window queries and membership tests.

    Args:
        settings: Session settings providing the threshold angles.
        pitch_tolerance: Pitch tolerance in degrees (default: settings value).
        yaw_tolerance: Yaw tolerance in degrees (default: settings value).
    """

    def __init__(
        self,
        settings: SessionSettings,
        pitch_tolerance: Optional[float] = None,
        yaw_tolerance: Optional[float] = None,
    ):
        self.settings = settings
        self.pitch_tolerance = (
            settings.pitch_tolerance if pitch_tolerance is None else pitch_tolerance
        )
        self.yaw_tolerance = (
            settings.yaw_tolerance if yaw_tolerance is None else yaw_tolerance
        )

    @property
    def pitch_threshold(self) -> float:
        return self.settings.pitch_threshold

    @property
    def yaw_threshold(self) -> float:
        return self.settings.yaw_threshold

    def target_angle(self, bearing: Bearing) -> Angle:
        """Centre angle of a bearing."""
        pitch = 0.0
        if bearing in _UP:
            pitch = -self.pitch_threshold
        elif bearing in _DOWN:
            pitch = self.pitch_threshold

        yaw = 0.0
        if bearing in _LEFT:
            yaw = self.yaw_threshold
        elif bearing in _RIGHT:
            yaw = -self.yaw_threshold

        return Angle(yaw=yaw, pitch=pitch)

    def min_angle(self, bearing: Bearing) -> Angle:
        """Lower bounds of the acceptance window (exclusive)."""
        pitch_inner = self.pitch_threshold - self.pitch_tolerance
        yaw_inner = self.yaw_threshold - self.yaw_tolerance

        if bearing in _UP:
            pitch = -math.inf
        elif bearing in _DOWN:
            pitch = pitch_inner
        else:
            pitch = -pitch_inner

        if bearing in _LEFT:
            yaw = yaw_inner
        elif bearing in _RIGHT:
            yaw = -math.inf
        else:
            yaw = -yaw_inner

        return Angle(yaw=yaw, pitch=pitch)

    def max_angle(self, bearing: Bearing) -> Angle:
        """Upper bounds of the acceptance window (exclusive)."""
        pitch_inner = self.pitch_threshold - self.pitch_tolerance
        yaw_inner = self.yaw_threshold - self.yaw_tolerance

        if bearing in _UP:
            pitch = -pitch_inner
        elif bearing in _DOWN:
            pitch = math.inf
        else:
            pitch = pitch_inner

        if bearing in _LEFT:
            yaw = math.inf
        elif bearing in _RIGHT:
            yaw = -yaw_inner
        else:
            yaw = yaw_inner

        return Angle(yaw=yaw, pitch=pitch)

    def matches(self, angle: Angle, bearing: Bearing) -> bool:
        """True if the angle lies strictly inside the bearing's window."""
        lo = self.min_angle(bearing)
        hi = self.max_angle(bearing)
        return lo.pitch < angle.pitch < hi.pitch and lo.yaw < angle.yaw < hi.yaw

    def is_between(self, angle: Angle, from_bearing: Bearing, to_bearing: Bearing) -> bool:
        """True if the angle is on the arc swept from one bearing to another.

        The arc is a capsule of radius max(pitch_threshold, yaw_threshold)
        around the segment between the two target angles, rounded at the
        start and open past the end.
        """
        if self.matches(angle, from_bearing) or self.matches(angle, to_bearing):
            return True

        start = self.target_angle(from_bearing)
        end = self.target_angle(to_bearing)
        radius = max(self.pitch_threshold, self.yaw_threshold)

        # Perpendicular to the direction of travel
        heading = math.atan2(end.pitch - start.pitch, end.yaw - start.yaw) + math.pi / 2
        dx = math.cos(heading) * radius
        dy = math.sin(heading) * radius

        start_right = Angle(start.yaw + dx, start.pitch + dy)
        start_left = Angle(start.yaw - dx, start.pitch - dy)
        end_right = Angle(end.yaw + dx, end.pitch + dy)
        end_left = Angle(end.yaw - dx, end.pitch - dy)

        inside_right_edge = not _is_right_of_line(angle, start_right, end_right)
        inside_left_edge = _is_right_of_line(angle, start_left, end_left)
        past_start = _is_right_of_line(angle, start_right, start_left)
        in_start_circle = math.hypot(angle.yaw - start.yaw, angle.pitch - start.pitch) < radius

        return inside_right_edge and inside_left_edge and (past_start or in_start_circle)

    def offset_toward(self, angle: Angle, bearing: Bearing) -> Angle:
        """Normalized direction and distance from the angle to the bearing.

        Zero when the angle already matches. A component with magnitude >= 1
        means the angle is still outside the window on that axis.
        """
        if self.matches(angle, bearing):
            return Angle(0.0, 0.0)
        target = self.target_angle(bearing)
        return Angle(
            yaw=(target.yaw - angle.yaw) / (self.yaw_threshold + self.yaw_tolerance),
            pitch=(target.pitch - angle.pitch) / (self.pitch_threshold + self.pitch_tolerance),
        )

    def regression_toward(
        self,
        previous: Angle,
        current: Angle,
        from_bearing: Bearing,
        to_bearing: Bearing,
    ) -> float:
        """Largest movement away from to_bearing between two samples (degrees).

        Only axes on which the two bearings' targets differ are considered;
        on those the angle should approach the new target monotonically.
        Returns 0 when no axis regressed.
        """
        start = self.target_angle(from_bearing)
        end = self.target_angle(to_bearing)
        regression = 0.0
        for axis in ("yaw", "pitch"):
            direction = getattr(end, axis) - getattr(start, axis)
            if direction == 0:
                continue
            sign = 1.0 if direction > 0 else -1.0
            moved_back = (getattr(previous, axis) - getattr(current, axis)) * sign
            regression = max(regression, moved_back)
        return regression

    def requirement(self, bearing: Bearing, index: int = 0) -> FaceRequirement:
        """Describe the pose required for a bearing."""
        return FaceRequirement(
            bearing=bearing,
            target_angle=self.target_angle(bearing),
            min_angle=self.min_angle(bearing),
            max_angle=self.max_angle(bearing),
            index=index,
        )


def _is_right_of_line(point: Angle, start: Angle, end: Angle) -> bool:
    """Side test of a point against the directed line start -> end (yaw=x, pitch=y)."""
    d = (
        (point.yaw - start.yaw) * (end.pitch - start.pitch)
        - (point.pitch - start.pitch) * (end.yaw - start.yaw)
    )
    return d <= 0


__all__ = ["AngleBearingEvaluator"]
