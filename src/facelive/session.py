"""Liveness detection session.

Consumes one face measurement per frame and drives the pose challenge:

    NO_FACE -> FACE_FOUND -> FIXED -> ALIGNED <-> MISALIGNED
                                          |
                                          +-> COMPLETE (all bearings captured)

    any non-terminal state -> SPOOF_SUSPECTED -> ABORTED
    any non-terminal state -> ABORTED (not found, timeout, scoring, close)

Each step is synchronous and deterministic given its inputs; all timing
comes from measurement timestamps.

Example:
    >>> session = LivenessSession(SessionSettings(), seed=7)
    >>> session.add_listener(print)
    >>> for measurement, image in producer:
    ...     update = session.process(measurement, image)
    ...     if update.result is not None:
    ...         break
"""

import logging
import threading
from typing import List, Optional, Tuple

from facelive.config import SessionSettings
from facelive.errors import (
    FaceNotFoundError,
    LivenessError,
    SessionCancelledError,
    SessionTimeoutError,
    SpoofAttemptError,
)
from facelive.events import (
    CaptureEvent,
    Listener,
    ListenerHandle,
    ListenerRegistry,
    ProgressEvent,
    RequirementEvent,
    SessionEndEvent,
    StateChangeEvent,
)
from facelive.geometry import AngleBearingEvaluator
from facelive.scoring import SessionResultEvaluator
from facelive.sequencer import BearingSequencer
from facelive.smoothing import AngleSmoother, RectSmoother
from facelive.types import (
    Angle,
    Bearing,
    Capture,
    FaceAlignmentStatus,
    FaceMeasurement,
    FaceRequirement,
    Rect,
    SessionResult,
    SessionState,
    SessionUpdate,
    Verdict,
)

logger = logging.getLogger(__name__)

_STATE_FOR_STATUS = {
    FaceAlignmentStatus.FOUND: SessionState.FACE_FOUND,
    FaceAlignmentStatus.FIXED: SessionState.FIXED,
    FaceAlignmentStatus.ALIGNED: SessionState.ALIGNED,
    FaceAlignmentStatus.MISALIGNED: SessionState.MISALIGNED,
}


class LivenessSession:
    """Pose-challenge liveness session.

    Args:
        settings: Immutable session configuration.
        sequencer: Bearing sequencer (default: random, seeded by ``seed``).
        evaluator: Angle/bearing evaluator (default: from settings).
        result_evaluator: Scores the captures on completion. None skips
            face recognition and the verdict depends on liveness alone.
        seed: Seed for the default sequencer.
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        *,
        sequencer: Optional[BearingSequencer] = None,
        evaluator: Optional[AngleBearingEvaluator] = None,
        result_evaluator: Optional[SessionResultEvaluator] = None,
        seed=None,
    ):
        self.settings = settings or SessionSettings()
        self.evaluator = evaluator or AngleBearingEvaluator(self.settings)
        self.sequencer = sequencer or BearingSequencer(
            self.settings, self.evaluator, seed=seed,
        )
        self.result_evaluator = result_evaluator

        # Set when the session finishes or is closed; frame producers watch it
        self.closed_event = threading.Event()

        self._listeners = ListenerRegistry()
        self._bounds_smoother = RectSmoother(self.settings.bounds_smoothing_window)
        self._angle_smoother = AngleSmoother(self.settings.angle_smoothing_window)

        self._state = SessionState.NO_FACE
        self._started_at: Optional[float] = None
        self._now: float = 0.0
        self._closed = False

        self._history: List[Bearing] = []
        self._bearing: Optional[Bearing] = None
        self._previous_bearing: Optional[Bearing] = None

        self._captures: List[Capture] = []
        self._control_captures: List[Capture] = []
        self._result: Optional[SessionResult] = None
        self._error: Optional[LivenessError] = None
        self._last_update: Optional[SessionUpdate] = None

        # Presence tracking
        self._missed_frames = 0
        self._face_seen = False
        self._last_detection: Optional[Tuple[int, Angle]] = None  # (frame_index, raw angle)
        self._previous_bounds: Optional[Rect] = None

        self._reset_bearing_progress()

    # ── Listeners ──

    def add_listener(self, listener: Listener) -> ListenerHandle:
        """Register a listener for session events."""
        return self._listeners.add(listener)

    def remove_listener(self, handle: ListenerHandle) -> bool:
        return self._listeners.remove(handle)

    # ── Public state ──

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def bearing(self) -> Optional[Bearing]:
        """Bearing currently requested from the subject."""
        return self._bearing

    @property
    def requirement(self) -> Optional[FaceRequirement]:
        if self._bearing is None:
            return None
        return self.evaluator.requirement(self._bearing, len(self._history) - 1)

    @property
    def history(self) -> Tuple[Bearing, ...]:
        return tuple(self._history)

    @property
    def captures(self) -> Tuple[Capture, ...]:
        return tuple(self._captures)

    @property
    def control_captures(self) -> Tuple[Capture, ...]:
        return tuple(self._control_captures)

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def error(self) -> Optional[LivenessError]:
        return self._error

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def is_finished(self) -> bool:
        return self._state.is_terminal

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ── Lifecycle ──

    def start(self, t: float = 0.0) -> None:
        """Start the session clock and request the first bearing.

        Called implicitly with the first measurement's timestamp.
        """
        if self._started_at is not None:
            return
        self._started_at = t
        self._now = t
        self._advance_bearing()
        logger.debug("Session started at t=%.3fs, first bearing %s", t, self._bearing)

    def check_deadline(self, now: float) -> None:
        """Fail the session if its deadline passed, without a frame.

        Raises:
            SessionTimeoutError: If the deadline passed.
        """
        if self.is_finished or self._started_at is None:
            return
        self._now = now
        try:
            self._check_deadline(now)
        except LivenessError as e:
            self._fail(e)
            raise

    def close(self) -> None:
        """Stop the session.

        A running session is cancelled and its terminal event emitted.
        Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        if not self.is_finished:
            self._fail(SessionCancelledError("Session closed before completion"))
        self.closed_event.set()
        self._listeners.clear()
        logger.debug("Session closed")

    # ── Frame step ──

    def process(self, measurement: FaceMeasurement, image=None) -> SessionUpdate:
        """Process one frame's measurement.

        Args:
            measurement: Detector output for the frame (possibly absent).
            image: Frame image kept with a capture taken on this frame.

        Returns:
            SessionUpdate describing the step. A finished session returns
            its terminal update unchanged.

        Raises:
            LivenessError: The session failed on this frame.
        """
        if self.is_finished:
            return self._terminal_update()
        if self._started_at is None:
            self.start(measurement.timestamp)
            if self.is_finished:
                return self._terminal_update()

        self._now = measurement.timestamp
        try:
            update = self._step(measurement, image)
        except LivenessError as e:
            self._fail(e)
            raise
        self._last_update = update
        return update

    def _step(self, measurement: FaceMeasurement, image) -> SessionUpdate:
        self._check_deadline(measurement.timestamp)

        if not measurement.present:
            return self._on_face_missed(measurement)

        self._missed_frames = 0
        self._face_seen = True
        if self._state == SessionState.NO_FACE:
            self._set_state(SessionState.FACE_FOUND)

        self._check_velocity(measurement)
        self._last_detection = (measurement.frame_index, measurement.angle)

        bounds = self._bounds_smoother.add_sample(measurement.bounds)
        angle = self._angle_smoother.add_sample(measurement.angle)

        status = self._update_fixation(bounds, measurement.timestamp)
        if status is None:
            if self.evaluator.matches(angle, self._bearing):
                status = FaceAlignmentStatus.ALIGNED
            else:
                status = FaceAlignmentStatus.MISALIGNED
        offset = self.evaluator.offset_toward(angle, self._bearing)

        self._check_resumed(angle)
        if status != FaceAlignmentStatus.ALIGNED:
            self._check_direction(angle)
        self._previous_angle = angle

        self._set_state(_STATE_FOR_STATUS[status])

        if status == FaceAlignmentStatus.ALIGNED:
            self._aligned_count += 1
        else:
            self._aligned_count = 0

        bearing = self._bearing
        capture = None
        if self._aligned_count >= self.settings.aligned_frame_count:
            capture = self._record_capture(measurement, image, angle)

        # session_end is always the last event
        if not self.is_finished:
            self._emit(ProgressEvent(
                t=measurement.timestamp,
                frame_index=measurement.frame_index,
                state=self._state,
                status=status,
                bearing=bearing,
                offset=offset,
                capture_count=len(self._captures),
            ))

        return SessionUpdate(
            state=self._state,
            status=status,
            bearing=bearing,
            smoothed_angle=angle,
            smoothed_bounds=bounds,
            offset=offset,
            capture=capture,
            result=self._result,
        )

    # ── Presence ──

    def _on_face_missed(self, measurement: FaceMeasurement) -> SessionUpdate:
        self._missed_frames += 1
        # Captures need an unbroken run of aligned frames
        self._aligned_count = 0

        if self._face_seen and self._missed_frames > self.settings.max_missed_frames:
            raise FaceNotFoundError(
                f"Face lost for {self._missed_frames} consecutive frames"
            )

        if self._missed_frames > self.settings.missed_frame_grace:
            if self._state != SessionState.NO_FACE:
                logger.debug(
                    "Face missing for %d frames, tracking reset", self._missed_frames,
                )
                self._reset_tracking()
                self._set_state(SessionState.NO_FACE)
        else:
            self._bounds_smoother.remove_oldest()
            self._angle_smoother.remove_oldest()

        self._emit(ProgressEvent(
            t=measurement.timestamp,
            frame_index=measurement.frame_index,
            state=self._state,
            bearing=self._bearing,
            capture_count=len(self._captures),
        ))
        return SessionUpdate(
            state=self._state,
            bearing=self._bearing,
            smoothed_angle=self._angle_smoother.current,
            smoothed_bounds=self._bounds_smoother.current,
        )

    # ── Fixation ──

    def _update_fixation(self, bounds: Rect, t: float) -> Optional[FaceAlignmentStatus]:
        """Track bounds stability.

        Returns FOUND while not yet fixed, FIXED on the frame fixation is
        reached and None once the face is fixed for this bearing period.
        """
        stable = (
            self._previous_bounds is not None
            and self._is_within_jitter(self._previous_bounds, bounds)
        )
        self._previous_bounds = bounds

        if self._fixed:
            return None

        if self._fixed_since is None or not stable:
            self._fixed_since = t

        if t - self._fixed_since >= self.settings.min_fixed_duration:
            self._fixed = True
            logger.debug("Face fixed at t=%.3fs", t)
            return FaceAlignmentStatus.FIXED
        return FaceAlignmentStatus.FOUND

    def _is_within_jitter(self, previous: Rect, current: Rect) -> bool:
        limit = self.settings.fixed_jitter_ratio * previous.width
        (px, py), (cx, cy) = previous.center, current.center
        moved = ((cx - px) ** 2 + (cy - py) ** 2) ** 0.5
        return moved <= limit and abs(current.width - previous.width) <= limit

    # ── Spoof checks ──

    def _check_velocity(self, measurement: FaceMeasurement) -> None:
        """Raw angle change per frame must stay below max_angular_velocity."""
        if self._last_detection is None:
            return
        last_index, last_angle = self._last_detection
        # A long occlusion must not dilute the measured speed
        gap = min(
            max(1, measurement.frame_index - last_index),
            self.settings.missed_frame_grace + 1,
        )
        angle = measurement.angle
        velocity = max(
            abs(angle.yaw - last_angle.yaw), abs(angle.pitch - last_angle.pitch),
        ) / gap
        if velocity > self.settings.max_angular_velocity:
            logger.warning(
                "Spoof suspected: head moved %.1f deg/frame (limit %.1f) at frame %d",
                velocity, self.settings.max_angular_velocity, measurement.frame_index,
            )
            raise SpoofAttemptError(
                "moved_too_fast",
                f"Angle changed {velocity:.1f} deg/frame, limit {self.settings.max_angular_velocity:.1f}",
            )

    def _check_resumed(self, angle: Angle) -> None:
        """A face that reappears after a tracking reset must not land in the
        requested pose unless it was already there before it was lost."""
        if not self._tracking_lost:
            return
        self._tracking_lost = False
        if self._previous_angle is None:
            return
        if (
            not self.evaluator.matches(self._previous_angle, self._bearing)
            and self.evaluator.matches(angle, self._bearing)
        ):
            logger.warning(
                "Spoof suspected: face reappeared in %s pose without the turn being seen",
                self._bearing.value,
            )
            raise SpoofAttemptError(
                "moved_too_fast",
                f"Face reappeared already facing {self._bearing.value}",
            )

    def _check_direction(self, angle: Angle) -> None:
        """While moving between bearings the smoothed angle must not regress
        or leave the arc between them."""
        if self._previous_bearing is None or self._previous_angle is None:
            return

        regression = self.evaluator.regression_toward(
            self._previous_angle, angle, self._previous_bearing, self._bearing,
        )
        if regression > self.settings.max_opposite_movement:
            logger.warning(
                "Spoof suspected: moved %.1f deg away from %s",
                regression, self._bearing.value,
            )
            raise SpoofAttemptError(
                "moved_opposite",
                f"Moved {regression:.1f} deg away from {self._bearing.value}",
            )

        if not self.evaluator.is_between(angle, self._previous_bearing, self._bearing):
            logger.warning(
                "Spoof suspected: angle (%.1f, %.1f) off the %s -> %s arc",
                angle.yaw, angle.pitch, self._previous_bearing.value, self._bearing.value,
            )
            raise SpoofAttemptError(
                "moved_off_arc",
                f"Angle left the arc from {self._previous_bearing.value} to {self._bearing.value}",
            )

    # ── Captures and bearings ──

    def _record_capture(
        self, measurement: FaceMeasurement, image, angle: Angle,
    ) -> Capture:
        capture = Capture(
            measurement=measurement,
            bearing=self._bearing,
            image=image,
            smoothed_angle=angle,
        )
        self._captures.append(capture)
        is_control = self._bearing == Bearing.STRAIGHT
        if is_control:
            self._control_captures.append(capture)

        logger.info(
            "Captured %s at frame %d (%d/%d)",
            self._bearing.value, measurement.frame_index,
            len(self._captures), self.settings.max_bearings,
        )
        self._emit(CaptureEvent(
            t=measurement.timestamp,
            frame_index=measurement.frame_index,
            bearing=self._bearing,
            capture_count=len(self._captures),
            is_control=is_control,
        ))

        self._advance_bearing()
        return capture

    def _advance_bearing(self) -> None:
        next_bearing = self.sequencer.next_bearing(self._history)
        if next_bearing is None:
            self._complete()
            return

        self._previous_bearing = self._bearing
        self._bearing = next_bearing
        self._history.append(next_bearing)
        self._reset_bearing_progress()

        if self._previous_bearing is not None:
            logger.info(
                "Bearing %s -> %s", self._previous_bearing.value, next_bearing.value,
            )
        self._emit(RequirementEvent(t=self._now, requirement=self.requirement))

    def _complete(self) -> None:
        if self.result_evaluator is not None:
            result = self.result_evaluator.evaluate(self._captures, self._control_captures)
        else:
            result = SessionResult(
                captures=list(self._captures),
                control_captures=list(self._control_captures),
                verdict=Verdict.PASSED,
            )
        self._result = result
        self._set_state(SessionState.COMPLETE)
        self.closed_event.set()
        logger.info(
            "Session complete: %d captures, verdict %s",
            len(self._captures), result.verdict.value,
        )
        self._emit(SessionEndEvent(t=self._now, result=result))

    # ── Failure ──

    def _check_deadline(self, now: float) -> None:
        elapsed = now - self._started_at
        if elapsed > self.settings.max_duration:
            raise SessionTimeoutError(
                f"Session exceeded {self.settings.max_duration:.1f}s ({elapsed:.1f}s elapsed)"
            )

    def _fail(self, error: LivenessError) -> None:
        if self.is_finished:
            return
        if isinstance(error, SpoofAttemptError):
            self._set_state(SessionState.SPOOF_SUSPECTED)
        self._error = error
        self._result = SessionResult.failed(
            error.reason, self._captures, self._control_captures,
        )
        self._set_state(SessionState.ABORTED)
        self.closed_event.set()
        logger.warning("Session aborted (%s): %s", error.reason.value, error)
        self._emit(SessionEndEvent(t=self._now, result=self._result, error=error))

    def _terminal_update(self) -> SessionUpdate:
        if self._last_update is not None and self._last_update.result is self._result:
            return self._last_update
        return SessionUpdate(state=self._state, bearing=self._bearing, result=self._result)

    # ── Internals ──

    def _reset_fixation(self) -> None:
        self._fixed = False
        self._fixed_since: Optional[float] = None
        self._aligned_count = 0

    def _reset_bearing_progress(self) -> None:
        self._reset_fixation()
        # Direction baseline: last smoothed angle of this bearing period
        self._previous_angle: Optional[Angle] = None
        self._tracking_lost = False

    def _reset_tracking(self) -> None:
        """Drop smoothing and fixation; the direction baseline survives."""
        self._bounds_smoother.reset()
        self._angle_smoother.reset()
        self._previous_bounds = None
        self._reset_fixation()
        self._tracking_lost = True

    def _set_state(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state
        logger.debug("State %s -> %s", old_state.value, new_state.value)
        self._emit(StateChangeEvent(t=self._now, old_state=old_state, new_state=new_state))

    def _emit(self, event) -> None:
        self._listeners.emit(event)


__all__ = ["LivenessSession"]
