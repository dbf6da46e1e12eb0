"""Shared test helpers for facelive tests.

Synthetic measurements, detectors and frame sources. No models or
cameras needed.
"""

import threading
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from facelive.detect import DetectedFace
from facelive.types import Angle, FaceMeasurement, Rect

FPS = 30.0
BOUNDS = Rect(100.0, 80.0, 120.0, 150.0)


def face(
    frame_index: int,
    yaw: float = 0.0,
    pitch: float = 0.0,
    *,
    fps: float = FPS,
    bounds: Rect = BOUNDS,
    template: Optional[np.ndarray] = None,
) -> FaceMeasurement:
    """Measurement of a detected face at ``frame_index / fps`` seconds."""
    return FaceMeasurement(
        timestamp=frame_index / fps,
        frame_index=frame_index,
        bounds=bounds,
        angle=Angle(yaw=yaw, pitch=pitch),
        confidence=0.99,
        template=template,
    )


def no_face(frame_index: int, fps: float = FPS) -> FaceMeasurement:
    return FaceMeasurement.absent(frame_index / fps, frame_index)


def track(
    angles: Iterable[Tuple[float, float]],
    start_frame: int = 0,
    *,
    fps: float = FPS,
    template: Optional[np.ndarray] = None,
) -> List[FaceMeasurement]:
    """Consecutive face measurements for a sequence of (yaw, pitch) angles."""
    return [
        face(start_frame + i, yaw, pitch, fps=fps, template=template)
        for i, (yaw, pitch) in enumerate(angles)
    ]


def hold(yaw: float, pitch: float, count: int) -> List[Tuple[float, float]]:
    return [(yaw, pitch)] * count


def ramp_yaw(start: float, stop: float, step: float) -> List[Tuple[float, float]]:
    """Yaw angles from start (exclusive) to stop (inclusive) in fixed steps."""
    count = int(round((stop - start) / step))
    return [(start + step * (i + 1), 0.0) for i in range(count)]


def feed(session, measurements: Sequence[FaceMeasurement]):
    """Process measurements until the session finishes; return the updates."""
    updates = []
    for m in measurements:
        updates.append(session.process(m))
        if session.is_finished:
            break
    return updates


class ListSource:
    """Frame source over a fixed number of blank frames."""

    def __init__(self, count: int, shape=(240, 320, 3), on_exhausted=None):
        self.count = count
        self.shape = shape
        self.reads = 0
        self.release_calls = 0
        self._on_exhausted = on_exhausted

    def read(self):
        if self.reads >= self.count:
            if self._on_exhausted is not None:
                self._on_exhausted()
            return None
        self.reads += 1
        return np.zeros(self.shape, dtype=np.uint8)

    def release(self):
        self.release_calls += 1


class ScriptedDetector:
    """Detector returning pre-scripted faces, one per call."""

    def __init__(self, faces: Sequence[Optional[DetectedFace]]):
        self._faces = list(faces)
        self.calls = 0
        self.initialize_calls = 0
        self.cleanup_calls = 0

    def initialize(self):
        self.initialize_calls += 1

    def detect(self, image):
        face = self._faces[self.calls] if self.calls < len(self._faces) else None
        self.calls += 1
        return face

    def cleanup(self):
        self.cleanup_calls += 1


class BlockingDetector:
    """Detector that blocks until released, then reports a straight face."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def detect(self, image):
        self.calls += 1
        self.release.wait(timeout=5.0)
        return DetectedFace(bbox=(10, 10, 50, 60), confidence=0.9)


class StepClock:
    """Deterministic clock advancing a fixed step per call."""

    def __init__(self, step: float = 1.0 / FPS):
        self.step = step
        self.calls = 0

    def __call__(self) -> float:
        t = self.calls * self.step
        self.calls += 1
        return t
