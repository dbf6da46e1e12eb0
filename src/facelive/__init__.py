"""facelive - Pose-challenge face liveness detection.

Asks the subject to face a short random sequence of head bearings,
checks that the head moves like a live one, captures a face sample per
bearing and compares the samples against the straight-on control capture.

Quick Start:
    >>> from facelive import LivenessSession, SessionSettings, SessionResultEvaluator
    >>> settings = SessionSettings(max_bearings=3)
    >>> session = LivenessSession(
    ...     settings, result_evaluator=SessionResultEvaluator.from_settings(settings),
    ... )
    >>> for measurement, image in producer:
    ...     update = session.process(measurement, image)
    ...     if update.result is not None:
    ...         break
    >>> print(session.result.verdict)
"""

__version__ = "0.1.0"

from facelive.types import (
    Angle,
    Rect,
    Bearing,
    FaceAlignmentStatus,
    SessionState,
    Verdict,
    FailureReason,
    FaceMeasurement,
    Capture,
    FaceRequirement,
    SessionResult,
    SessionUpdate,
)
from facelive.config import SessionSettings, ScorePolicy
from facelive.errors import (
    LivenessError,
    FaceNotFoundError,
    SpoofAttemptError,
    SessionTimeoutError,
    InvalidTemplateError,
    ComparisonFailedError,
    SetupFailedError,
    SessionCancelledError,
)
from facelive.buffers import RingBuffer
from facelive.smoothing import ScalarSmoother, AngleSmoother, RectSmoother
from facelive.geometry import AngleBearingEvaluator
from facelive.sequencer import BearingSequencer
from facelive.scoring import FaceComparator, CosineFaceComparator, SessionResultEvaluator
from facelive.session import LivenessSession
from facelive.detect import DetectedFace, FaceDetector, measurement_from_detection, crop_face
from facelive.source import FrameSource, CameraSource, MeasurementProducer
from facelive.runner import run_session
from facelive.persistence import save_trace, load_trace, save_result

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
    "SessionSettings",
    "ScorePolicy",
    "LivenessError",
    "FaceNotFoundError",
    "SpoofAttemptError",
    "SessionTimeoutError",
    "InvalidTemplateError",
    "ComparisonFailedError",
    "SetupFailedError",
    "SessionCancelledError",
    "RingBuffer",
    "ScalarSmoother",
    "AngleSmoother",
    "RectSmoother",
    "AngleBearingEvaluator",
    "BearingSequencer",
    "FaceComparator",
    "CosineFaceComparator",
    "SessionResultEvaluator",
    "LivenessSession",
    "DetectedFace",
    "FaceDetector",
    "measurement_from_detection",
    "crop_face",
    "FrameSource",
    "CameraSource",
    "MeasurementProducer",
    "run_session",
    "save_trace",
    "load_trace",
    "save_result",
]
