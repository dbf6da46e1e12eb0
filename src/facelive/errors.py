"""Session failure types.

Every failure is terminal for the session that raised it. Callers decide
whether to start a new session; nothing is retried internally.
"""

from facelive.types import FailureReason


class LivenessError(Exception):
    """Base class for session failures."""

    reason: FailureReason = FailureReason.SETUP_FAILED


class FaceNotFoundError(LivenessError):
    """Face lost for longer than the missed-frame budget."""

    reason = FailureReason.FACE_NOT_FOUND


class SpoofAttemptError(LivenessError):
    """Measured motion is inconsistent with a live head.

    Attributes:
        kind: "moved_too_fast", "moved_opposite" or "moved_off_arc".
    """

    reason = FailureReason.SPOOF_ATTEMPT

    def __init__(self, kind: str, message: str = ""):
        super().__init__(message or kind)
        self.kind = kind


class SessionTimeoutError(LivenessError):
    """Session deadline passed before completion."""

    reason = FailureReason.TIMEOUT


class InvalidTemplateError(LivenessError):
    """Face template missing or malformed."""

    reason = FailureReason.INVALID_TEMPLATE


class ComparisonFailedError(LivenessError):
    """Face comparison service failed."""

    reason = FailureReason.COMPARISON_FAILED


class SetupFailedError(LivenessError):
    """Camera or other session resource could not be acquired."""

    reason = FailureReason.SETUP_FAILED


class SessionCancelledError(LivenessError):
    """Session closed before completion."""

    reason = FailureReason.CANCELLED


__all__ = [
    "LivenessError",
    "FaceNotFoundError",
    "SpoofAttemptError",
    "SessionTimeoutError",
    "InvalidTemplateError",
    "ComparisonFailedError",
    "SetupFailedError",
    "SessionCancelledError",
]
