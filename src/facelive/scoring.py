"""Session result evaluation.

Compares every bearing capture with every control capture through a face
comparison service and turns the aggregated score into a verdict.
"""

import logging
from typing import List, Optional, Protocol, Sequence

import numpy as np

from facelive.config import ScorePolicy, SessionSettings
from facelive.errors import ComparisonFailedError, InvalidTemplateError
from facelive.types import Capture, FailureReason, SessionResult, Verdict

logger = logging.getLogger(__name__)


class FaceComparator(Protocol):
    """Protocol for face comparison services."""

    def compare(self, template_a, template_b) -> float:
        """Similarity score of two face templates.

        Raises:
            InvalidTemplateError: If either template is missing or malformed.
        """
        ...


class CosineFaceComparator:
    """Cosine similarity between face embedding vectors."""

    def compare(self, template_a, template_b) -> float:
        a = self._validate(template_a)
        b = self._validate(template_b)
        if a.shape != b.shape:
            raise InvalidTemplateError(
                f"Template shapes differ: {a.shape} vs {b.shape}"
            )
        return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))

    @staticmethod
    def _validate(template) -> np.ndarray:
        if template is None:
            raise InvalidTemplateError("Missing face template")
        vec = np.asarray(template, dtype=np.float32)
        if vec.ndim != 1 or vec.size == 0:
            raise InvalidTemplateError(f"Face template must be a non-empty vector, got shape {vec.shape}")
        if not np.all(np.isfinite(vec)):
            raise InvalidTemplateError("Face template contains non-finite values")
        if np.linalg.norm(vec) == 0:
            raise InvalidTemplateError("Face template has zero norm")
        return vec


class SessionResultEvaluator:
    """Scores control captures against bearing captures.

    Args:
        comparator: Face comparison service.
        threshold: Minimum aggregated score for a pass.
        policy: How pair scores are aggregated.
    """

    def __init__(
        self,
        comparator: Optional[FaceComparator] = None,
        threshold: float = 0.4,
        policy: ScorePolicy = ScorePolicy.MAX,
    ):
        self.comparator = comparator or CosineFaceComparator()
        self.threshold = threshold
        self.policy = policy

    @classmethod
    def from_settings(
        cls, settings: SessionSettings, comparator: Optional[FaceComparator] = None,
    ) -> "SessionResultEvaluator":
        return cls(
            comparator=comparator,
            threshold=settings.recognition_threshold,
            policy=settings.score_policy,
        )

    def pair_scores(
        self, captures: Sequence[Capture], control_captures: Sequence[Capture],
    ) -> List[float]:
        """Score every (bearing capture, control capture) pair.

        Raises:
            InvalidTemplateError: A template is missing or malformed.
            ComparisonFailedError: The comparator failed otherwise.
        """
        scores: List[float] = []
        for capture in captures:
            for control in control_captures:
                try:
                    score = self.comparator.compare(control.template, capture.template)
                except InvalidTemplateError:
                    raise
                except Exception as e:
                    raise ComparisonFailedError(f"Face comparison failed: {e}") from e
                scores.append(float(score))
        return scores

    def aggregate(self, scores: Sequence[float]) -> Optional[float]:
        if not scores:
            return None
        if self.policy == ScorePolicy.MEAN:
            return float(np.mean(scores))
        if self.policy == ScorePolicy.MIN:
            return float(min(scores))
        return float(max(scores))

    def evaluate(
        self, captures: Sequence[Capture], control_captures: Sequence[Capture],
    ) -> SessionResult:
        """Build the result of a completed session.

        Args:
            captures: All captures in order, control captures included.
            control_captures: Captures taken while facing straight.
        """
        control_ids = {id(c) for c in control_captures}
        bearing_captures = [c for c in captures if id(c) not in control_ids]

        score = self.aggregate(self.pair_scores(bearing_captures, control_captures))
        if score is None:
            logger.info("No control/bearing pair to compare, recognition skipped")
            verdict, failure = Verdict.PASSED, None
        elif score >= self.threshold:
            verdict, failure = Verdict.PASSED, None
        else:
            verdict, failure = Verdict.FAILED, FailureReason.FACE_MISMATCH

        if score is not None:
            logger.info(
                "Recognition score %.3f (%s, threshold %.3f): %s",
                score, self.policy.value, self.threshold, verdict.value,
            )

        return SessionResult(
            captures=list(captures),
            control_captures=list(control_captures),
            verdict=verdict,
            recognition_score=score,
            failure=failure,
        )


__all__ = ["FaceComparator", "CosineFaceComparator", "SessionResultEvaluator"]
