"""Bearing sequencing for a liveness session.

A session always starts with STRAIGHT (the control pose). Each following
bearing is drawn at random from the configured candidates so a
pre-recorded head movement cannot anticipate the challenge.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from facelive.config import SessionSettings
from facelive.geometry import AngleBearingEvaluator
from facelive.types import Bearing

logger = logging.getLogger(__name__)


class BearingSequencer:
    """Produces the finite bearing sequence of one session.

    Selection rules for the bearing after ``history[-1]``:
    1. Never repeat the previous bearing
    2. Prefer bearings not requested yet
    3. Skip bearings whose target yaw equals the previous target yaw,
       unless nothing else remains
    4. Pick uniformly at random among the survivors

    Args:
        settings: Session settings (candidates, max_bearings, thresholds).
        evaluator: Evaluator used for target angles (default: from settings).
        seed: Seed or Generator for the random choice.
    """

    def __init__(
        self,
        settings: SessionSettings,
        evaluator: Optional[AngleBearingEvaluator] = None,
        seed=None,
    ):
        self.settings = settings
        self.evaluator = evaluator or AngleBearingEvaluator(settings)
        if isinstance(seed, np.random.Generator):
            self._rng = seed
        else:
            self._rng = np.random.default_rng(seed)

    def next_bearing(self, history: Sequence[Bearing]) -> Optional[Bearing]:
        """Bearing to request after the given history, or None when done."""
        if not history:
            return Bearing.STRAIGHT
        if len(history) >= self.settings.max_bearings:
            return None

        previous = history[-1]
        candidates = [b for b in self.settings.bearings if b != previous]
        if not candidates:
            logger.debug("No bearing other than %s configured", previous.value)
            return None

        unused = [b for b in candidates if b not in history]
        if unused:
            candidates = unused

        previous_yaw = self.evaluator.target_angle(previous).yaw
        distinct = [
            b for b in candidates
            if self.evaluator.target_angle(b).yaw != previous_yaw
        ]
        if distinct:
            candidates = distinct

        return candidates[int(self._rng.integers(len(candidates)))]

    def sequence(self) -> List[Bearing]:
        """Materialize a complete bearing sequence."""
        history: List[Bearing] = []
        while True:
            bearing = self.next_bearing(history)
            if bearing is None:
                return history
            history.append(bearing)


__all__ = ["BearingSequencer"]
