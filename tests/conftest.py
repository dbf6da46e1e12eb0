"""Shared fixtures for facelive tests.

All measurements and embeddings are synthetic. NO ML models needed.
"""

import numpy as np
import pytest

from facelive.config import SessionSettings
from facelive.events import EventRecorder
from facelive.geometry import AngleBearingEvaluator
from facelive.types import Bearing


@pytest.fixture
def settings():
    """Default session settings."""
    return SessionSettings()


@pytest.fixture
def evaluator(settings):
    return AngleBearingEvaluator(settings)


@pytest.fixture
def right_turn_settings():
    """STRAIGHT then RIGHT, yaw threshold 25, short fixation."""
    return SessionSettings(
        yaw_threshold=25.0,
        pitch_threshold=15.0,
        yaw_tolerance=5.0,
        pitch_tolerance=5.0,
        bearings=(Bearing.STRAIGHT, Bearing.RIGHT),
        max_bearings=2,
        min_fixed_duration=0.2,
        aligned_frame_count=3,
    )


@pytest.fixture
def fast_settings():
    """STRAIGHT then LEFT with immediate fixation.

    An angle window of 1 lets single-frame regressions through unsmoothed.
    With the default window of 3, yaw 5, 10, 15, 9 smooths to 10 and then
    11.3 on the last two frames and never moves backwards.
    """
    return SessionSettings(
        bearings=(Bearing.STRAIGHT, Bearing.LEFT),
        max_bearings=2,
        angle_smoothing_window=1,
        min_fixed_duration=0.0,
        aligned_frame_count=2,
        max_opposite_movement=3.0,
        max_angular_velocity=10.0,
    )


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def make_embedding():
    """Factory fixture for generating deterministic L2-normalized embeddings."""
    def _make(seed: int = 0, dim: int = 512) -> np.ndarray:
        rng = np.random.default_rng(seed)
        v = rng.standard_normal(dim).astype(np.float32)
        return v / np.linalg.norm(v)
    return _make
