"""Tests for moving-average smoothers."""

import pytest

from facelive.smoothing import AngleSmoother, RectSmoother, ScalarSmoother
from facelive.types import Angle, Rect


class TestScalarSmoother:
    def test_no_sample_is_none(self):
        assert ScalarSmoother(3).current is None

    def test_single_sample(self):
        s = ScalarSmoother(3)
        assert s.add_sample(4.0) == 4.0
        assert s.current == 4.0

    def test_zero_sample_is_not_lost(self):
        s = ScalarSmoother(3)
        s.add_sample(0.0)
        assert s.current == 0.0

    def test_mean_over_window(self):
        s = ScalarSmoother(3)
        for v in (1.0, 2.0, 3.0, 10.0):
            s.add_sample(v)
        assert s.current == pytest.approx(5.0)

    def test_remove_oldest_recomputes(self):
        s = ScalarSmoother(3)
        for v in (1.0, 2.0, 6.0):
            s.add_sample(v)
        assert s.remove_oldest() == 1.0
        assert s.current == pytest.approx(4.0)
        s.remove_oldest()
        s.remove_oldest()
        assert s.current is None

    def test_reset(self):
        s = ScalarSmoother(2)
        s.add_sample(1.0)
        s.reset()
        assert s.current is None
        assert len(s) == 0


class TestAngleSmoother:
    def test_averages_components(self):
        s = AngleSmoother(2)
        s.add_sample(Angle(yaw=10.0, pitch=-4.0))
        current = s.add_sample(Angle(yaw=20.0, pitch=0.0))
        assert current == Angle(yaw=15.0, pitch=-2.0)

    def test_reset_and_remove(self):
        s = AngleSmoother(2)
        s.add_sample(Angle(1.0, 1.0))
        s.remove_oldest()
        assert s.current is None
        s.add_sample(Angle(1.0, 1.0))
        s.reset()
        assert s.current is None


class TestRectSmoother:
    def test_averages_rects(self):
        s = RectSmoother(2)
        s.add_sample(Rect(0.0, 0.0, 100.0, 100.0))
        current = s.add_sample(Rect(10.0, 20.0, 110.0, 120.0))
        assert current == Rect(5.0, 10.0, 105.0, 110.0)

    def test_empty_is_none(self):
        s = RectSmoother(3)
        assert s.current is None
        s.add_sample(Rect(0.0, 0.0, 1.0, 1.0))
        s.remove_oldest()
        assert s.current is None
