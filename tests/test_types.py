"""Tests for facelive value types."""

import pytest

from facelive.types import (
    Bearing,
    Capture,
    FaceMeasurement,
    FailureReason,
    Rect,
    SessionResult,
    SessionState,
    Verdict,
)


class TestRect:
    def test_geometry(self):
        r = Rect(10.0, 20.0, 100.0, 50.0)
        assert r.center == (60.0, 45.0)
        assert r.right == 110.0
        assert r.bottom == 70.0

    def test_mirrored(self):
        assert Rect(10.0, 20.0, 100.0, 50.0).mirrored(640) == Rect(530.0, 20.0, 100.0, 50.0)


class TestBearing:
    @pytest.mark.parametrize("name,expected", [
        ("left", Bearing.LEFT),
        ("LEFT_UP", Bearing.LEFT_UP),
        ("right-down", Bearing.RIGHT_DOWN),
        (" straight ", Bearing.STRAIGHT),
    ])
    def test_from_string(self, name, expected):
        assert Bearing.from_string(name) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            Bearing.from_string("sideways")


class TestSessionState:
    def test_terminal_states(self):
        terminal = {s for s in SessionState if s.is_terminal}
        assert terminal == {SessionState.ABORTED, SessionState.COMPLETE}


class TestMeasurementAndResult:
    def test_absent(self):
        m = FaceMeasurement.absent(1.0, 30)
        assert not m.present
        assert m.bounds is None

    def test_failed_result_keeps_captures(self):
        capture = Capture(
            measurement=FaceMeasurement.absent(0.0, 0), bearing=Bearing.STRAIGHT,
        )
        result = SessionResult.failed(FailureReason.SPOOF_ATTEMPT, [capture], [capture])
        assert result.verdict == Verdict.FAILED
        assert not result.passed
        assert result.captures == [capture]
        assert result.bearing_captures == []
        assert result.recognition_score is None
