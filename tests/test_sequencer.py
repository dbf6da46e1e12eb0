"""Tests for BearingSequencer."""

import numpy as np

from facelive.config import SessionSettings
from facelive.sequencer import BearingSequencer
from facelive.types import Bearing


class TestNextBearing:
    def test_starts_straight(self, settings):
        assert BearingSequencer(settings, seed=0).next_bearing([]) == Bearing.STRAIGHT

    def test_stops_at_max_bearings(self, settings):
        seq = BearingSequencer(settings, seed=0)
        assert seq.next_bearing([Bearing.STRAIGHT, Bearing.LEFT]) is None

    def test_never_repeats_previous(self):
        settings = SessionSettings(max_bearings=10)
        seq = BearingSequencer(settings, seed=3)
        for _ in range(20):
            history = seq.sequence()
            for prev, cur in zip(history, history[1:]):
                assert prev != cur

    def test_no_candidate_ends_sequence(self):
        settings = SessionSettings(bearings=(Bearing.STRAIGHT,), max_bearings=3)
        seq = BearingSequencer(settings, seed=0)
        assert seq.sequence() == [Bearing.STRAIGHT]

    def test_prefers_unused(self):
        settings = SessionSettings(
            bearings=(Bearing.STRAIGHT, Bearing.LEFT, Bearing.RIGHT), max_bearings=4,
        )
        seq = BearingSequencer(settings, seed=1)
        history = seq.sequence()
        assert history[0] == Bearing.STRAIGHT
        assert set(history[1:3]) == {Bearing.LEFT, Bearing.RIGHT}
        assert len(history) == 4

    def test_skips_same_target_yaw(self):
        settings = SessionSettings(
            bearings=(Bearing.STRAIGHT, Bearing.LEFT, Bearing.LEFT_UP, Bearing.RIGHT),
            max_bearings=3,
        )
        for s in range(10):
            seq = BearingSequencer(settings, seed=s)
            assert seq.next_bearing([Bearing.STRAIGHT, Bearing.LEFT]) == Bearing.RIGHT

    def test_same_yaw_allowed_when_nothing_else(self):
        settings = SessionSettings(
            bearings=(Bearing.STRAIGHT, Bearing.LEFT, Bearing.LEFT_UP), max_bearings=3,
        )
        seq = BearingSequencer(settings, seed=0)
        assert seq.next_bearing([Bearing.STRAIGHT, Bearing.LEFT]) == Bearing.LEFT_UP

    def test_excluded_straight_is_still_first(self):
        settings = SessionSettings(bearings=(Bearing.LEFT, Bearing.RIGHT))
        seq = BearingSequencer(settings, seed=0)
        assert seq.next_bearing([]) == Bearing.STRAIGHT
        assert seq.next_bearing([Bearing.STRAIGHT]) in (Bearing.LEFT, Bearing.RIGHT)


class TestDeterminism:
    def test_same_seed_same_sequence(self):
        settings = SessionSettings(max_bearings=5)
        a = BearingSequencer(settings, seed=42).sequence()
        b = BearingSequencer(settings, seed=42).sequence()
        assert a == b

    def test_accepts_generator(self, settings):
        rng = np.random.default_rng(5)
        seq = BearingSequencer(settings, seed=rng)
        assert len(seq.sequence()) == 2
