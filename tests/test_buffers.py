"""Tests for RingBuffer."""

import operator

import pytest

from facelive.buffers import RingBuffer


class TestRingBufferBasics:
    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            RingBuffer(0)

    def test_empty(self):
        buf = RingBuffer(3)
        assert len(buf) == 0
        assert buf.is_empty
        assert not buf.is_full
        assert buf.last() is None
        assert buf.pop_oldest() is None
        assert buf.get(0) is None

    def test_push_until_full(self):
        buf = RingBuffer(3)
        for v in (1, 2, 3):
            buf.push(v)
        assert buf.is_full
        assert list(buf) == [1, 2, 3]
        assert buf.last() == 3


class TestRingBufferOverwrite:
    def test_keeps_last_capacity_in_order(self):
        buf = RingBuffer(3)
        for v in range(10):
            buf.push(v)
        assert len(buf) == 3
        assert list(buf) == [7, 8, 9]

    def test_pop_oldest_is_fifo(self):
        buf = RingBuffer(2)
        buf.push("a")
        buf.push("b")
        buf.push("c")
        assert buf.pop_oldest() == "b"
        assert buf.pop_oldest() == "c"
        assert buf.pop_oldest() is None

    def test_get_indexes_from_oldest(self):
        buf = RingBuffer(3)
        for v in (5, 6, 7, 8):
            buf.push(v)
        assert buf.get(0) == 6
        assert buf.get(2) == 8
        assert buf.get(3) is None
        assert buf.get(-1) is None


class TestRingBufferReduce:
    def test_reduce_empty_is_none(self):
        assert RingBuffer(2).reduce(operator.add) is None

    def test_reduce_single_returns_element(self):
        buf = RingBuffer(2)
        buf.push(0.0)
        assert buf.reduce(operator.add) == 0.0

    def test_reduce_folds_in_order(self):
        buf = RingBuffer(4)
        for s in ("a", "b", "c"):
            buf.push(s)
        assert buf.reduce(operator.add) == "abc"

    def test_clear(self):
        buf = RingBuffer(2)
        buf.push(1)
        buf.clear()
        assert buf.is_empty
        assert buf.capacity == 2
