"""Tests for the listener registry."""

from facelive.events import EventRecorder, ListenerRegistry, StateChangeEvent
from facelive.types import SessionState


def _event():
    return StateChangeEvent(t=1.0, old_state=SessionState.NO_FACE, new_state=SessionState.FACE_FOUND)


class TestListenerRegistry:
    def test_emit_in_registration_order(self):
        registry = ListenerRegistry()
        seen = []
        registry.add(lambda e: seen.append("a"))
        registry.add(lambda e: seen.append("b"))
        registry.emit(_event())
        assert seen == ["a", "b"]

    def test_remove_by_handle(self):
        registry = ListenerRegistry()
        recorder = EventRecorder()
        handle = registry.add(recorder)
        assert registry.remove(handle)
        assert not registry.remove(handle)
        registry.emit(_event())
        assert recorder.events == []
        assert len(registry) == 0

    def test_failing_listener_does_not_stop_delivery(self):
        registry = ListenerRegistry()
        recorder = EventRecorder()

        def broken(event):
            raise RuntimeError("boom")

        registry.add(broken)
        registry.add(recorder)
        registry.emit(_event())
        assert len(recorder.events) == 1

    def test_listener_may_remove_itself(self):
        registry = ListenerRegistry()
        calls = []
        handles = []

        def once(event):
            calls.append(event)
            registry.remove(handles[0])

        handles.append(registry.add(once))
        registry.emit(_event())
        registry.emit(_event())
        assert len(calls) == 1


class TestEventRecorder:
    def test_of_type(self):
        recorder = EventRecorder()
        recorder(_event())
        assert recorder.of_type("state_change")[0].new_state == SessionState.FACE_FOUND
        assert recorder.of_type("capture") == []
        recorder.clear()
        assert recorder.events == []
