"""Unit tests for rangesim.sim.events (classification and serialized dispatch)."""

import logging

import pytest

from rangesim.errors import ConfigurationError
from rangesim.sim.events import (
    DispatcherState,
    EventDispatcher,
    TickKind,
    TimerEvent,
    classify_event,
)


class TestClassifyEvent:
    """Test suite for classify_event."""

    def test_state_id(self):
        assert classify_event(TimerEvent(3), 3, 4) is TickKind.STATE

    def test_measurement_id(self):
        assert classify_event(TimerEvent(4), 3, 4) is TickKind.MEASUREMENT

    def test_unknown_id(self):
        assert classify_event(TimerEvent(99), 3, 4) is TickKind.UNCLASSIFIED

    def test_string_ids(self):
        assert classify_event(TimerEvent("meas"), "state", "meas") is TickKind.MEASUREMENT


class TestEventDispatcher:
    """Test suite for EventDispatcher."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def dispatcher(self, calls):
        return EventDispatcher(
            0, 1,
            on_state_tick=lambda: calls.append("state") or "x",
            on_measurement_tick=lambda: calls.append("meas") or "z",
        )

    def test_routes_to_exactly_one_handler(self, dispatcher, calls):
        assert dispatcher.dispatch(TimerEvent(0)) == (TickKind.STATE, "x")
        assert dispatcher.dispatch(TimerEvent(1)) == (TickKind.MEASUREMENT, "z")
        assert calls == ["state", "meas"]
        assert dispatcher.status is DispatcherState.IDLE

    def test_unclassified_is_ignored_and_logged(self, dispatcher, calls, caplog):
        with caplog.at_level(logging.DEBUG, logger="rangesim.sim.events"):
            kind, result = dispatcher.dispatch(TimerEvent(7))
        assert kind is TickKind.UNCLASSIFIED
        assert result is None
        assert calls == []
        assert "unclassified" in caplog.text

    def test_status_while_running(self):
        seen = []
        dispatcher = EventDispatcher(
            "s", "m",
            on_state_tick=lambda: seen.append(dispatcher.status),
            on_measurement_tick=lambda: seen.append(dispatcher.status),
        )
        dispatcher.dispatch(TimerEvent("s"))
        dispatcher.dispatch(TimerEvent("m"))
        assert seen == [
            DispatcherState.RUNNING_STATE_UPDATE,
            DispatcherState.RUNNING_MEASUREMENT_UPDATE,
        ]

    def test_reentrant_dispatch_rejected(self):
        errors = []

        def nested():
            try:
                dispatcher.dispatch(TimerEvent(1))
            except RuntimeError as err:
                errors.append(err)

        dispatcher = EventDispatcher(0, 1, on_state_tick=nested, on_measurement_tick=lambda: None)
        dispatcher.dispatch(TimerEvent(0))
        assert len(errors) == 1
        assert dispatcher.status is DispatcherState.IDLE

    def test_returns_to_idle_after_handler_error(self):
        def boom():
            raise ValueError("boom")

        dispatcher = EventDispatcher(0, 1, on_state_tick=boom, on_measurement_tick=lambda: None)
        with pytest.raises(ValueError):
            dispatcher.dispatch(TimerEvent(0))
        assert dispatcher.status is DispatcherState.IDLE

    def test_identical_ids_rejected(self):
        with pytest.raises(ConfigurationError):
            EventDispatcher(5, 5, on_state_tick=lambda: None, on_measurement_tick=lambda: None)
