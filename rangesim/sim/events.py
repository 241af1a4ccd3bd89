"""
Timer events and their dispatch to the two simulation paths.

An external timing source delivers TimerEvents carrying an opaque timer id.
Two ids are reserved by configuration: one triggers a state tick and one a
measurement tick. Anything else is unclassified and ignored.

The EventDispatcher runs each classified event to completion before it
accepts the next one, so state and measurement ticks never interleave.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable

from rangesim.errors import ConfigurationError

logger = logging.getLogger(__name__)


class TickKind(Enum):
    """Classification of a timer event."""
    STATE = "state"
    MEASUREMENT = "measurement"
    UNCLASSIFIED = "unclassified"


class DispatcherState(Enum):
    """Execution state of the dispatcher."""
    IDLE = "idle"
    RUNNING_STATE_UPDATE = "running_state_update"
    RUNNING_MEASUREMENT_UPDATE = "running_measurement_update"


@dataclass(frozen=True)
class TimerEvent:
    """
    One firing of an external timer.

    Attributes:
        timer_id: Opaque identifier of the timer that fired.
        t: Optional firing time in seconds, informational only.
    """

    timer_id: Hashable
    t: float = 0.0


def classify_event(
    event: TimerEvent,
    state_timer_id: Hashable,
    meas_timer_id: Hashable,
) -> TickKind:
    """
    Classify a timer event against the configured timer ids.

    Args:
        event: Event to classify.
        state_timer_id: Id that triggers a state tick.
        meas_timer_id: Id that triggers a measurement tick.

    Returns:
        TickKind.STATE, TickKind.MEASUREMENT or TickKind.UNCLASSIFIED.
    """
    if event.timer_id == state_timer_id:
        return TickKind.STATE
    if event.timer_id == meas_timer_id:
        return TickKind.MEASUREMENT
    return TickKind.UNCLASSIFIED


class EventDispatcher:
    """
    Routes timer events to the state or measurement handler.

    Attributes:
        state_timer_id: Id reserved for state ticks.
        meas_timer_id: Id reserved for measurement ticks.
        status: Current DispatcherState (IDLE between events).
    """

    def __init__(
        self,
        state_timer_id: Hashable,
        meas_timer_id: Hashable,
        on_state_tick: Callable[[], Any],
        on_measurement_tick: Callable[[], Any],
    ):
        """
        Initialize the dispatcher.

        Args:
            state_timer_id: Id reserved for state ticks.
            meas_timer_id: Id reserved for measurement ticks.
            on_state_tick: Handler run for a state tick.
            on_measurement_tick: Handler run for a measurement tick.

        Raises:
            ConfigurationError: If both ids are equal.
        """
        if state_timer_id == meas_timer_id:
            raise ConfigurationError(
                f"state and measurement timer ids must differ, both are {state_timer_id!r}"
            )
        self.state_timer_id = state_timer_id
        self.meas_timer_id = meas_timer_id
        self._handlers = {
            TickKind.STATE: (DispatcherState.RUNNING_STATE_UPDATE, on_state_tick),
            TickKind.MEASUREMENT: (DispatcherState.RUNNING_MEASUREMENT_UPDATE, on_measurement_tick),
        }
        self.status = DispatcherState.IDLE

    def classify(self, event: TimerEvent) -> TickKind:
        return classify_event(event, self.state_timer_id, self.meas_timer_id)

    def dispatch(self, event: TimerEvent):
        """
        Run the handler selected by the event.

        The dispatcher returns to IDLE whether the handler succeeds or raises;
        exceptions from the handler propagate to the caller.

        Args:
            event: Timer event to dispatch.

        Returns:
            Tuple of (TickKind, handler result). The result is None for
            unclassified events.

        Raises:
            RuntimeError: If called while another event is still running.
        """
        if self.status is not DispatcherState.IDLE:
            raise RuntimeError(
                f"dispatcher is busy ({self.status.value}); events are not buffered"
            )

        kind = self.classify(event)
        if kind is TickKind.UNCLASSIFIED:
            logger.debug("ignoring unclassified timer event %r", event.timer_id)
            return kind, None

        running_state, handler = self._handlers[kind]
        self.status = running_state
        try:
            result = handler()
        finally:
            self.status = DispatcherState.IDLE
        return kind, result
