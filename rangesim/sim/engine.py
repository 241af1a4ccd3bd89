"""
Range simulator engine: configure, tick and teardown.

The engine wires the model builder, the noise samplers and the two
simulators behind a small interface that a host component (or a test) drives:

    engine = RangeSimulatorEngine(state_sink=..., measurement_sink=...)
    engine.configure(SimulatorConfig(continuity_level=1, seed=42))
    engine.set_control(0.5, 0.0)          # any time, last value wins
    engine.tick(TimerEvent(0))            # state tick -> state_sink(x)
    engine.tick(TimerEvent(1))            # measurement tick -> measurement_sink(z)
    engine.teardown()

Ticks are processed one at a time by the EventDispatcher. A tick that fails
with DimensionMismatchError is reported in its TickResult and leaves the
ground-truth state unchanged; the next tick runs normally.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from rangesim.config import SimulatorConfig
from rangesim.errors import DimensionMismatchError
from rangesim.models.model_builder import MeasurementStructure, TransitionStructure, build_model
from rangesim.sim.events import EventDispatcher, TickKind, TimerEvent
from rangesim.sim.measurement import MeasurementSimulator
from rangesim.sim.motion import ControlMailbox, MotionSimulator
from rangesim.sim.noise import GaussianNoiseSampler, as_noise_parameters

logger = logging.getLogger(__name__)

StateSink = Callable[[np.ndarray], Any]
MeasurementSink = Callable[[Any], Any]


@dataclass(frozen=True)
class TickResult:
    """
    Outcome of one timer event.

    Attributes:
        kind: How the event was classified.
        output: New state (state tick) or measurement (measurement tick);
                None for unclassified or failed ticks.
        error: DimensionMismatchError that aborted the tick, if any.
    """

    kind: TickKind
    output: Any = None
    error: Optional[DimensionMismatchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RangeSimulatorEngine:
    """
    Ground-truth motion and range measurement simulator.

    Attributes:
        config: Active configuration (None until configured).
        control: Control mailbox written by set_control.
    """

    def __init__(
        self,
        state_sink: Optional[StateSink] = None,
        measurement_sink: Optional[MeasurementSink] = None,
    ):
        """
        Create an inactive engine.

        Args:
            state_sink: Called with the new state after every state tick.
            measurement_sink: Called with the measurement after every
                              measurement tick.
        """
        self.state_sink = state_sink
        self.measurement_sink = measurement_sink
        self.control = ControlMailbox()
        self.config: Optional[SimulatorConfig] = None

        self._transition: Optional[TransitionStructure] = None
        self._measurement_structure: Optional[MeasurementStructure] = None
        self._motion: Optional[MotionSimulator] = None
        self._measurement: Optional[MeasurementSimulator] = None
        self._dispatcher: Optional[EventDispatcher] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._dispatcher is not None

    def configure(self, config: SimulatorConfig) -> None:
        """
        Build the model and simulators from a configuration.

        Everything is assembled first and only installed once all of it
        succeeded, so a ConfigurationError leaves the engine inactive.

        Args:
            config: Validated simulator configuration.

        Raises:
            ConfigurationError: If the level, dimensions or noise covariances
                are invalid.
            RuntimeError: If the engine is already active.
        """
        if self.is_active:
            raise RuntimeError("engine is already configured; call teardown() first")

        transition, measurement_structure = build_model(
            config.continuity_level,
            config.update_period,
            pos_state_dimension=config.pos_state_dimension,
            meas_dimension=config.meas_dimension,
            coupling=config.coupling,
        )
        n = transition.state_dim
        m = measurement_structure.meas_dim

        w_mean, w_cov = as_noise_parameters(
            config.process_noise_mean, config.process_noise_covariance, n, name="process noise"
        )
        v_mean, v_cov = as_noise_parameters(
            config.measurement_noise_mean, config.measurement_noise_covariance, m,
            name="measurement noise",
        )

        # Independent, reproducible streams for the two noise sources
        process_seed, measurement_seed = np.random.SeedSequence(config.seed).spawn(2)
        process_noise = GaussianNoiseSampler(
            w_mean, w_cov, rng=np.random.default_rng(process_seed)
        )
        measurement_noise = GaussianNoiseSampler(
            v_mean, v_cov, rng=np.random.default_rng(measurement_seed)
        )

        motion = MotionSimulator(transition, process_noise, initial_state=config.initial_state)
        measurement = MeasurementSimulator(measurement_structure, measurement_noise)
        dispatcher = EventDispatcher(
            config.state_timer_id,
            config.meas_timer_id,
            on_state_tick=self._run_state_tick,
            on_measurement_tick=self._run_measurement_tick,
        )

        self.config = config
        self._transition = transition
        self._measurement_structure = measurement_structure
        self._motion = motion
        self._measurement = measurement
        self._dispatcher = dispatcher

        logger.info(
            "configured range simulator: level=%d, state_dim=%d, meas_dim=%d, period=%.4gs, coupling=%s",
            transition.level, n, m, transition.period, transition.coupling,
        )

    def teardown(self) -> None:
        """
        Release the noise samplers and model structures.

        No tick is accepted afterwards until the engine is configured again.
        Calling teardown on an inactive engine does nothing.
        """
        if not self.is_active:
            return

        self._dispatcher = None
        self._motion.process_noise.release()
        self._measurement.measurement_noise.release()
        self._motion = None
        self._measurement = None
        self._transition = None
        self._measurement_structure = None
        self.config = None
        logger.info("range simulator torn down")

    def __enter__(self) -> "RangeSimulatorEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_control(self, linear: float, angular: float) -> None:
        """Store the latest control sample (linear m/s, angular rad/s)."""
        self.control.write(linear, angular)

    def tick(self, event: TimerEvent) -> TickResult:
        """
        Process one timer event.

        Args:
            event: Timer event from the external timing source.

        Returns:
            TickResult describing what ran and what was emitted.

        Raises:
            RuntimeError: If the engine is not configured (or torn down), or
                if called while another tick is running.
        """
        if not self.is_active:
            raise RuntimeError("engine is not active; call configure() first")

        try:
            kind, output = self._dispatcher.dispatch(event)
        except DimensionMismatchError as err:
            kind = self._dispatcher.classify(event)
            logger.warning("%s tick aborted: %s", kind.value, err)
            return TickResult(kind=kind, error=err)

        return TickResult(kind=kind, output=output)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> np.ndarray:
        self._require_active()
        return self._motion.state

    @property
    def last_measurement(self):
        self._require_active()
        return self._measurement.last_measurement

    @property
    def transition(self) -> TransitionStructure:
        self._require_active()
        return self._transition

    @property
    def measurement_structure(self) -> MeasurementStructure:
        self._require_active()
        return self._measurement_structure

    # ------------------------------------------------------------------
    # Tick handlers (run by the dispatcher)
    # ------------------------------------------------------------------

    def _run_state_tick(self) -> np.ndarray:
        x_next = self._motion.simulate_state(self.control.read())
        if self.state_sink is not None:
            self.state_sink(x_next.copy())
        return x_next

    def _run_measurement_tick(self):
        z = self._measurement.simulate_meas(self._motion.state)
        if self.measurement_sink is not None:
            self.measurement_sink(z)
        return z

    def _require_active(self) -> None:
        if not self.is_active:
            raise RuntimeError("engine is not active; call configure() first")
