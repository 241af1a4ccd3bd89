"""
Stochastic simulation of the platform and its range sensor.

Modules:
    noise: Multivariate Gaussian noise sampler
    motion: Control mailbox and ground-truth state propagation
    measurement: Noisy range measurement generation
    events: Timer event classification and serialized dispatch
    engine: Configure / tick / teardown facade used by hosts and scripts
"""

from rangesim.sim.noise import GaussianNoiseSampler, as_noise_parameters, factorize_covariance
from rangesim.sim.motion import ControlMailbox, MotionSimulator
from rangesim.sim.measurement import MeasurementSimulator
from rangesim.sim.events import (
    DispatcherState,
    EventDispatcher,
    TickKind,
    TimerEvent,
    classify_event,
)
from rangesim.sim.engine import RangeSimulatorEngine, TickResult

__all__ = [
    "GaussianNoiseSampler",
    "as_noise_parameters",
    "factorize_covariance",
    "ControlMailbox",
    "MotionSimulator",
    "MeasurementSimulator",
    "DispatcherState",
    "EventDispatcher",
    "TickKind",
    "TimerEvent",
    "classify_event",
    "RangeSimulatorEngine",
    "TickResult",
]
