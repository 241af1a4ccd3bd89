"""Ground-truth motion and range sensor simulator for exercising state estimators.

This package contains:
- models: Transition and measurement structures built from a continuity level
- sim: Noise sampling, state/measurement simulators and the tick engine
- config: Configuration surface of the engine
- errors: ConfigurationError and DimensionMismatchError
"""

from rangesim.config import SimulatorConfig
from rangesim.errors import ConfigurationError, DimensionMismatchError, RangeSimError
from rangesim.sim.engine import RangeSimulatorEngine, TickResult
from rangesim.sim.events import TickKind, TimerEvent

__version__ = "0.1.0"

__all__ = [
    "SimulatorConfig",
    "ConfigurationError",
    "DimensionMismatchError",
    "RangeSimError",
    "RangeSimulatorEngine",
    "TickResult",
    "TickKind",
    "TimerEvent",
]
