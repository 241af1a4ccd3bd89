"""Configuration surface of the range simulator engine."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Hashable, Optional, Sequence, Union

import numpy as np

from rangesim.errors import ConfigurationError
from rangesim.models.model_builder import COUPLINGS, state_dimension

NoiseParam = Union[float, Sequence[float], Sequence[Sequence[float]], np.ndarray]

_ARRAY_OPTIONS = (
    "process_noise_mean",
    "process_noise_covariance",
    "measurement_noise_mean",
    "measurement_noise_covariance",
    "initial_state",
)


@dataclass(frozen=True)
class SimulatorConfig:
    """
    Options supplied once before the engine becomes active.

    Noise parameters accept either a scalar or an explicit array. A scalar
    mean m becomes m * ones(d) and a scalar covariance s becomes s * eye(d),
    where d is the state dimension for process noise and the measurement
    dimension for measurement noise.

    Attributes:
        continuity_level: Tracked derivative orders above position.
        update_period: Seconds between logical state ticks.
        process_noise_mean: Process noise mean, scalar or (n,).
        process_noise_covariance: Process noise covariance, scalar or (n, n).
        measurement_noise_mean: Measurement noise mean, scalar or (m,).
        measurement_noise_covariance: Measurement noise covariance, scalar or (m, m).
        state_timer_id: Timer id that triggers a state tick.
        meas_timer_id: Timer id that triggers a measurement tick.
        initial_state: Seed state (n,). Zeros if None.
        pos_state_dimension: Declared position-level dimension (must be 3 if set).
        meas_dimension: Number of observed position coordinates (1..3).
        coupling: Input coupling, 'linear' or 'unicycle'.
        seed: Seed for deterministic noise. None draws from OS entropy.

    Example:
        >>> config = SimulatorConfig(continuity_level=1, update_period=0.05, seed=7)
        >>> config.state_dim
        6
    """

    continuity_level: int = 0
    update_period: float = 0.1
    process_noise_mean: NoiseParam = 0.0
    process_noise_covariance: NoiseParam = 0.0
    measurement_noise_mean: NoiseParam = 0.0
    measurement_noise_covariance: NoiseParam = 0.01
    state_timer_id: Hashable = 0
    meas_timer_id: Hashable = 1
    initial_state: Optional[Sequence[float]] = None
    pos_state_dimension: Optional[int] = None
    meas_dimension: int = 1
    coupling: str = "linear"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate the options that do not need the built model."""
        n = state_dimension(self.continuity_level)

        if isinstance(self.update_period, bool) or not isinstance(self.update_period, (float, int)):
            raise ConfigurationError(
                f"update_period must be numeric, got {type(self.update_period).__name__}"
            )
        if not np.isfinite(self.update_period) or self.update_period <= 0:
            raise ConfigurationError(f"update_period must be positive, got {self.update_period}")

        if self.state_timer_id == self.meas_timer_id:
            raise ConfigurationError(
                f"state_timer_id and meas_timer_id must differ, both are {self.state_timer_id!r}"
            )

        if self.coupling not in COUPLINGS:
            raise ConfigurationError(f"coupling must be one of {COUPLINGS}, got {self.coupling!r}")

        if self.initial_state is not None:
            x0 = np.asarray(self.initial_state, dtype=float)
            if x0.shape != (n,):
                raise ConfigurationError(
                    f"initial_state must have shape ({n},) for continuity level "
                    f"{self.continuity_level}, got {x0.shape}"
                )

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0):
            raise ConfigurationError(f"seed must be a non-negative integer, got {self.seed!r}")

    @property
    def state_dim(self) -> int:
        return state_dimension(self.continuity_level)

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "SimulatorConfig":
        """
        Build a configuration from a plain mapping (e.g. parsed JSON).

        Raises:
            ConfigurationError: If the mapping has unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"unknown configuration options: {', '.join(unknown)}")
        return cls(**options)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SimulatorConfig":
        """Load a configuration from a JSON file."""
        with open(path, "r") as f:
            options = json.load(f)
        if not isinstance(options, dict):
            raise ConfigurationError(f"{path}: configuration must be a JSON object")
        return cls.from_dict(options)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable mapping of all options."""
        out = asdict(self)
        for key in _ARRAY_OPTIONS:
            if out[key] is not None:
                out[key] = np.asarray(out[key], dtype=float).tolist()
        return out
