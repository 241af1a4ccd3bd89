"""
Range measurement generation from the ground-truth state.

    z_k = H x_k + v_k,    v_k ~ N(μ_v, Σ_v)

With the default single-row H the measurement is the distance along x, the
quantity a wall-facing range sensor reports.
"""

from typing import Optional, Union

import numpy as np

from rangesim.errors import ConfigurationError, DimensionMismatchError
from rangesim.models.model_builder import MeasurementStructure
from rangesim.sim.noise import GaussianNoiseSampler


class MeasurementSimulator:
    """Projects the state through H and adds measurement noise."""

    def __init__(
        self,
        measurement_structure: MeasurementStructure,
        measurement_noise: GaussianNoiseSampler,
    ):
        if measurement_noise.dim != measurement_structure.meas_dim:
            raise ConfigurationError(
                f"measurement noise dimension {measurement_noise.dim} must match "
                f"measurement dimension {measurement_structure.meas_dim}"
            )
        self.measurement_structure = measurement_structure
        self.measurement_noise = measurement_noise
        self.last_measurement: Optional[Union[float, np.ndarray]] = None

    def simulate_meas(self, state: np.ndarray) -> Union[float, np.ndarray]:
        """
        Simulate one noisy measurement of the given state.

        The state is only read.

        Args:
            state: Ground-truth state (n,).

        Returns:
            Measurement as float when the measurement dimension is 1,
            otherwise an (m,) array.

        Raises:
            DimensionMismatchError: If the state does not have shape (n,).
        """
        H = self.measurement_structure.H
        x = np.asarray(state, dtype=float)
        if x.shape != (H.shape[1],):
            raise DimensionMismatchError(
                f"state must have shape ({H.shape[1]},), got {x.shape}"
            )

        v = self.measurement_noise.sample()
        z = H @ x + v

        if z.shape == (1,):
            z = float(z[0])
        self.last_measurement = z
        return z
