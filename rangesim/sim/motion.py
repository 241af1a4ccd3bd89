"""
Ground-truth propagation for the simulated platform.

Implements one state tick of the linear stochastic model

    x_{k+1} = A x_k + B u_k + w_k,    w_k ~ N(μ_w, Σ_w)

where u_k = [linear velocity, angular velocity] is the latest control sample.
The MotionSimulator is the only writer of the ground-truth state.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from rangesim.errors import ConfigurationError, DimensionMismatchError
from rangesim.models.model_builder import CONTROL_DIM, DOF_HEADING, TransitionStructure
from rangesim.sim.noise import GaussianNoiseSampler

logger = logging.getLogger(__name__)


class ControlMailbox:
    """
    Single-slot, last-value-wins holder for the control input.

    A writer replaces the whole (linear, angular) tuple in one assignment, so
    a reader never sees half of an update. Until the first write the control
    reads as zero.

    Example:
        >>> mailbox = ControlMailbox()
        >>> mailbox.read()
        array([0., 0.])
        >>> mailbox.write(1.0, 0.2)
        >>> mailbox.read()
        array([1. , 0.2])
    """

    def __init__(self):
        self._sample: Optional[Tuple[float, float]] = None

    def write(self, linear: float, angular: float) -> None:
        """
        Overwrite the control sample.

        Args:
            linear: Linear velocity command (m/s).
            angular: Angular velocity command (rad/s).
        """
        self._sample = (float(linear), float(angular))

    def read(self) -> np.ndarray:
        """Latest control as [linear, angular]; zeros if nothing was written."""
        sample = self._sample
        if sample is None:
            return np.zeros(CONTROL_DIM)
        return np.array(sample)


class MotionSimulator:
    """
    Advances the ground-truth state by one period.

    Attributes:
        transition: TransitionStructure holding A and B.
        process_noise: Sampler for w_k, dimension must equal the state dimension.
    """

    def __init__(
        self,
        transition: TransitionStructure,
        process_noise: GaussianNoiseSampler,
        initial_state: Optional[np.ndarray] = None,
    ):
        """
        Initialize the motion simulator.

        Args:
            transition: Built transition structure.
            process_noise: Process noise sampler (dimension n).
            initial_state: Seed state (n,). Zeros if None.

        Raises:
            ConfigurationError: If the noise or initial state dimension does
                not match the transition structure.
        """
        self.transition = transition
        n = transition.state_dim

        if process_noise.dim != n:
            raise ConfigurationError(
                f"process noise dimension {process_noise.dim} must match state dimension {n}"
            )
        self.process_noise = process_noise

        self._state = np.zeros(n)
        if initial_state is not None:
            x0 = np.asarray(initial_state, dtype=float)
            if x0.shape != (n,):
                raise ConfigurationError(
                    f"initial state must have shape ({n},), got {x0.shape}"
                )
            self._state = x0.copy()

    @property
    def state(self) -> np.ndarray:
        """Copy of the current ground-truth state."""
        return self._state.copy()

    def reset(self, state: np.ndarray) -> None:
        """
        Replace the ground-truth state with a seed value.

        Args:
            state: New state (n,).

        Raises:
            DimensionMismatchError: If the shape is not (n,).
        """
        state = np.asarray(state, dtype=float)
        if state.shape != self._state.shape:
            raise DimensionMismatchError(
                f"state must have shape {self._state.shape}, got {state.shape}"
            )
        self._state = state.copy()

    def simulate_state(self, control: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Propagate the state by one tick.

        The new state is computed completely before it replaces the old one,
        so a failure leaves the previous state intact.

        Args:
            control: Control [linear, angular]. None is treated as zero.

        Returns:
            Copy of the new state x_{k+1}.

        Raises:
            DimensionMismatchError: If the control does not have shape (2,) or
                the noise sample does not match the state dimension.
        """
        x = self._state
        if control is None:
            u = np.zeros(CONTROL_DIM)
        else:
            u = np.asarray(control, dtype=float)
            if u.shape != (CONTROL_DIM,):
                raise DimensionMismatchError(
                    f"control must have shape ({CONTROL_DIM},), got {u.shape}"
                )

        w = self.process_noise.sample()
        if w.shape != x.shape:
            raise DimensionMismatchError(
                f"process noise sample shape {w.shape} does not match state shape {x.shape}"
            )

        B = self.transition.input_matrix(heading=x[DOF_HEADING])
        x_next = self.transition.A @ x + B @ u + w

        self._state = x_next
        return x_next.copy()
