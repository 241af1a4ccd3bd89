"""
Discrete-time model construction for the platform simulator.

Maps a continuity level (number of tracked derivative orders above position)
and an update period to the linear structures used by the simulators:

    x_{k+1} = A x_k + B u_k + w_k        (state propagation)
    z_k     = H x_k + v_k                (range measurement)

State layout is order-major over the three planar degrees of freedom
(x, y, heading), the same convention as ConstantAcceleration2D in the
motion models:

    level 0: [x, y, θ]
    level 1: [x, y, θ, ẋ, ẏ, θ̇]
    level 2: [x, y, θ, ẋ, ẏ, θ̇, ẍ, ÿ, θ̈]

so that state index = order * 3 + dof.

F is a polynomial (Taylor series) integrator of order `level`: the (i, j)
3x3 sub-block is period^(j-i) / (j-i)! * I3 for j >= i and zero otherwise.

Control u = [v, ω] is a velocity command. At level 0 there is no velocity
state, so B integrates the command into position (x += v T, θ += ω T).
From level 1 up the command sets the first-derivative rows it drives
(ẋ = v, θ̇ = ω) and never touches position directly: A is F with those rows
cleared, so position advances by T times the velocity state of the previous
tick.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from rangesim.errors import ConfigurationError


PLANAR_DOF = 3
"""Planar degrees of freedom tracked per derivative order: x, y, heading."""

DOF_X, DOF_Y, DOF_HEADING = 0, 1, 2

MAX_CONTINUITY_LEVEL = 4
"""Highest supported continuity level (position up to 4th derivative)."""

CONTROL_DIM = 2
"""Control channels: linear velocity, angular velocity."""

COUPLINGS = ("linear", "unicycle")


def factorial(k: int) -> int:
    """
    Factorial of a non-negative integer.

    Args:
        k: Non-negative integer.

    Returns:
        k! (1 for k = 0).

    Raises:
        ValueError: If k is negative.

    Example:
        >>> factorial(4)
        24
    """
    if k < 0:
        raise ValueError(f"factorial is undefined for negative k, got {k}")
    result = 1
    for i in range(2, k + 1):
        result *= i
    return result


def state_dimension(level: int) -> int:
    """
    State dimension for a continuity level: 3 * (level + 1).

    Args:
        level: Continuity level (0 = position only, 1 = + velocity, ...).

    Returns:
        Length of the state vector.

    Raises:
        ConfigurationError: If the level has no defined mapping.
    """
    if isinstance(level, bool) or not isinstance(level, (int, np.integer)):
        raise ConfigurationError(
            f"continuity level must be an integer, got {type(level).__name__}"
        )
    if level < 0 or level > MAX_CONTINUITY_LEVEL:
        raise ConfigurationError(
            f"continuity level must be in [0, {MAX_CONTINUITY_LEVEL}], got {level}"
        )
    return PLANAR_DOF * (int(level) + 1)


def taylor_block(level: int, period: float) -> np.ndarray:
    """
    Single-DOF polynomial integrator of order `level`.

    Entry (i, j) holds period^(j-i) / (j-i)! for j >= i, zero below the
    diagonal. For level 2 and period T:

        [[1, T, T²/2],
         [0, 1, T   ],
         [0, 0, 1   ]]

    Args:
        level: Continuity level.
        period: Update period in seconds.

    Returns:
        (level+1) x (level+1) upper-triangular matrix.
    """
    n_orders = state_dimension(level) // PLANAR_DOF
    block = np.zeros((n_orders, n_orders))
    for i in range(n_orders):
        for j in range(i, n_orders):
            block[i, j] = period ** (j - i) / factorial(j - i)
    return block


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class TransitionStructure:
    """
    State transition and input coupling for one configured model.

    Attributes:
        level: Continuity level the structure was built for.
        period: Update period in seconds.
        F: Taylor integrator (n x n), read-only.
        A: Transition applied under control (n x n), read-only. Equal to F
           with the commanded rows zeroed; equal to F at level 0.
        B: Input coupling matrix (n x 2), read-only. At level 0 linear
           velocity drives the x row and angular velocity the heading row
           with gain `period`; from level 1 up they drive the ẋ and θ̇ rows
           with unit gain.
        coupling: 'linear' (B is constant) or 'unicycle' (linear velocity is
                  resolved along the current heading, see input_matrix).
    """

    level: int
    period: float
    F: np.ndarray
    A: np.ndarray
    B: np.ndarray
    coupling: str = "linear"

    @property
    def state_dim(self) -> int:
        return self.F.shape[0]

    @property
    def control_order(self) -> int:
        """Derivative order whose rows receive the control (0 or 1)."""
        return min(self.level, 1)

    def input_matrix(self, heading: float = 0.0) -> np.ndarray:
        """
        Input coupling to apply for the current heading.

        For linear coupling this is B. For unicycle coupling the linear
        velocity is projected on (cos θ, sin θ) so that the platform moves
        along its heading. At level 0:

            x += v T cos θ,   y += v T sin θ,   θ += ω T

        and from level 1 up:

            ẋ = v cos θ,   ẏ = v sin θ,   θ̇ = ω

        Args:
            heading: Current heading in radians (ignored for linear coupling).

        Returns:
            n x 2 input matrix.
        """
        if self.coupling == "linear":
            return self.B
        gain = self.period if self.control_order == 0 else 1.0
        row = self.control_order * PLANAR_DOF
        G = np.array(self.B)
        G[row + DOF_X, 0] = gain * np.cos(heading)
        G[row + DOF_Y, 0] = gain * np.sin(heading)
        return G


@dataclass(frozen=True)
class MeasurementStructure:
    """
    Projection from state to measurement space.

    Attributes:
        H: Measurement matrix (m x n), read-only. Row r selects position-order
           coordinate r, so m = 1 observes the distance along x.
    """

    H: np.ndarray

    @property
    def meas_dim(self) -> int:
        return self.H.shape[0]

    @property
    def state_dim(self) -> int:
        return self.H.shape[1]


def build_model(
    level: int,
    period: float,
    pos_state_dimension: Optional[int] = None,
    meas_dimension: Optional[int] = None,
    coupling: str = "linear",
) -> Tuple[TransitionStructure, MeasurementStructure]:
    """
    Build the transition and measurement structures for a continuity level.

    Pure and deterministic: the same arguments always give equal matrices,
    and nothing is built when validation fails.

    Args:
        level: Continuity level (0..MAX_CONTINUITY_LEVEL).
        period: Update period in seconds (> 0).
        pos_state_dimension: Declared position-level state dimension. When
                             given it must equal the planar DOF count (3).
        meas_dimension: Number of observed position coordinates (1..3).
                        Defaults to 1 (distance along x).
        coupling: 'linear' or 'unicycle'.

    Returns:
        Tuple of (TransitionStructure, MeasurementStructure).

    Raises:
        ConfigurationError: If the level is unsupported, the period is not
            positive and finite, a declared dimension disagrees with the one
            computed from the level, or the coupling is unknown.

    Example:
        >>> transition, meas = build_model(level=1, period=0.1)
        >>> transition.F.shape, meas.H.shape
        ((6, 6), (1, 6))
    """
    n = state_dimension(level)

    if isinstance(period, bool) or not isinstance(period, (int, float, np.floating)):
        raise ConfigurationError(f"update period must be numeric, got {type(period).__name__}")
    if not np.isfinite(period) or period <= 0:
        raise ConfigurationError(f"update period must be positive and finite, got {period}")
    if period > 10.0:
        warnings.warn(
            f"update period of {period}s is unusually large. "
            "Check units (should be seconds).",
            RuntimeWarning,
        )

    if pos_state_dimension is not None and pos_state_dimension != PLANAR_DOF:
        raise ConfigurationError(
            f"pos_state_dimension must be {PLANAR_DOF} (x, y, heading), "
            f"got {pos_state_dimension}"
        )

    m = 1 if meas_dimension is None else meas_dimension
    if isinstance(m, bool) or not isinstance(m, (int, np.integer)) or not 1 <= m <= PLANAR_DOF:
        raise ConfigurationError(
            f"meas_dimension must be an integer in [1, {PLANAR_DOF}], got {meas_dimension}"
        )

    if coupling not in COUPLINGS:
        raise ConfigurationError(f"coupling must be one of {COUPLINGS}, got {coupling!r}")

    F = np.kron(taylor_block(level, period), np.eye(PLANAR_DOF))

    B = np.zeros((n, CONTROL_DIM))
    A = F.copy()
    if level == 0:
        B[DOF_X, 0] = period
        B[DOF_HEADING, 1] = period
    else:
        commanded = [PLANAR_DOF + DOF_X, PLANAR_DOF + DOF_HEADING]
        if coupling == "unicycle":
            commanded.append(PLANAR_DOF + DOF_Y)
        B[PLANAR_DOF + DOF_X, 0] = 1.0
        B[PLANAR_DOF + DOF_HEADING, 1] = 1.0
        A[commanded, :] = 0.0

    H = np.zeros((m, n))
    H[np.arange(m), np.arange(m)] = 1.0

    transition = TransitionStructure(
        level=int(level),
        period=float(period),
        F=_readonly(F),
        A=_readonly(A),
        B=_readonly(B),
        coupling=coupling,
    )
    return transition, MeasurementStructure(H=_readonly(H))
