"""
Multivariate Gaussian noise sampling for process and measurement noise.

The covariance is factorized once, when the sampler is built, as
Σ = L Lᵀ and each draw is

    w = μ + L ε,    ε ~ N(0, I)

Cholesky factorization is used for positive definite covariances. Singular
but positive semi-definite covariances (e.g. an all-zero covariance for a
noise-free run) fall back to the symmetric eigendecomposition
L = V diag(sqrt(λ)).

Each sampler owns its numpy Generator, so two samplers built with the same
seed produce bit-identical sequences and independent simulator instances
never share random state.
"""

import logging
from typing import Optional, Union

import numpy as np

from rangesim.errors import ConfigurationError

logger = logging.getLogger(__name__)

PSD_TOLERANCE = 1e-10
"""Smallest negative eigenvalue still accepted as numerical round-off."""


def factorize_covariance(covariance: np.ndarray) -> np.ndarray:
    """
    Square-root factor L of a symmetric positive semi-definite matrix.

    Args:
        covariance: Symmetric PSD matrix (d x d).

    Returns:
        Matrix L (d x d) with L @ L.T == covariance.

    Raises:
        ConfigurationError: If the matrix is not square, not symmetric or
            has an eigenvalue below -PSD_TOLERANCE.
    """
    cov = np.asarray(covariance, dtype=float)
    if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
        raise ConfigurationError(f"covariance must be a square matrix, got shape {cov.shape}")
    if not np.all(np.isfinite(cov)):
        raise ConfigurationError("covariance must contain only finite values")
    if not np.allclose(cov, cov.T):
        raise ConfigurationError("covariance must be symmetric")

    try:
        return np.linalg.cholesky(cov)
    except np.linalg.LinAlgError:
        pass

    # Singular or indefinite: decide with the eigenvalues
    eigvals, eigvecs = np.linalg.eigh(cov)
    if np.any(eigvals < -PSD_TOLERANCE):
        raise ConfigurationError(
            f"covariance must be positive semi-definite, got eigenvalues {eigvals}"
        )
    return eigvecs * np.sqrt(np.clip(eigvals, 0.0, None))


class GaussianNoiseSampler:
    """
    Sampler for additive Gaussian noise N(mean, covariance).

    Attributes:
        mean: Mean vector (d,).
        covariance: Covariance matrix (d x d).
        dim: Noise dimension d.

    Example:
        >>> sampler = GaussianNoiseSampler(np.zeros(3), 0.01 * np.eye(3), seed=42)
        >>> sampler.sample().shape
        (3,)
        >>> sampler.sample(1000).shape
        (1000, 3)
    """

    def __init__(
        self,
        mean: np.ndarray,
        covariance: np.ndarray,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Validate and factorize the noise distribution.

        Args:
            mean: Mean vector (d,).
            covariance: Covariance matrix (d x d), symmetric PSD.
            seed: Seed for a private Generator (deterministic mode).
                  Ignored when rng is given.
            rng: Generator to own instead of creating one. If both seed and
                 rng are None the generator is seeded from OS entropy.

        Raises:
            ConfigurationError: If mean and covariance are inconsistent or
                the covariance cannot be factorized.
        """
        self.mean = np.asarray(mean, dtype=float).copy()
        if self.mean.ndim != 1 or self.mean.size == 0:
            raise ConfigurationError(f"noise mean must be a non-empty 1D vector, got shape {self.mean.shape}")
        if not np.all(np.isfinite(self.mean)):
            raise ConfigurationError("noise mean must contain only finite values")

        self.covariance = np.asarray(covariance, dtype=float).copy()
        if self.covariance.shape != (self.dim, self.dim):
            raise ConfigurationError(
                f"covariance shape {self.covariance.shape} must match "
                f"mean dimension ({self.dim}, {self.dim})"
            )

        self._factor: Optional[np.ndarray] = factorize_covariance(self.covariance)
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    @property
    def dim(self) -> int:
        return self.mean.shape[0]

    @property
    def released(self) -> bool:
        return self._factor is None

    def sample(self, n_samples: Optional[int] = None) -> np.ndarray:
        """
        Draw noise samples.

        Args:
            n_samples: Number of samples. If None a single vector is drawn.

        Returns:
            Sample of shape (d,), or (n_samples, d) when n_samples is given.

        Raises:
            RuntimeError: If the sampler has been released.
        """
        if self._factor is None:
            raise RuntimeError("noise sampler has been released")

        if n_samples is None:
            eps = self._rng.standard_normal(self.dim)
            return self.mean + self._factor @ eps

        eps = self._rng.standard_normal((n_samples, self.dim))
        return self.mean + eps @ self._factor.T

    def release(self) -> None:
        """Drop the covariance factor and the generator; sampling is refused afterwards."""
        self._factor = None
        self._rng = None
        logger.debug("released %d-dimensional noise sampler", self.dim)


def as_noise_parameters(
    mean: Union[float, np.ndarray],
    covariance: Union[float, np.ndarray],
    dim: int,
    name: str = "noise",
):
    """
    Expand scalar noise parameters to a mean vector and covariance matrix.

    A scalar mean becomes mean * ones(dim) and a scalar covariance becomes
    covariance * eye(dim) (isotropic noise). Arrays are passed through after
    a shape check.

    Args:
        mean: Scalar or vector (dim,).
        covariance: Scalar variance or matrix (dim x dim).
        dim: Noise dimension.
        name: Label used in error messages.

    Returns:
        Tuple of (mean_vector, covariance_matrix).

    Raises:
        ConfigurationError: If an array parameter has the wrong shape.
    """
    mean_arr = np.asarray(mean, dtype=float)
    if mean_arr.ndim == 0:
        mean_arr = np.full(dim, float(mean_arr))
    elif mean_arr.shape != (dim,):
        raise ConfigurationError(f"{name} mean must have shape ({dim},), got {mean_arr.shape}")

    cov_arr = np.asarray(covariance, dtype=float)
    if cov_arr.ndim == 0:
        cov_arr = float(cov_arr) * np.eye(dim)
    elif cov_arr.shape != (dim, dim):
        raise ConfigurationError(
            f"{name} covariance must have shape ({dim}, {dim}), got {cov_arr.shape}"
        )

    return mean_arr, cov_arr
