"""
Spectral Analysis Module

Eigendecomposition of a symmetric similarity matrix. The number of eigenvalues
within `zero_tol` of zero is reported as a proxy for the number of
disconnected similarity clusters. No cluster assignment is done here.
"""

import logging
import time
from dataclasses import dataclass

import numpy as np
from scipy import linalg

from . import config
from .errors import DecompositionError

logger = logging.getLogger(__name__)


@dataclass
class SpectralReport:
    """Container for an eigendecomposition and its diagnostics."""
    eigenvalues: np.ndarray  # Shape: (K,), ascending
    eigenvectors: np.ndarray  # Shape: (K, K), column k pairs with eigenvalues[k]
    n_near_zero: int
    zero_tol: float

    @property
    def size(self) -> int:
        return len(self.eigenvalues)

    def summary(self) -> dict:
        if self.size == 0:
            return {'size': 0, 'n_near_zero': 0, 'min_eigenvalue': None, 'max_eigenvalue': None}
        return {
            'size': self.size,
            'n_near_zero': self.n_near_zero,
            'min_eigenvalue': float(self.eigenvalues[0]),
            'max_eigenvalue': float(self.eigenvalues[-1]),
        }


def count_near_zero(eigenvalues: np.ndarray,
                    zero_tol: float = config.SPECTRAL_CONFIG['zero_tol']) -> int:
    """Number of eigenvalues with |lambda| <= zero_tol."""
    return int(np.count_nonzero(np.abs(eigenvalues) <= zero_tol))


def analyze_spectrum(similarity: np.ndarray,
                     zero_tol: float = config.SPECTRAL_CONFIG['zero_tol']) -> SpectralReport:
    """
    Eigendecompose a symmetric similarity matrix.

    Args:
        similarity: Square, exactly symmetric, finite matrix
        zero_tol: Distance from 0 under which an eigenvalue counts as zero

    Returns:
        SpectralReport with eigenvalues, eigenvectors and the near-zero count

    Raises:
        DecompositionError: If the input is not square, symmetric and finite,
            or if the eigensolver does not converge
    """
    S = np.asarray(similarity, dtype=np.float64)
    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise DecompositionError(f"Similarity matrix must be square, got shape {S.shape}")
    if not np.isfinite(S).all():
        raise DecompositionError("Similarity matrix contains NaN or infinite entries")
    if not np.array_equal(S, S.T):
        raise DecompositionError("Similarity matrix is not symmetric")

    if S.size == 0:
        return SpectralReport(np.zeros(0), np.zeros((0, 0)), n_near_zero=0, zero_tol=zero_tol)

    start = time.time()
    try:
        eigenvalues, eigenvectors = linalg.eigh(S)
    except linalg.LinAlgError as e:
        raise DecompositionError(f"Eigendecomposition did not converge: {e}") from e

    n_near_zero = count_near_zero(eigenvalues, zero_tol)
    logger.info(f"Eigendecomposition of {S.shape} took {time.time() - start:.3f}s; "
                f"{n_near_zero} eigenvalues within {zero_tol:g} of zero")

    return SpectralReport(
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        n_near_zero=n_near_zero,
        zero_tol=zero_tol,
    )
