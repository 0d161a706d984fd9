"""
Similarity Module

Pearson-cosine similarity between the columns (or rows) of a partially
observed rating matrix.

A zero entry means "not rated". Each column is centered by the mean of its
observed entries only, and unobserved entries take no part in dot products or
norms. The observed rows of every column are kept once, as sorted index runs
of a CSC matrix, and reused for every pair:

    S[i, j] = sum_{r in obs(i) & obs(j)} x'[r, i] * x'[r, j] / (|x'_i| * |x'_j|)

S is symmetric with a zero diagonal. Pairs touching an all-missing column, or a
column whose centered norm is 0, get similarity 0.
"""

import logging
import time
from typing import Tuple

import numpy as np
from scipy import sparse

logger = logging.getLogger(__name__)


class ObservedColumns:
    """
    Centered observed entries of every column of a rating matrix.

    Column j's observed row indices are `indices[indptr[j]:indptr[j + 1]]`
    (sorted ascending), and the matching centered values sit at the same
    positions of `data`.

    Attributes:
        n_rows: Number of observations per column
        n_columns: Number of entities being compared (K)
        averages: Observed-only mean per column (0 for an all-missing column)
        norms: Euclidean norm of the centered observed entries per column
    """

    def __init__(self, matrix):
        X = np.asarray(matrix, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2-D matrix, got shape {X.shape}")
        if not np.isfinite(X).all():
            raise ValueError("Rating matrix contains NaN or infinite entries")

        self.n_rows, self.n_columns = X.shape

        centered = sparse.csc_matrix(X)
        centered.sort_indices()
        counts = np.diff(centered.indptr)

        sums = np.asarray(centered.sum(axis=0), dtype=np.float64).ravel()
        self.averages = np.zeros(self.n_columns, dtype=np.float64)
        np.divide(sums, counts, out=self.averages, where=counts > 0)

        # Stored entries stay stored even when centering makes them 0
        centered.data = centered.data - np.repeat(self.averages, counts)
        self._centered = centered

        squares = np.bincount(
            np.repeat(np.arange(self.n_columns), counts),
            weights=centered.data ** 2,
            minlength=self.n_columns,
        )
        self.norms = np.sqrt(squares)

    @property
    def indptr(self) -> np.ndarray:
        return self._centered.indptr

    @property
    def indices(self) -> np.ndarray:
        return self._centered.indices

    @property
    def data(self) -> np.ndarray:
        return self._centered.data

    def observed(self, j: int) -> np.ndarray:
        """Sorted row indices where column j is rated."""
        return self.indices[self.indptr[j]:self.indptr[j + 1]]

    def centered_values(self, j: int) -> np.ndarray:
        """Centered values of column j, aligned with observed(j)."""
        return self.data[self.indptr[j]:self.indptr[j + 1]]

    def is_degenerate(self, j: int) -> bool:
        return self.averages[j] == 0 or self.norms[j] == 0

    @property
    def n_degenerate(self) -> int:
        """Columns that are all missing or have zero centered norm."""
        return int(np.count_nonzero((self.averages == 0) | (self.norms == 0)))

    def pair(self, i: int, j: int) -> float:
        """
        Similarity of columns i and j from a merge of their observed sets.

        Returns 0 for i == j and for degenerate columns.
        """
        if i == j or self.is_degenerate(i) or self.is_degenerate(j):
            return 0.0

        _, pos_i, pos_j = np.intersect1d(
            self.observed(i), self.observed(j), assume_unique=True, return_indices=True
        )
        dot = float(np.dot(self.centered_values(i)[pos_i], self.centered_values(j)[pos_j]))
        return float(np.clip(dot / (self.norms[i] * self.norms[j]), -1.0, 1.0))

    def similarity_matrix(self) -> np.ndarray:
        """
        Full K x K similarity matrix.

        The sparse product C^T C sums exactly over the common observed rows of
        every pair. Only the upper triangle is kept and then mirrored, so the
        result is exactly symmetric with a zero diagonal.
        """
        k = self.n_columns
        gram = (self._centered.T @ self._centered).toarray()

        valid = (self.averages != 0) & (self.norms != 0)
        denom = np.outer(self.norms, self.norms)
        similarity = np.zeros((k, k), dtype=np.float64)
        np.divide(gram, denom, out=similarity, where=np.outer(valid, valid))

        similarity = np.triu(similarity, k=1)
        similarity = similarity + similarity.T
        np.clip(similarity, -1.0, 1.0, out=similarity)
        return similarity


def _oriented(matrix, by: str) -> np.ndarray:
    X = np.asarray(matrix, dtype=np.float64)
    if by == "columns":
        return X
    if by == "rows":
        return X.T
    raise ValueError(f"Invalid by: {by}. Must be 'columns' or 'rows'")


def observed_averages(matrix, by: str = "columns") -> np.ndarray:
    """
    Mean of the nonzero entries of every column (or row); 0 where none are rated.

    Example:
        >>> observed_averages([[1, 0], [3, 0]])
        array([2., 0.])
    """
    return ObservedColumns(_oriented(matrix, by)).averages


def pearson_cosine_similarity(matrix, by: str = "columns") -> np.ndarray:
    """
    Pearson-cosine similarity between the columns (or rows) of a rating matrix.

    Args:
        matrix: 2-D array, 0 marks a missing rating
        by: "columns" to compare columns (items of a customer x item matrix),
            "rows" to compare rows (customers)

    Returns:
        Symmetric (K, K) float64 array with zero diagonal and entries in [-1, 1]

    Example:
        >>> S = pearson_cosine_similarity(R)            # item x item
        >>> S_cust = pearson_cosine_similarity(R, by="rows")  # customer x customer
    """
    start = time.time()
    columns = ObservedColumns(_oriented(matrix, by))
    similarity = columns.similarity_matrix()

    logger.debug(f"Similarity over {by}: {similarity.shape}, "
                 f"{columns.n_degenerate} degenerate, {time.time() - start:.3f}s")
    return similarity


def similarity_with_observed(matrix, by: str = "columns") -> Tuple[np.ndarray, ObservedColumns]:
    """Like pearson_cosine_similarity, but also returns the observed-column arena."""
    columns = ObservedColumns(_oriented(matrix, by))
    return columns.similarity_matrix(), columns
