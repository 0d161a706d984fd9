"""
Feature Engineering Module

Handles creation of the dense customer x item rating matrix used by the models.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def build_rating_matrix(transactions_df: pd.DataFrame,
                        n_customers: int,
                        n_items: int) -> np.ndarray:
    """
    Build the dense rating matrix R where R[c, i] is the rating of item i by customer c.

    Cells without a transaction stay 0, which means "missing", not "rated 0".
    If the same (customer, item) pair occurs twice, the later row wins.

    Args:
        transactions_df: DataFrame with columns: customer_id (virtual), item_id (0-based), rating
        n_customers: Number of virtual customers (rows)
        n_items: Number of items (columns)

    Returns:
        numpy float64 array of shape (n_customers, n_items)

    Example:
        >>> R = build_rating_matrix(dataset.train, 480189, 17770)
        >>> R.shape
        (480189, 17770)
    """
    matrix = np.zeros((n_customers, n_items), dtype=np.float64)
    if len(transactions_df) == 0:
        return matrix

    # numpy gives no ordering guarantee for repeated indices in one assignment
    latest = transactions_df.drop_duplicates(subset=['customer_id', 'item_id'], keep='last')
    rows = latest['customer_id'].to_numpy(dtype=np.int64)
    cols = latest['item_id'].to_numpy(dtype=np.int64)
    matrix[rows, cols] = latest['rating'].to_numpy(dtype=np.float64)

    n_collisions = len(transactions_df) - len(latest)
    if n_collisions:
        logger.debug(f"{n_collisions} repeated (customer, item) pairs, kept the latest rating")
    return matrix


def observed_fraction(matrix: np.ndarray) -> float:
    """Share of cells holding a rating."""
    if matrix.size == 0:
        return 0.0
    return float(np.count_nonzero(matrix)) / matrix.size
