"""
Tests for recommend.feature_engineering
---------------------------------------
Covers:
- build_rating_matrix() shape and placement
- Last-write-wins on repeated (customer, item) pairs
- Idempotence
- observed_fraction()
"""

import numpy as np
import pandas as pd

from recommend.feature_engineering import build_rating_matrix, observed_fraction


def _transactions(rows):
    return pd.DataFrame(rows, columns=['item_id', 'customer_id', 'rating', 'date'])


class TestBuildRatingMatrix:

    def test_shape_and_values(self):
        df = _transactions([(0, 0, 5, 'd'), (2, 1, 3, 'd'), (1, 2, 1, 'd')])
        R = build_rating_matrix(df, n_customers=3, n_items=4)

        expected = np.zeros((3, 4))
        expected[0, 0] = 5
        expected[1, 2] = 3
        expected[2, 1] = 1
        assert R.dtype == np.float64
        np.testing.assert_array_equal(R, expected)

    def test_last_write_wins(self):
        """Two ratings for the same pair: the later one in input order stays."""
        df = _transactions([(1, 0, 2, 'a'), (0, 1, 4, 'b'), (1, 0, 5, 'c')])
        R = build_rating_matrix(df, n_customers=2, n_items=2)
        assert R[0, 1] == 5
        assert R[1, 0] == 4

    def test_idempotent(self, tiny_dataset):
        first = build_rating_matrix(tiny_dataset.train, 4, 3)
        second = build_rating_matrix(tiny_dataset.train, 4, 3)
        np.testing.assert_array_equal(first, second)

    def test_empty_transactions(self):
        R = build_rating_matrix(_transactions([]), n_customers=2, n_items=3)
        assert R.shape == (2, 3)
        assert not R.any()

    def test_customer_without_ratings_is_zero_row(self, tiny_dataset):
        """The test-only customer gets an all-missing row."""
        R = build_rating_matrix(tiny_dataset.train, 4, 3)
        assert not R[3].any()


class TestObservedFraction:

    def test_fraction(self):
        assert observed_fraction(np.array([[1.0, 0.0], [0.0, 0.0]])) == 0.25

    def test_empty_matrix(self):
        assert observed_fraction(np.zeros((0, 3))) == 0.0
