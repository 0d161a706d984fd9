"""
Pytest configuration and shared fixtures

This file contains fixtures that are available to all test files.
"""

import numpy as np
import pandas as pd
import pytest

from recommend.data_io import build_dataset

# ---------------------------------------------------
# CSV fixtures
# ---------------------------------------------------

TRAIN_CSV = """movie_id,customer_id,rating,date
1,7,5,2005-01-01
2,3,3,2005-01-02
3,3,4,2005-01-03
1,9,2,2005-01-04
3,7,1,2005-01-05
"""

MOVIES_CSV = """movie_id,year,title
1,2003,Dinosaur Planet
2,2004,Isle of Man TT 2004 Review
3,1997,Character
"""

TEST_CSV = """movie_id,customer_id,rating,date
2,7,,2005-09-01
1,5,,2005-09-02
3,3,,2005-09-03
"""


@pytest.fixture
def data_dir(tmp_path):
    """Folder holding a tiny train.csv, movie_titles.csv and test.csv."""
    folder = tmp_path / "data"
    folder.mkdir()
    (folder / "train.csv").write_text(TRAIN_CSV)
    (folder / "movie_titles.csv").write_text(MOVIES_CSV)
    (folder / "test.csv").write_text(TEST_CSV)
    return folder


# ---------------------------------------------------
# DataFrame fixtures
# ---------------------------------------------------

@pytest.fixture
def tiny_train_df():
    """
    Tiny training transactions (raw customers 7, 3, 3, 9 / 0-based items)
    """
    return pd.DataFrame({
        'item_id': [0, 1, 2, 0],
        'customer_id': [7, 3, 3, 9],
        'rating': [5, 3, 4, 2],
        'date': ['2005-01-01', '2005-01-02', '2005-01-03', '2005-01-04'],
    })


@pytest.fixture
def tiny_movies_df():
    return pd.DataFrame({
        'item_id': [0, 1, 2],
        'year': [2003, 2004, 1997],
        'title': ['Dinosaur Planet', 'Isle of Man TT 2004 Review', 'Character'],
    })


@pytest.fixture
def tiny_test_df():
    """Test transactions; customer 5 never shows up in training."""
    return pd.DataFrame({
        'item_id': [1, 0],
        'customer_id': [7, 5],
        'rating': [0, 0],
        'date': ['2005-09-01', '2005-09-02'],
    })


@pytest.fixture
def tiny_dataset(tiny_train_df, tiny_movies_df, tiny_test_df):
    """Dataset without a cross-validation hold-out."""
    return build_dataset(tiny_train_df, tiny_movies_df, tiny_test_df, cross_valid_fraction=0.0)


# ---------------------------------------------------
# Matrix fixtures
# ---------------------------------------------------

@pytest.fixture
def example_matrix():
    """
    3 rows x 6 columns; columns 3 and 5 are never rated.

    Column averages over observed entries: [1.5, 5/3, 3, 0, 2, 0]
    """
    columns = [[1, 0, 2], [2, 1, 2], [0, 2, 4], [0, 0, 0], [1, 3, 2], [0, 0, 0]]
    return np.array(columns, dtype=np.float64).T


@pytest.fixture
def random_sparse_matrix():
    """40 customers x 12 items, about 30% rated, two items never rated."""
    rng = np.random.default_rng(seed=42)
    ratings = rng.integers(1, 6, size=(40, 12)).astype(np.float64)
    mask = rng.random((40, 12)) < 0.3
    matrix = np.where(mask, ratings, 0.0)
    matrix[:, 4] = 0.0
    matrix[:, 9] = 0.0
    return matrix


# ---------------------------------------------------
# Utility fixture: temporary directory
# ---------------------------------------------------

@pytest.fixture
def tmp_output_dir(tmp_path):
    """
    Create a temporary output directory for tests that write files.
    Automatically cleaned up after test.
    """
    out_dir = tmp_path / "outputs"
    out_dir.mkdir()
    return out_dir
