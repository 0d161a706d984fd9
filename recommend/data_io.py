"""
Data I/O Module

Handles loading the rating dataset from CSV files:
- Training transactions (train.csv)
- Movie titles (movie_titles.csv)
- Test transactions (test.csv, rating left blank or 0)

Item ids are 1-based on disk and shifted to 0-based here. Customer ids are
remapped to virtual ids by the densifier before anything else sees them.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from . import config
from .densify import IdentityMap
from .errors import DataLoadError, UnseenCustomer

logger = logging.getLogger(__name__)

Rating = int


@dataclass(frozen=True)
class Transaction:
    """
    A customer's rating of one movie.

    A rating of 0 marks a transaction from the test set.
    """
    item_id: int
    customer_id: int
    rating: Rating
    date: str


@dataclass(frozen=True)
class Movie:
    item_id: int
    year: int
    title: str


@dataclass
class Metadata:
    """Counts and frequency vectors describing a loaded dataset."""
    num_customers: int
    num_movies: int
    num_train: int
    num_cross_valid: int
    trans_freq: np.ndarray
    test_freq: np.ndarray
    anomalies: List[UnseenCustomer] = field(default_factory=list)


@dataclass
class Dataset:
    """
    Holds all transactions, movies and the test set.

    Every `customer_id` in the tables is a virtual id.
    """
    metadata: Metadata
    train: pd.DataFrame
    cross_valid: pd.DataFrame
    movies: pd.DataFrame
    test: pd.DataFrame
    identity_map: IdentityMap

    def get_movie(self, item_id: int) -> Movie:
        row = self.movies.iloc[item_id]
        return Movie(item_id=int(row['item_id']), year=int(row['year']), title=str(row['title']))


def _read_records(path: Union[str, Path], columns: List[str]) -> pd.DataFrame:
    """Read a headed CSV into string columns, checking the column count."""
    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"Data file not found: {path}")

    try:
        df = pd.read_csv(path, header=0, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Cannot parse {path}: {e}") from e

    if df.shape[1] != len(columns):
        raise DataLoadError(
            f"{path} has {df.shape[1]} columns, expected {len(columns)} ({', '.join(columns)})"
        )
    df.columns = columns
    return df


def _parse_id(df: pd.DataFrame, column: str, path: Path) -> pd.Series:
    """Parse a required non-negative integer column; any bad value is fatal."""
    values = df[column].fillna("").str.strip()
    valid = values.str.fullmatch(r"\d+").fillna(False).astype(bool)
    if not valid.all():
        bad_row = int(np.flatnonzero(~valid.to_numpy(dtype=bool))[0])
        # +2: header line and 1-based line numbers
        raise DataLoadError(
            f"{path}: line {bad_row + 2} has an invalid {column}: {df[column].iloc[bad_row]!r}"
        )
    return values.astype(np.int64)


def _parse_optional_int(df: pd.DataFrame, column: str) -> pd.Series:
    """Parse an integer column, falling back to 0 for blank or garbled values."""
    values = df[column].fillna("").str.strip()
    valid = values.str.fullmatch(r"\d+").fillna(False).astype(bool)
    return values.where(valid, "0").astype(np.int64)


def _parse_rating(df: pd.DataFrame, path: Path) -> pd.Series:
    """Parse the rating column; blank means 0 (test set), anything else must be an integer."""
    values = df['rating'].fillna("").str.strip()
    blank = values == ""
    valid = (values.str.fullmatch(r"\d+").fillna(False) | blank).astype(bool)
    if not valid.all():
        bad_row = int(np.flatnonzero(~valid.to_numpy(dtype=bool))[0])
        raise DataLoadError(
            f"{path}: line {bad_row + 2} has an invalid rating: {df['rating'].iloc[bad_row]!r}"
        )
    return values.where(~blank, "0").astype(np.int64)


def _shift_item_ids(item_ids: pd.Series, path: Path) -> pd.Series:
    # movie ids start counting from 1
    if (item_ids < 1).any():
        raise DataLoadError(f"{path}: item ids must start from 1")
    return item_ids - 1


def load_transactions(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load transactions from a CSV file.

    Args:
        path: CSV with a header and columns (item id, customer id, rating, date)

    Returns:
        DataFrame with columns: item_id (0-based), customer_id (raw), rating, date

    Raises:
        DataLoadError: If the file is missing or a record is malformed
    """
    path = Path(path)
    logger.info(f"Loading csv from {path}")
    start = time.time()

    raw = _read_records(path, config.TRANSACTION_COLUMNS)
    df = pd.DataFrame({
        'item_id': _shift_item_ids(_parse_id(raw, 'item_id', path), path),
        'customer_id': _parse_id(raw, 'customer_id', path),
        'rating': _parse_rating(raw, path),
        'date': raw['date'].fillna("").astype(str),
    })

    max_rating = config.DATASET_CONFIG['max_rating']
    out_of_range = (df['rating'] < 0) | (df['rating'] > max_rating)
    if out_of_range.any():
        bad_row = int(np.flatnonzero(out_of_range.to_numpy())[0])
        raise DataLoadError(
            f"{path}: line {bad_row + 2} has rating {df['rating'].iloc[bad_row]} "
            f"outside [0, {max_rating}]"
        )

    logger.info(f"Elapsed {time.time() - start:.3f}s ({len(df)} transactions)")
    return df


def load_movies(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load movie metadata from a CSV file.

    Args:
        path: CSV with a header and columns (item id, year, title)

    Returns:
        DataFrame with columns: item_id (0-based), year (0 when unknown), title

    Raises:
        DataLoadError: If the file is missing or a record is malformed
    """
    path = Path(path)
    logger.info(f"Loading csv from {path}")
    start = time.time()

    raw = _read_records(path, config.MOVIE_COLUMNS)
    df = pd.DataFrame({
        'item_id': _shift_item_ids(_parse_id(raw, 'item_id', path), path),
        'year': _parse_optional_int(raw, 'year'),
        'title': raw['title'].fillna("").astype(str),
    })

    logger.info(f"Elapsed {time.time() - start:.3f}s ({len(df)} movies)")
    return df


def build_dataset(train_df: pd.DataFrame,
                  movies_df: pd.DataFrame,
                  test_df: pd.DataFrame,
                  cross_valid_fraction: float = config.DATASET_CONFIG['cross_valid_fraction']) -> Dataset:
    """
    Densify customer ids and split off the cross-validation tail.

    Args:
        train_df: Training transactions with raw customer ids
        movies_df: Movie metadata
        test_df: Test transactions with raw customer ids
        cross_valid_fraction: Share of training transactions held out (from the end)

    Returns:
        Dataset whose tables use virtual customer ids

    Raises:
        DataLoadError: If a transaction refers to a movie missing from movies_df
    """
    num_movies = len(movies_df)
    for name, df in (('training', train_df), ('test', test_df)):
        if len(df) and int(df['item_id'].max()) >= num_movies:
            raise DataLoadError(
                f"{name} data refers to movie {int(df['item_id'].max()) + 1} "
                f"but only {num_movies} movies are known"
            )

    identity_map = IdentityMap()
    train_df = train_df.copy()
    test_df = test_df.copy()
    train_df['customer_id'] = identity_map.add_training(train_df['customer_id'])
    test_df['customer_id'] = identity_map.add_test(test_df['customer_id'])

    num_cross_valid = int(len(train_df) * cross_valid_fraction)
    num_train = len(train_df) - num_cross_valid

    metadata = Metadata(
        num_customers=identity_map.n_customers,
        num_movies=num_movies,
        num_train=num_train,
        num_cross_valid=num_cross_valid,
        trans_freq=identity_map.trans_freq,
        test_freq=identity_map.test_freq,
        anomalies=list(identity_map.anomalies),
    )

    return Dataset(
        metadata=metadata,
        train=train_df.iloc[:num_train].reset_index(drop=True),
        cross_valid=train_df.iloc[num_train:].reset_index(drop=True),
        movies=movies_df.reset_index(drop=True),
        test=test_df.reset_index(drop=True),
        identity_map=identity_map,
    )


def load_dataset(path: Union[str, Path]) -> Dataset:
    """
    Load the training set, movie titles and test set from a data folder.

    Args:
        path: Folder holding train.csv, movie_titles.csv and test.csv

    Returns:
        Dataset ready for model initialization

    Example:
        >>> dataset = load_dataset("data/")
        >>> dataset.metadata.num_customers
        480189
    """
    path = Path(path)
    logger.info(f"Loading data from: {path}")

    train_df = load_transactions(path / config.TRAINING_DATA)
    movies_df = load_movies(path / config.MOVIE_TITLES)
    test_df = load_transactions(path / config.TEST_DATA)

    return build_dataset(train_df, movies_df, test_df)
