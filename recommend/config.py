"""
Configuration file for the Recommend pipeline

Contains all paths, environment variable names, and constants used across the pipeline.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# ENVIRONMENT
# ============================================================================

# The path to the project
RECOMMEND_HOME = "RECOMMEND_HOME"

# The path to the folder which holds all data files
DATA_PATH = "DATA_PATH"

# Log level for the CLI
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# ============================================================================
# DATA FILES
# ============================================================================

TRAINING_DATA = "train.csv"
MOVIE_TITLES = "movie_titles.csv"
TEST_DATA = "test.csv"

TRANSACTION_COLUMNS = ["item_id", "customer_id", "rating", "date"]
MOVIE_COLUMNS = ["item_id", "year", "title"]

# ============================================================================
# DATASET
# ============================================================================

DATASET_CONFIG = {
    "cross_valid_fraction": 0.2,  # Tail of the training file held out
    "max_rating": 5,
}

# ============================================================================
# MODELS
# ============================================================================

SIMILARITY_CONFIG = {
    "axis": "items",  # "items" compares columns, "customers" compares rows
}

SPECTRAL_CONFIG = {
    "zero_tol": 1e-10,  # Eigenvalues within this distance of 0 count as zero
}

# Rating returned when a model has no estimate
NO_PREDICTION = 0

# ============================================================================
# OUTPUT
# ============================================================================

OUTPUT_CONFIG = {
    "output_dir": Path(os.getenv("OUTPUT_DIR", ".")),
    "trans_freq_plot": "trans_freq.png",
    "tests_freq_plot": "tests_freq.png",
    "initial_matrix_plot": "initial_matrix.png",
}
