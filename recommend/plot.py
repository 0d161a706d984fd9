"""
Diagnostic Plots

- Histograms of per-customer transaction and test frequencies
- Occupancy of the initial rating matrix (train / cross-valid / test)
"""

import logging
from pathlib import Path
from typing import Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from . import config
from .data_io import Dataset, Metadata

logger = logging.getLogger(__name__)


def _plot_freq_histogram(freq: np.ndarray, title: str, path: Path) -> None:
    fig, ax = plt.subplots(figsize=(19.2, 10.8))
    try:
        max_freq = int(freq.max()) if len(freq) else 0
        ax.hist(freq, bins=np.arange(max_freq + 2), color="tab:blue", alpha=0.5)
        ax.set_title(title, fontsize=20)
        ax.set_xlabel("Frequency per customer")
        ax.set_ylabel("Count")
        fig.savefig(path)
    finally:
        plt.close(fig)


def plot_data_freq(metadata: Metadata, output_dir: Union[str, Path]) -> None:
    """
    Plot how many transactions and tests each customer has.

    Writes trans_freq.png and tests_freq.png to output_dir.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    max_trans = int(metadata.trans_freq.max()) if metadata.num_customers else 0
    max_tests = int(metadata.test_freq.max()) if metadata.num_customers else 0
    logger.info(f"max # of trans: {max_trans}")
    logger.info(f"max # of tests: {max_tests}")

    _plot_freq_histogram(metadata.trans_freq, "Transaction Frequency",
                         output_dir / config.OUTPUT_CONFIG['trans_freq_plot'])
    logger.info("Plotted transaction frequency")

    _plot_freq_histogram(metadata.test_freq, "Test Frequency",
                         output_dir / config.OUTPUT_CONFIG['tests_freq_plot'])
    logger.info("Plotted test frequency")


def plot_initial_matrix(dataset: Dataset, output_dir: Union[str, Path]) -> None:
    """
    Scatter every known cell of the customer x movie matrix.

    Blue is training data, yellow cross-validation data, red the test set.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    n = dataset.metadata.num_customers
    m = dataset.metadata.num_movies

    fig, ax = plt.subplots(figsize=(min(max(8.0, m / 500), 40.0), min(max(8.0, n / 500), 40.0)))
    try:
        for df, color, label in ((dataset.train, "blue", "train"),
                                 (dataset.cross_valid, "gold", "cross valid"),
                                 (dataset.test, "red", "test")):
            ax.scatter(df['item_id'], df['customer_id'], s=1, c=color, marker="s",
                       linewidths=0, label=label)
        ax.set_xlim(0, max(m, 1))
        ax.set_ylim(0, max(n, 1))
        ax.set_title("Initial completion status of the matrix")
        ax.set_xlabel("Movie id")
        ax.set_ylabel("User (virtual) id")
        ax.legend(loc="upper right", markerscale=10)
        fig.savefig(output_dir / config.OUTPUT_CONFIG['initial_matrix_plot'])
    finally:
        plt.close(fig)
    logger.info("Initial matrix plotted.")
