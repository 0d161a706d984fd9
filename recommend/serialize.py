"""
Prediction Output Module

Handles writing model predictions to disk and reading them back.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)


def prediction_path(output_dir: Union[str, Path], model_name: str) -> Path:
    """
    Path of the prediction file for a model.

    Example:
        >>> prediction_path("out", "SpectralClustering")
        PosixPath('out/SpectralClustering.txt')
    """
    return Path(output_dir) / f"{model_name}.txt"


def dump_predictions(predictions: Iterable, path: Union[str, Path]) -> None:
    """
    Write predictions to a text file, one value per line.

    Args:
        predictions: Predicted ratings, aligned with the test transactions
        path: File path to write (parent folders are created)

    Example:
        >>> dump_predictions([0, 0, 3], "out/MatrixCompletion.txt")
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(output_path, 'w') as f:
        for value in predictions:
            f.write(f"{value}\n")
            count += 1

    logger.info(f"Wrote {count} predictions to {output_path}")


def load_predictions(path: Union[str, Path]) -> List[int]:
    """
    Read predictions written by dump_predictions().

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Prediction file not found: {path}")

    with open(path, 'r') as f:
        return [int(line) for line in f if line.strip()]
