"""
Recommendation Models

Every model follows the same lifecycle:

    UNINITIALIZED --init(dataset)--> INITIALIZED --train()--> TRAINED

`init` may be called again from any state and rebuilds everything the model
owns. `predict` is valid once the model is initialized. Both models here are
stubs on the prediction side and return NO_PREDICTION (0); what they do build
is the rating matrix, and for spectral clustering the similarity matrix and
its spectrum.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

import numpy as np
import pandas as pd

from . import config
from .data_io import Dataset, Rating, Transaction
from .errors import ModelStateError
from .feature_engineering import build_rating_matrix, observed_fraction
from .similarity import ObservedColumns, similarity_with_observed
from .spectral import SpectralReport, analyze_spectrum

logger = logging.getLogger(__name__)


class ModelState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    TRAINED = "trained"


class RecommendationModel(ABC):
    """
    Base class for all models.

    Subclasses fill in `_init_model`, `_train_model` and `_predict`; the base
    class owns the rating matrix and enforces the lifecycle.
    """

    name = "GenericModel"

    def __init__(self):
        self.state = ModelState.UNINITIALIZED
        self.rating_matrix: Optional[np.ndarray] = None  # Shape: (n_customers, n_items)
        self.n_customers = 0
        self.n_items = 0

    def init(self, dataset: Dataset) -> "RecommendationModel":
        """Build the rating matrix (and model-specific state) from the training set."""
        start = time.time()
        self.n_customers = dataset.metadata.num_customers
        self.n_items = dataset.metadata.num_movies
        self.rating_matrix = build_rating_matrix(dataset.train, self.n_customers, self.n_items)
        logger.info(f"{self.name}: rating matrix {self.rating_matrix.shape}")

        self._init_model()
        self.state = ModelState.INITIALIZED
        logger.info(f"{self.name}: initialized in {time.time() - start:.2f}s")
        return self

    def train(self) -> "RecommendationModel":
        self._require_initialized("train")
        start = time.time()
        self._train_model()
        self.state = ModelState.TRAINED
        logger.info(f"{self.name}: trained in {time.time() - start:.2f}s")
        return self

    def predict(self, transaction: Transaction) -> Rating:
        """Given one transaction, predict its rating."""
        self._require_initialized("predict")
        return self._predict(transaction)

    def predict_all(self, transactions_df: pd.DataFrame) -> List[Rating]:
        """Predict every row of a transactions table, in order."""
        self._require_initialized("predict")
        return [
            self._predict(Transaction(
                item_id=int(row.item_id),
                customer_id=int(row.customer_id),
                rating=int(row.rating),
                date=str(row.date),
            ))
            for row in transactions_df.itertuples(index=False)
        ]

    def get_model_info(self) -> dict:
        return {
            'algorithm': self.name,
            'state': self.state.value,
            'total_customers': self.n_customers,
            'total_movies': self.n_items,
            'matrix_size': f"{self.n_customers}×{self.n_items}",
        }

    def _require_initialized(self, action: str) -> None:
        if self.state == ModelState.UNINITIALIZED:
            raise ModelStateError(f"{self.name} must be initialized before {action}")

    def _init_model(self) -> None:
        pass

    @abstractmethod
    def _train_model(self) -> None:
        ...

    @abstractmethod
    def _predict(self, transaction: Transaction) -> Rating:
        ...


class MatrixCompletionModel(RecommendationModel):
    """Matrix completion over the rating matrix. Training only measures the fill rate for now."""

    name = "MatrixCompletion"

    def __init__(self):
        super().__init__()
        self.observed_fraction: Optional[float] = None

    def _init_model(self) -> None:
        self.observed_fraction = None

    def _train_model(self) -> None:
        self.observed_fraction = observed_fraction(self.rating_matrix)
        logger.info(f"{self.name}: {self.observed_fraction * 100:.4f}% of the matrix observed")

    def _predict(self, transaction: Transaction) -> Rating:
        return config.NO_PREDICTION

    def get_model_info(self) -> dict:
        info = super().get_model_info()
        info['observed_fraction'] = self.observed_fraction
        return info


class SpectralClusteringModel(RecommendationModel):
    """
    Spectral clustering over item (or customer) similarity.

    init builds the Pearson-cosine similarity matrix; train eigendecomposes it
    and counts near-zero eigenvalues.
    """

    name = "SpectralClustering"

    def __init__(self, axis: str = config.SIMILARITY_CONFIG['axis'],
                 zero_tol: float = config.SPECTRAL_CONFIG['zero_tol']):
        super().__init__()
        if axis not in ("items", "customers"):
            raise ValueError(f"Invalid axis: {axis}. Must be 'items' or 'customers'")
        self.axis = axis
        self.zero_tol = zero_tol

        self.similarity_matrix: Optional[np.ndarray] = None  # Shape: (K, K)
        self.observed: Optional[ObservedColumns] = None
        self.spectral_report: Optional[SpectralReport] = None

    def _init_model(self) -> None:
        by = "columns" if self.axis == "items" else "rows"
        self.similarity_matrix, self.observed = similarity_with_observed(self.rating_matrix, by=by)
        self.spectral_report = None
        logger.info(f"{self.name}: {self.axis} similarity matrix {self.similarity_matrix.shape}")

    def _train_model(self) -> None:
        self.spectral_report = analyze_spectrum(self.similarity_matrix, zero_tol=self.zero_tol)
        logger.info(f"{self.name}: {self.spectral_report.n_near_zero} near-zero eigenvalues "
                    f"out of {self.spectral_report.size}")

    def _predict(self, transaction: Transaction) -> Rating:
        return config.NO_PREDICTION

    def get_model_info(self) -> dict:
        info = super().get_model_info()
        info['axis'] = self.axis
        if self.observed is not None:
            info['n_degenerate'] = self.observed.n_degenerate
        if self.spectral_report is not None:
            info.update(self.spectral_report.summary())
        return info


class ModelKind(Enum):
    """The closed set of available models."""
    MATRIX_COMPLETION = "matrix_completion"
    SPECTRAL_CLUSTERING = "spectral_clustering"

    def create(self) -> RecommendationModel:
        if self is ModelKind.MATRIX_COMPLETION:
            return MatrixCompletionModel()
        return SpectralClusteringModel()
