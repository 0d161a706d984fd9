"""
Model Evaluation Module

Hold-out diagnostics for the recommendation models.
"""

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error

from .model import RecommendationModel


def evaluate_rmse(model: RecommendationModel, transactions_df: pd.DataFrame) -> float:
    """
    Calculate Root Mean Squared Error on a hold-out set.

    Metric: How accurately the model predicts ratings
    Data: Cross-validation transactions with ground truth ratings
    Operationalization: RMSE = sqrt(mean((predicted - actual)^2))

    Args:
        model: Initialized recommendation model
        transactions_df: DataFrame with customer_id, item_id, rating, date

    Returns:
        RMSE value (lower is better), NaN for an empty hold-out

    Example:
        >>> rmse = evaluate_rmse(model, dataset.cross_valid)
        >>> print(f"RMSE: {rmse:.4f}")
        RMSE: 3.6042
    """
    if len(transactions_df) == 0:
        return float('nan')

    predictions = np.asarray(model.predict_all(transactions_df), dtype=np.float64)
    actuals = transactions_df['rating'].to_numpy(dtype=np.float64)
    return float(np.sqrt(mean_squared_error(actuals, predictions)))
