"""
Error types raised by the Recommend pipeline.
"""

from dataclasses import dataclass


class RecommendError(Exception):
    """Base class for all pipeline errors."""
    pass


class DataLoadError(RecommendError):
    """Raised when a dataset file is missing or holds a malformed record."""
    pass


class ConfigurationError(RecommendError):
    """Raised when the data location cannot be resolved from flags or environment."""
    pass


class DecompositionError(RecommendError):
    """Raised when the eigensolver rejects its input or fails to converge."""
    pass


class ModelStateError(RecommendError):
    """Raised when a model is trained or queried before it is initialized."""
    pass


@dataclass(frozen=True)
class UnseenCustomer:
    """A customer that shows up in the test set but never in training."""
    customer_id: int
    virtual_id: int

    def __str__(self):
        return f"customer {self.customer_id} is in the test set but not in the training set"
