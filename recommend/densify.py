"""
Customer Id Densification

Raw customer ids are sparse and unbounded. Matrices need a dense row index,
so every raw id gets a virtual id in 0..N-1, handed out in first-seen order:
training ids first, then test-only stragglers.
"""

import logging
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from .errors import UnseenCustomer

logger = logging.getLogger(__name__)


class IdentityMap:
    """
    Append-only bijection between raw customer ids and virtual ids.

    Also counts how often each virtual id occurs in the training phase
    (trans_freq) and in the test phase (test_freq). Both vectors always
    have length n_customers.
    """

    def __init__(self):
        self.virtual_ids: Dict[int, int] = {}  # {raw customer id: virtual id}
        self.raw_ids: List[int] = []  # virtual id -> raw customer id
        self.trans_freq = np.zeros(0, dtype=np.int64)
        self.test_freq = np.zeros(0, dtype=np.int64)
        self.anomalies: List[UnseenCustomer] = []

    @property
    def n_customers(self) -> int:
        return len(self.raw_ids)

    def __len__(self):
        return self.n_customers

    def __contains__(self, customer_id):
        return int(customer_id) in self.virtual_ids

    def _assign(self, customer_id: int) -> int:
        virtual_id = len(self.raw_ids)
        self.virtual_ids[customer_id] = virtual_id
        self.raw_ids.append(customer_id)
        return virtual_id

    def _grow_frequencies(self) -> None:
        missing = self.n_customers - len(self.trans_freq)
        if missing > 0:
            pad = np.zeros(missing, dtype=np.int64)
            self.trans_freq = np.concatenate([self.trans_freq, pad])
            self.test_freq = np.concatenate([self.test_freq, pad])

    def _new_ids(self, customer_ids: np.ndarray) -> List[int]:
        """Distinct ids not mapped yet, in order of first appearance."""
        return [int(c) for c in pd.unique(customer_ids) if int(c) not in self.virtual_ids]

    def lookup(self, customer_ids: Iterable[int]) -> np.ndarray:
        """
        Translate raw ids to virtual ids.

        Raises:
            KeyError: If any id has never been mapped
        """
        ids = pd.Series(np.asarray(customer_ids, dtype=np.int64))
        virtual = ids.map(self.virtual_ids)
        if virtual.isna().any():
            unknown = ids[virtual.isna()].unique().tolist()
            raise KeyError(f"Unmapped customer ids: {unknown[:10]}")
        return virtual.to_numpy(dtype=np.int64)

    def raw_id(self, virtual_id: int) -> int:
        return self.raw_ids[virtual_id]

    def add_training(self, customer_ids: Iterable[int]) -> np.ndarray:
        """
        Map the customer ids of the training transactions, in file order.

        Args:
            customer_ids: Raw customer id per training transaction

        Returns:
            Virtual id per transaction
        """
        ids = np.asarray(customer_ids, dtype=np.int64)
        for customer_id in self._new_ids(ids):
            self._assign(customer_id)
        self._grow_frequencies()

        virtual = self.lookup(ids)
        self.trans_freq += np.bincount(virtual, minlength=self.n_customers)
        return virtual

    def add_test(self, customer_ids: Iterable[int]) -> np.ndarray:
        """
        Map the customer ids of the test transactions, in file order.

        A test customer missing from training is given the next free virtual
        id, recorded in `anomalies`, and logged. It gets a zero training count.

        Args:
            customer_ids: Raw customer id per test transaction

        Returns:
            Virtual id per transaction
        """
        ids = np.asarray(customer_ids, dtype=np.int64)
        for customer_id in self._new_ids(ids):
            virtual_id = self._assign(customer_id)
            anomaly = UnseenCustomer(customer_id=customer_id, virtual_id=virtual_id)
            self.anomalies.append(anomaly)
            logger.warning(f"How come {anomaly}? Setting its virtual id to {virtual_id}.")
        self._grow_frequencies()

        virtual = self.lookup(ids)
        self.test_freq += np.bincount(virtual, minlength=self.n_customers)
        return virtual


def densify_customers(train_customer_ids: Iterable[int],
                      test_customer_ids: Iterable[int]) -> Tuple[IdentityMap, np.ndarray, np.ndarray]:
    """
    Build the identity map from the training phase, then the test phase.

    Args:
        train_customer_ids: Raw customer id per training transaction
        test_customer_ids: Raw customer id per test transaction

    Returns:
        Tuple of (identity_map, train_virtual_ids, test_virtual_ids)

    Example:
        >>> id_map, train_v, test_v = densify_customers([7, 3, 3, 9], [5])
        >>> id_map.n_customers, list(train_v), list(test_v)
        (4, [0, 1, 1, 2], [3])
    """
    identity_map = IdentityMap()
    train_virtual = identity_map.add_training(train_customer_ids)
    test_virtual = identity_map.add_test(test_customer_ids)

    logger.info(f"Densified {identity_map.n_customers} customers "
                f"({len(identity_map.anomalies)} only in the test set)")
    return identity_map, train_virtual, test_virtual
