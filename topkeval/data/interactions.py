"""
Interaction containers consumed by the evaluator.

- InteractionMatrix: sparse user x item training feedback
- NegativeCandidateStore: per-user items known not to be positive
"""

from typing import Iterable, Mapping, Sequence

import numpy as np
from scipy.sparse import csr_matrix

from topkeval.data.schemas import Rating
from topkeval.exceptions import MissingNegativesError


class InteractionMatrix:
    """
    Read-only sparse rating matrix (users by items).

    Duplicate (user, item) pairs are summed by the CSR constructor; the
    per-user count is the number of distinct items.
    """

    def __init__(self, matrix: csr_matrix):
        self.matrix = csr_matrix(matrix, copy=True)
        self.matrix.sum_duplicates()

    @classmethod
    def from_ratings(
        cls,
        ratings: Iterable[Rating],
        user_count: int | None = None,
        item_count: int | None = None,
    ) -> "InteractionMatrix":
        """
        Build the matrix from ratings.

        Args:
            ratings: Training ratings
            user_count: Number of rows (defaults to max user id + 1)
            item_count: Number of columns (defaults to max item id + 1)
        """
        ratings = list(ratings)
        users = np.array([r.user_id for r in ratings], dtype=np.int64)
        items = np.array([r.item_id for r in ratings], dtype=np.int64)
        scores = np.array([r.score for r in ratings], dtype=np.float64)

        n_users = user_count if user_count is not None else (int(users.max()) + 1 if len(users) else 0)
        n_items = item_count if item_count is not None else (int(items.max()) + 1 if len(items) else 0)

        matrix = csr_matrix((scores, (users, items)), shape=(n_users, n_items))
        return cls(matrix)

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape

    @property
    def user_count(self) -> int:
        return self.matrix.shape[0]

    @property
    def item_count(self) -> int:
        return self.matrix.shape[1]

    def count_for_user(self, user_id: int) -> int:
        """Number of distinct items the user interacted with in training."""
        if user_id >= self.user_count:
            return 0
        return int(self.matrix.indptr[user_id + 1] - self.matrix.indptr[user_id])

    def items_for_user(self, user_id: int) -> np.ndarray:
        """Item indices the user interacted with in training."""
        if user_id >= self.user_count:
            return np.array([], dtype=self.matrix.indices.dtype)
        start, end = self.matrix.indptr[user_id], self.matrix.indptr[user_id + 1]
        return self.matrix.indices[start:end]

    def item_counts(self) -> np.ndarray:
        """Number of users who interacted with each item."""
        return np.diff(self.matrix.tocsc().indptr)

    def __repr__(self) -> str:
        return f"InteractionMatrix(shape={self.shape}, nnz={self.matrix.nnz})"


class NegativeCandidateStore:
    """
    Per-user negative candidate lists.

    Lists are stored as tuples, so callers building a candidate pool get
    a fresh sequence and never mutate the store.
    """

    def __init__(self, negatives: Sequence[Sequence[int]]):
        self._negatives: list[tuple[int, ...] | None] = [tuple(n) for n in negatives]

    @classmethod
    def from_mapping(cls, mapping: Mapping[int, Sequence[int]]) -> "NegativeCandidateStore":
        """Build a store from a user -> negatives mapping; gaps stay unregistered."""
        size = max(mapping) + 1 if mapping else 0
        store = cls([])
        store._negatives = [None] * size
        for user_id, items in mapping.items():
            store._negatives[user_id] = tuple(items)
        return store

    def candidates_for(self, user_id: int) -> tuple[int, ...]:
        """Negative items for a user. Raises MissingNegativesError if absent."""
        if user_id < 0 or user_id >= len(self._negatives) or self._negatives[user_id] is None:
            raise MissingNegativesError(user_id, len(self._negatives))
        return self._negatives[user_id]

    def __contains__(self, user_id: object) -> bool:
        return (
            isinstance(user_id, int)
            and 0 <= user_id < len(self._negatives)
            and self._negatives[user_id] is not None
        )

    def __len__(self) -> int:
        return len(self._negatives)
