"""
Item popularity baseline.

Scores every item by how many interactions it has received. Online
observations increment the count, so the model reflects the stream as it
is replayed.
"""

import threading

import numpy as np

from topkeval.data.interactions import InteractionMatrix
from topkeval.models.base import TopKRecommender


class ItemPopularity(TopKRecommender):
    """Non-personalized popularity ranker."""

    def __init__(self, train: InteractionMatrix):
        super().__init__(train)
        self.item_popularity = np.zeros(self.item_count, dtype=np.float64)
        self._lock = threading.Lock()

    def fit(self) -> "ItemPopularity":
        self.item_popularity = self.train.item_counts().astype(np.float64)
        return self

    def score(self, user_id: int, item_id: int) -> float:
        if item_id < 0 or item_id >= len(self.item_popularity):
            return 0.0
        return float(self.item_popularity[item_id])

    def apply(self, user_id: int, item_id: int) -> None:
        with self._lock:
            if item_id >= len(self.item_popularity):
                grown = np.zeros(item_id + 1, dtype=np.float64)
                grown[:len(self.item_popularity)] = self.item_popularity
                self.item_popularity = grown
            self.item_popularity[item_id] += 1
