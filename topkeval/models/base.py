"""
Model interfaces consumed by the evaluator.

The evaluator only needs two capabilities, captured by ``Recommender``.
Concrete algorithms derive from ``TopKRecommender`` and are injected into
``TopKEvaluator``; they never subclass it.
"""

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from topkeval.data.interactions import InteractionMatrix


@runtime_checkable
class Recommender(Protocol):
    """Protocol for scoring models."""

    def score(self, user_id: int, item_id: int) -> float:
        """Predicted preference of the user for the item."""
        ...

    def apply(self, user_id: int, item_id: int) -> None:
        """Update internal state with a new observation."""
        ...


class TopKRecommender(ABC):
    """
    Base class for top-K recommenders.

    ``score`` must be safe to call from several threads at once as long as
    no ``apply`` runs concurrently.
    """

    def __init__(self, train: InteractionMatrix):
        self.train = train
        self.user_count = train.user_count
        self.item_count = train.item_count

    @abstractmethod
    def score(self, user_id: int, item_id: int) -> float:
        pass

    @abstractmethod
    def fit(self) -> "TopKRecommender":
        pass

    @abstractmethod
    def apply(self, user_id: int, item_id: int) -> None:
        pass

    def loss(self) -> float:
        """Training loss, if the algorithm tracks one."""
        return 0.0
