"""Model interfaces and reference recommenders."""

from topkeval.models.base import Recommender, TopKRecommender
from topkeval.models.popularity import ItemPopularity

__all__ = [
    "Recommender",
    "TopKRecommender",
    "ItemPopularity",
]
