"""Data loading, containers and splitting."""

from topkeval.data.schemas import Rating, TestInstance
from topkeval.data.interactions import InteractionMatrix, NegativeCandidateStore
from topkeval.data.loaders import DataLoader
from topkeval.data.splits import leave_one_out_split, sample_negatives, temporal_split

__all__ = [
    "Rating",
    "TestInstance",
    "InteractionMatrix",
    "NegativeCandidateStore",
    "DataLoader",
    "leave_one_out_split",
    "temporal_split",
    "sample_negatives",
]
