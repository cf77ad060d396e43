"""
topkeval - Evaluation harness for top-K recommendation models

Ranks candidate items per user with any scoring model and reports:
- Hit Ratio, NDCG and Precision (reciprocal rank) at a cutoff
- Leave-one-out offline evaluation, parallel over user partitions
- Online evaluation replaying a time-ordered stream with model updates
"""

__version__ = "1.0.0"
__author__ = "topkeval Team"

from topkeval.config import Settings, get_settings
from topkeval.evaluation import ProgressReporter, ResultVectors, TopKEvaluator

__all__ = ["Settings", "get_settings", "ProgressReporter", "ResultVectors", "TopKEvaluator", "__version__"]
