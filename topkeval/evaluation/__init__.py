"""Evaluation module for top-K ranking metrics and protocols."""

from topkeval.evaluation.metrics import (
    evaluate_rank_list,
    hit_ratio,
    ndcg,
    precision,
)
from topkeval.evaluation.ranker import rank_candidates
from topkeval.evaluation.progress import ProgressReporter, format_elapsed
from topkeval.evaluation.evaluator import (
    BreakdownRow,
    OnlineReport,
    ResultVectors,
    TopKEvaluator,
)

__all__ = [
    "hit_ratio",
    "ndcg",
    "precision",
    "evaluate_rank_list",
    "rank_candidates",
    "ProgressReporter",
    "format_elapsed",
    "BreakdownRow",
    "OnlineReport",
    "ResultVectors",
    "TopKEvaluator",
]
