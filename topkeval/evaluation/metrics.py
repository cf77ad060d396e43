"""
Ranking evaluation metrics for a single held-out item.

Implements:
- Hit Ratio: whether the ground-truth item made the ranked list
- NDCG: log discount of the hit position (ideal DCG is 1 for one relevant item)
- Precision: reciprocal of the 1-based hit position (i.e. reciprocal rank)
"""

import math
from typing import Sequence


def _hit_position(rank_list: Sequence[int], gt_item: int) -> int | None:
    for i, item in enumerate(rank_list):
        if item == gt_item:
            return i
    return None


def hit_ratio(rank_list: Sequence[int], gt_item: int) -> float:
    """
    Compute Hit Ratio.

    Args:
        rank_list: Ranked item IDs
        gt_item: The ground truth item

    Returns:
        1.0 if gt_item is in the list, else 0.0
    """
    return 1.0 if _hit_position(rank_list, gt_item) is not None else 0.0


def ndcg(rank_list: Sequence[int], gt_item: int) -> float:
    """
    Compute NDCG of a list of ranked items.

    NDCG = ln(2) / ln(i + 2) for 0-based hit position i

    Args:
        rank_list: Ranked item IDs
        gt_item: The ground truth item

    Returns:
        NDCG in [0, 1]
    """
    i = _hit_position(rank_list, gt_item)
    if i is None:
        return 0.0
    return math.log(2) / math.log(i + 2)


def precision(rank_list: Sequence[int], gt_item: int) -> float:
    """
    Compute precision at the hit position.

    Precision = 1 / (i + 1) for 0-based hit position i. This is the
    reciprocal rank, not Precision@K.

    Args:
        rank_list: Ranked item IDs
        gt_item: The ground truth item

    Returns:
        Precision in [0, 1]
    """
    i = _hit_position(rank_list, gt_item)
    if i is None:
        return 0.0
    return 1.0 / (i + 1)


def evaluate_rank_list(rank_list: Sequence[int], gt_item: int) -> tuple[float, float, float]:
    """Return (hit ratio, ndcg, precision) for one ranked list."""
    return hit_ratio(rank_list, gt_item), ndcg(rank_list, gt_item), precision(rank_list, gt_item)
