"""Top-K ranking of a candidate pool by model score."""

from typing import Sequence

import numpy as np

from topkeval.models.base import Recommender


def rank_candidates(
    model: Recommender,
    user_id: int,
    candidates: Sequence[int],
    top_k: int,
) -> list[int]:
    """
    Rank candidates for a user and cut the list off at top_k.

    Candidates are fully sorted by descending score before truncation.
    Equal scores keep their original candidate order.

    Args:
        model: Scoring model
        user_id: User to rank for
        candidates: Candidate item IDs
        top_k: Cutoff position

    Returns:
        The first min(top_k, len(candidates)) item IDs
    """
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")

    if len(candidates) == 0:
        return []

    scores = np.array([model.score(user_id, item) for item in candidates], dtype=np.float64)

    # Stable sort on negated scores keeps ties in candidate order
    order = np.argsort(-scores, kind="stable")[:top_k]

    return [candidates[i] for i in order]
