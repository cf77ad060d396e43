"""
Train/test splitting and negative sampling.

- leave_one_out_split: hold out each user's latest rating (offline protocol)
- temporal_split: hold out the globally most recent ratings (online protocol)
- sample_negatives: draw per-user negative candidates
"""

import logging

import numpy as np

from topkeval.data.interactions import InteractionMatrix, NegativeCandidateStore
from topkeval.data.schemas import Rating

logger = logging.getLogger(__name__)


def leave_one_out_split(ratings: list[Rating]) -> tuple[list[Rating], list[Rating]]:
    """
    Hold out the latest rating of every user.

    Ties on timestamp are broken by input order (the later line wins).
    Users with a single rating keep it as their test item and get an
    empty training history.

    Returns:
        (train, test) with test sorted by user id, so test[u].user_id == u
        whenever user ids are dense
    """
    latest: dict[int, int] = {}
    for idx, rating in enumerate(ratings):
        current = latest.get(rating.user_id)
        if current is None or rating.timestamp >= ratings[current].timestamp:
            latest[rating.user_id] = idx

    held_out = set(latest.values())
    train = [r for idx, r in enumerate(ratings) if idx not in held_out]
    test = [ratings[latest[u]] for u in sorted(latest)]

    return train, test


def temporal_split(
    ratings: list[Rating],
    test_ratio: float = 0.1,
) -> tuple[list[Rating], list[Rating]]:
    """
    Global time-ordered split.

    Args:
        ratings: All ratings
        test_ratio: Fraction of the most recent ratings to hold out

    Returns:
        (train, test) where test is sorted ascending by timestamp, ready to
        be replayed as an online stream
    """
    if not 0.0 <= test_ratio <= 1.0:
        raise ValueError(f"test_ratio must be in [0, 1], got {test_ratio}")

    ordered = sorted(ratings, key=lambda r: r.timestamp)
    n_test = int(round(len(ordered) * test_ratio))
    cut = len(ordered) - n_test

    return ordered[:cut], ordered[cut:]


def sample_negatives(
    train: InteractionMatrix,
    n_negatives: int = 100,
    seed: int = 42,
    exclude: list[Rating] | None = None,
) -> NegativeCandidateStore:
    """
    Sample negative candidates uniformly from items each user never rated.

    Args:
        train: Training interactions
        n_negatives: Candidates per user (fewer if the user has rated
            nearly every item)
        seed: Random seed
        exclude: Extra (user, item) pairs that must not be sampled,
            typically the test set

    Returns:
        Store with one list per user in [0, train.user_count)
    """
    rng = np.random.default_rng(seed)

    excluded: dict[int, set[int]] = {}
    for rating in exclude or []:
        excluded.setdefault(rating.user_id, set()).add(rating.item_id)

    negatives = []
    for user_id in range(train.user_count):
        seen = set(train.items_for_user(user_id).tolist()) | excluded.get(user_id, set())
        pool = np.setdiff1d(np.arange(train.item_count), np.fromiter(seen, dtype=np.int64, count=len(seen)))

        if len(pool) < n_negatives:
            logger.debug("User %d has only %d unseen items", user_id, len(pool))

        size = min(n_negatives, len(pool))
        negatives.append(rng.choice(pool, size=size, replace=False).tolist())

    return NegativeCandidateStore(negatives)
