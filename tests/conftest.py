"""
Shared fixtures for evaluation tests.
"""

import pytest

from topkeval.data.interactions import InteractionMatrix, NegativeCandidateStore
from topkeval.data.schemas import Rating
from topkeval.evaluation.progress import ProgressReporter


class TableModel:
    """Scores from a lookup table: per (user, item), then per item, else 0."""

    def __init__(self, item_scores=None, pair_scores=None):
        self.item_scores = dict(item_scores or {})
        self.pair_scores = dict(pair_scores or {})
        self.applied = []

    def score(self, user_id, item_id):
        if (user_id, item_id) in self.pair_scores:
            return self.pair_scores[(user_id, item_id)]
        return self.item_scores.get(item_id, 0.0)

    def apply(self, user_id, item_id):
        self.applied.append((user_id, item_id))
        self.item_scores[item_id] = self.item_scores.get(item_id, 0.0) + 1.0


def make_train(pairs, user_count=None, item_count=None):
    """Build an InteractionMatrix from (user, item) pairs."""
    ratings = [Rating(user_id=u, item_id=i) for u, i in pairs]
    return InteractionMatrix.from_ratings(ratings, user_count, item_count)


@pytest.fixture
def lines():
    return []


@pytest.fixture
def reporter(lines):
    return ProgressReporter(sink=lines.append)


@pytest.fixture
def leave_one_out_data():
    """Seven users; each ground truth item 100 + u outscores its negatives."""
    user_count = 7
    train = make_train([(u, u) for u in range(user_count)], user_count, 110)
    negatives = NegativeCandidateStore([[10, 11, 12] for _ in range(user_count)])
    test = [Rating(user_id=u, item_id=100 + u) for u in range(user_count)]
    model = TableModel(item_scores={10: 0.3, 11: 0.2, 12: 0.1, **{100 + u: 1.0 for u in range(user_count)}})
    return model, train, negatives, test
