"""
Tests for candidate ranking.
"""

import pytest

from topkeval.evaluation.ranker import rank_candidates

from conftest import TableModel


class TestRankCandidates:
    """Test score ordering and cutoff."""

    @pytest.mark.parametrize("n_candidates", [0, 1, 3, 10])
    @pytest.mark.parametrize("top_k", [1, 3, 5, 100])
    def test_output_length(self, n_candidates, top_k):
        model = TableModel(item_scores={i: float(i % 4) for i in range(n_candidates)})
        ranked = rank_candidates(model, 0, list(range(n_candidates)), top_k)
        assert len(ranked) == min(n_candidates, top_k)

    def test_sorted_by_descending_score(self):
        scores = {5: 0.1, 6: 0.9, 7: 0.3, 8: 0.85, 9: 0.5}
        model = TableModel(item_scores=scores)
        ranked = rank_candidates(model, 0, [5, 6, 7, 8, 9], top_k=5)
        assert ranked == [6, 8, 9, 7, 5]
        ranked_scores = [scores[i] for i in ranked]
        assert ranked_scores == sorted(ranked_scores, reverse=True)

    def test_truncates_after_full_sort(self):
        model = TableModel(item_scores={5: 0.1, 6: 0.9, 7: 0.3, 8: 0.85})
        assert rank_candidates(model, 0, [5, 6, 7, 8], top_k=2) == [6, 8]

    def test_ties_keep_candidate_order(self):
        model = TableModel(item_scores={1: 0.5, 2: 0.5, 3: 0.5, 4: 0.9})
        assert rank_candidates(model, 0, [3, 1, 4, 2], top_k=4) == [4, 3, 1, 2]

    def test_scores_are_per_user(self):
        model = TableModel(pair_scores={(0, 1): 1.0, (0, 2): 0.0, (1, 1): 0.0, (1, 2): 1.0})
        assert rank_candidates(model, 0, [1, 2], top_k=1) == [1]
        assert rank_candidates(model, 1, [1, 2], top_k=1) == [2]

    def test_empty_candidates(self):
        assert rank_candidates(TableModel(), 0, [], top_k=10) == []

    def test_invalid_top_k(self):
        with pytest.raises(ValueError):
            rank_candidates(TableModel(), 0, [1, 2], top_k=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
