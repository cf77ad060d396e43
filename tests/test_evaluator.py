"""
Tests for single-instance and offline (leave-one-out) evaluation.
"""

import logging
import math
import threading

import numpy as np
import pytest

from topkeval.data.interactions import NegativeCandidateStore
from topkeval.data.schemas import Rating
from topkeval.evaluation.evaluator import ResultVectors, TopKEvaluator
from topkeval.exceptions import (
    EvaluationPreconditionError,
    EvaluationWorkerError,
    MissingNegativesError,
)

from conftest import TableModel, make_train


class TestEvaluateInstance:
    """Test evaluation of one (user, ground truth) pair."""

    def _evaluator(self, scores, top_k=2, negatives=None):
        model = TableModel(item_scores=scores)
        train = make_train([(0, 1)], user_count=1, item_count=10)
        store = NegativeCandidateStore(negatives if negatives is not None else [[5, 6, 7]])
        return TopKEvaluator(model, train, store, top_k=top_k, thread_num=1)

    def test_ground_truth_ranked_second(self):
        """Ranked list is [6, 8]: hit at rank 1."""
        evaluator = self._evaluator({5: 0.1, 6: 0.9, 7: 0.3, 8: 0.85})
        hr, ndcg, prec = evaluator.evaluate_instance(0, 8)

        assert hr == 1.0
        assert abs(ndcg - math.log(2) / math.log(3)) < 1e-12
        assert prec == 0.5

    def test_ground_truth_outside_cutoff(self):
        evaluator = self._evaluator({5: 0.1, 6: 0.9, 7: 0.3, 8: 0.05})
        assert evaluator.evaluate_instance(0, 8) == (0.0, 0.0, 0.0)

    def test_negative_store_not_mutated(self):
        """Repeated calls see the same pool; the ground truth is never appended."""
        evaluator = self._evaluator({5: 0.1, 6: 0.9, 7: 0.3, 8: 0.85})

        first = evaluator.evaluate_instance(0, 8)
        second = evaluator.evaluate_instance(0, 8)

        assert first == second
        assert evaluator.negatives.candidates_for(0) == (5, 6, 7)

    def test_ground_truth_already_in_negatives(self):
        """A duplicate ground truth collapses into one candidate."""
        evaluator = self._evaluator({5: 0.1, 6: 0.9, 7: 0.3}, top_k=3, negatives=[[5, 6, 7]])
        assert evaluator.evaluate_instance(0, 5) == pytest.approx((1.0, 0.5, 1.0 / 3))

    def test_empty_negatives(self):
        """The pool is just the ground truth, which ranks first."""
        evaluator = self._evaluator({}, negatives=[[]])
        assert evaluator.evaluate_instance(0, 3) == (1.0, 1.0, 1.0)

    def test_missing_negatives(self):
        evaluator = self._evaluator({})
        with pytest.raises(MissingNegativesError, match="user 4"):
            evaluator.evaluate_instance(4, 8)


class TestThreadSplit:
    """Test user partitioning."""

    def test_even_split(self):
        parts = [list(TopKEvaluator.thread_split(6, 3, t)) for t in range(3)]
        assert parts == [[0, 1], [2, 3], [4, 5]]

    def test_last_partition_absorbs_remainder(self):
        parts = [list(TopKEvaluator.thread_split(7, 3, t)) for t in range(3)]
        assert parts == [[0, 1], [2, 3], [4, 5, 6]]

    @pytest.mark.parametrize("total,thread_num", [(0, 1), (1, 4), (10, 1), (10, 3), (101, 8), (5, 5)])
    def test_every_user_exactly_once(self, total, thread_num):
        users = [u for t in range(thread_num) for u in TopKEvaluator.thread_split(total, thread_num, t)]
        assert users == list(range(total))


class TestOfflineEvaluation:
    """Test leave-one-out evaluation."""

    @pytest.mark.parametrize("thread_num", [1, 3, 7, 16])
    def test_every_slot_written(self, leave_one_out_data, thread_num):
        model, train, negatives, test = leave_one_out_data
        evaluator = TopKEvaluator(model, train, negatives, top_k=2, thread_num=thread_num)

        results = evaluator.evaluate(test)

        assert len(results) == 7
        np.testing.assert_array_equal(results.hits, np.ones(7))
        np.testing.assert_array_equal(results.ndcgs, np.ones(7))
        np.testing.assert_array_equal(results.precs, np.ones(7))
        assert evaluator.results is results

    def test_per_user_slots(self, leave_one_out_data):
        """Users whose ground truth falls out of the cutoff score 0 in their own slot."""
        model, train, negatives, test = leave_one_out_data
        model.item_scores[103] = 0.0
        model.item_scores[105] = 0.25

        evaluator = TopKEvaluator(model, train, negatives, top_k=2, thread_num=3)
        results = evaluator.evaluate(test)

        expected_hits = np.array([1, 1, 1, 0, 1, 1, 1], dtype=float)
        np.testing.assert_array_equal(results.hits, expected_hits)
        assert results.precs[5] == 0.5
        assert results.means()["hr"] == pytest.approx(6 / 7)

    def test_results_recreated_per_run(self, leave_one_out_data):
        model, train, negatives, test = leave_one_out_data
        evaluator = TopKEvaluator(model, train, negatives, top_k=2, thread_num=2)

        first = evaluator.evaluate(test)
        model.item_scores.update({100 + u: 0.0 for u in range(7)})
        second = evaluator.evaluate(test)

        assert first is not second
        assert first.means()["hr"] == 1.0
        assert second.means()["hr"] == 0.0

    def test_test_count_mismatch(self, leave_one_out_data):
        model, train, negatives, test = leave_one_out_data
        evaluator = TopKEvaluator(model, train, negatives, top_k=2)

        with pytest.raises(EvaluationPreconditionError, match="6 test ratings for 7 users"):
            evaluator.evaluate(test[:-1])

    def test_test_order_mismatch(self, leave_one_out_data):
        model, train, negatives, test = leave_one_out_data
        evaluator = TopKEvaluator(model, train, negatives, top_k=2)

        swapped = [test[1], test[0]] + test[2:]
        with pytest.raises(EvaluationPreconditionError, match="index 0"):
            evaluator.evaluate(swapped)

    def test_worker_failure_propagates(self, leave_one_out_data):
        """A failing partition is reported after the other workers finish."""
        model, train, negatives, test = leave_one_out_data
        completed = []
        lock = threading.Lock()

        class FailingModel(TableModel):
            def score(self, user_id, item_id):
                if user_id == 0:
                    raise RuntimeError("boom")
                with lock:
                    completed.append(user_id)
                return super().score(user_id, item_id)

        failing = FailingModel(item_scores=model.item_scores)
        evaluator = TopKEvaluator(failing, train, negatives, top_k=2, thread_num=3)

        with pytest.raises(EvaluationWorkerError) as exc_info:
            evaluator.evaluate(test)

        assert [t for t, _ in exc_info.value.failures] == [0]
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert set(completed) == {2, 3, 4, 5, 6}
        assert evaluator.results is None

    def test_worker_failure_logged_with_traceback(self, leave_one_out_data, caplog):
        model, train, negatives, test = leave_one_out_data

        class FailingModel(TableModel):
            def score(self, user_id, item_id):
                if user_id == 4:
                    raise RuntimeError("boom")
                return super().score(user_id, item_id)

        evaluator = TopKEvaluator(FailingModel(item_scores=model.item_scores), train, negatives, top_k=2, thread_num=2)

        with caplog.at_level(logging.ERROR, logger="topkeval"):
            with pytest.raises(EvaluationWorkerError):
                evaluator.evaluate(test)

        records = [r for r in caplog.records if "worker 1 failed" in r.getMessage()]
        assert len(records) == 1
        assert records[0].exc_info is not None
        assert isinstance(records[0].exc_info[1], RuntimeError)
        assert records[0].exc_info[2] is not None

    def test_missing_negatives_is_worker_failure(self, leave_one_out_data):
        model, train, _, test = leave_one_out_data
        negatives = NegativeCandidateStore.from_mapping({u: [10] for u in range(6)})
        evaluator = TopKEvaluator(model, train, negatives, top_k=2, thread_num=2)

        with pytest.raises(EvaluationWorkerError) as exc_info:
            evaluator.evaluate(test)

        assert isinstance(exc_info.value.__cause__, MissingNegativesError)

    def test_invalid_thread_num(self, leave_one_out_data):
        model, train, negatives, _ = leave_one_out_data
        with pytest.raises(ValueError):
            TopKEvaluator(model, train, negatives, thread_num=0)


class TestResultVectors:
    """Test result vector helpers."""

    def test_empty_means(self):
        assert ResultVectors.allocate(0).means() == {"hr": 0.0, "ndcg": 0.0, "prec": 0.0}

    def test_set_and_means(self):
        results = ResultVectors.allocate(2)
        results.set(0, (1.0, 1.0, 1.0))
        results.set(1, (1.0, 0.5, 0.25))
        assert results.means() == {"hr": 1.0, "ndcg": 0.75, "prec": 0.625}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
