"""
Top-K evaluation engine.

Two protocols are supported:

- Offline (leave-one-out): one held-out item per user, evaluated in
  parallel over contiguous user partitions.
- Online (global time split): the test stream is replayed in order; each
  instance is scored against the current model and then fed to the model
  as a new observation.

Example:
    >>> evaluator = TopKEvaluator(model, train, negatives, top_k=10, thread_num=4)
    >>> results = evaluator.evaluate(test_ratings)
    >>> print(f"HR@10: {results.means()['hr']:.4f}")
"""

import logging
import time
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from topkeval.config import get_settings
from topkeval.data.interactions import InteractionMatrix, NegativeCandidateStore
from topkeval.data.schemas import Rating
from topkeval.evaluation.metrics import evaluate_rank_list
from topkeval.evaluation.progress import ProgressReporter
from topkeval.evaluation.ranker import rank_candidates
from topkeval.exceptions import EvaluationPreconditionError, EvaluationWorkerError
from topkeval.models.base import Recommender

logger = logging.getLogger(__name__)


@dataclass
class ResultVectors:
    """Per-user (offline) or per-instance (online) metric values."""

    hits: np.ndarray
    ndcgs: np.ndarray
    precs: np.ndarray

    @classmethod
    def allocate(cls, size: int) -> "ResultVectors":
        return cls(
            hits=np.zeros(size, dtype=np.float64),
            ndcgs=np.zeros(size, dtype=np.float64),
            precs=np.zeros(size, dtype=np.float64),
        )

    def __len__(self) -> int:
        return len(self.hits)

    def set(self, idx: int, result: tuple[float, float, float]) -> None:
        self.hits[idx], self.ndcgs[idx], self.precs[idx] = result

    def means(self) -> dict[str, float]:
        if len(self) == 0:
            return {"hr": 0.0, "ndcg": 0.0, "prec": 0.0}
        return {
            "hr": float(self.hits.mean()),
            "ndcg": float(self.ndcgs.mean()),
            "prec": float(self.precs.mean()),
        }


@dataclass
class BreakdownRow:
    """Online results for instances whose user had a given training history size."""

    bucket: int
    count: int
    percentage: float
    hr: float
    ndcg: float
    prec: float


@dataclass
class OnlineReport:
    """Results of an online evaluation run."""

    results: ResultVectors
    breakdown: list[BreakdownRow] = field(default_factory=list)
    avg_update_ms: float = 0.0


class TopKEvaluator:
    """
    Evaluate a scoring model by ranking candidate pools.

    The model is shared by all workers. During offline evaluation it is
    only scored, from several threads; during online evaluation scoring
    and updates alternate on the calling thread.
    """

    def __init__(
        self,
        model: Recommender,
        train: InteractionMatrix,
        negatives: NegativeCandidateStore,
        top_k: int | None = None,
        thread_num: int | None = None,
        ignore_train: bool | None = None,
        breakdown_intervals: int | None = None,
        reporter: ProgressReporter | None = None,
    ):
        self.settings = get_settings()
        self.model = model
        self.train = train
        self.negatives = negatives

        self.top_k = top_k if top_k is not None else self.settings.top_k
        self.thread_num = thread_num if thread_num is not None else self.settings.thread_num
        self.ignore_train = ignore_train if ignore_train is not None else self.settings.ignore_train
        self.breakdown_intervals = (
            breakdown_intervals if breakdown_intervals is not None else self.settings.breakdown_intervals
        )
        self.reporter = reporter or ProgressReporter()

        if self.top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {self.top_k}")
        if self.thread_num < 1:
            raise ValueError(f"thread_num must be at least 1, got {self.thread_num}")
        if self.breakdown_intervals < 0:
            raise ValueError(f"breakdown_intervals must be non-negative, got {self.breakdown_intervals}")
        if self.ignore_train:
            logger.warning("ignore_train is reserved and currently has no effect on ranking")

        # Results of the last completed run
        self.results: ResultVectors | None = None

    @property
    def user_count(self) -> int:
        return self.train.user_count

    # ==========================================================================
    # Single instance
    # ==========================================================================

    def evaluate_instance(self, user_id: int, gt_item: int) -> tuple[float, float, float]:
        """
        Evaluate one (user, ground truth) pair.

        The candidate pool is the user's negatives plus the ground truth,
        built as a new tuple; the negative store is left untouched.

        Returns:
            (hit ratio, ndcg, precision)
        """
        negatives = self.negatives.candidates_for(user_id)

        # Duplicates collapse, first occurrence keeps its position
        pool = tuple(dict.fromkeys(negatives + (gt_item,)))

        rank_list = rank_candidates(self.model, user_id, pool, self.top_k)

        return evaluate_rank_list(rank_list, gt_item)

    # ==========================================================================
    # Offline (leave-one-out) evaluation
    # ==========================================================================

    @staticmethod
    def thread_split(total: int, thread_num: int, t: int) -> range:
        """
        Contiguous block of indices for worker t.

        Blocks have total // thread_num indices; the last one absorbs the
        remainder.
        """
        size = total // thread_num
        start = size * t
        end = total if t == thread_num - 1 else size * (t + 1)
        return range(start, end)

    def evaluate(self, test_ratings: Sequence[Rating]) -> ResultVectors:
        """
        Leave-one-out evaluation over all users.

        Args:
            test_ratings: One rating per user, where test_ratings[u].user_id == u

        Returns:
            Per-user result vectors
        """
        self._check_leave_one_out(test_ratings)

        results = ResultVectors.allocate(self.user_count)
        start = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.thread_num, thread_name_prefix="topkeval-eval") as executor:
            futures = {
                executor.submit(
                    self._evaluate_users,
                    self.thread_split(self.user_count, self.thread_num, t),
                    test_ratings,
                    results,
                ): t
                for t in range(self.thread_num)
            }
            wait(futures, return_when=ALL_COMPLETED)

        failures = sorted(
            ((t, future.exception()) for future, t in futures.items() if future.exception() is not None),
            key=lambda failure: failure[0],
        )
        if failures:
            for t, error in failures:
                logger.error(
                    "Evaluation worker %d failed: %s: %s", t, type(error).__name__, error, exc_info=error
                )
            raise EvaluationWorkerError(failures) from failures[0][1]

        logger.debug(
            "Evaluated %d users with %d workers in %.3fs",
            self.user_count, self.thread_num, time.perf_counter() - start,
        )

        self.results = results
        return results

    def _evaluate_users(
        self,
        users: range,
        test_ratings: Sequence[Rating],
        results: ResultVectors,
    ) -> None:
        """Worker body: each user writes only its own slot."""
        for u in users:
            results.set(u, self.evaluate_instance(u, test_ratings[u].item_id))

    def _check_leave_one_out(self, test_ratings: Sequence[Rating]) -> None:
        if len(test_ratings) != self.user_count:
            logger.error(
                "Leave-one-out precondition failed: %d test ratings for %d users",
                len(test_ratings), self.user_count,
            )
            raise EvaluationPreconditionError(
                f"Leave-one-out evaluation needs one test rating per user: "
                f"got {len(test_ratings)} test ratings for {self.user_count} users"
            )

        for u, rating in enumerate(test_ratings):
            if rating.user_id != u:
                logger.error("Leave-one-out precondition failed at index %d", u)
                raise EvaluationPreconditionError(
                    f"Test rating at index {u} belongs to user {rating.user_id}; "
                    f"test ratings must be ordered so that index u holds user u"
                )

    # ==========================================================================
    # Online (streaming) evaluation
    # ==========================================================================

    def evaluate_online(
        self,
        test_ratings: Sequence[Rating],
        interval: int | None = None,
    ) -> OnlineReport:
        """
        Replay a time-ordered test stream.

        Each instance is evaluated with the model as it stands before the
        instance, then the model is updated with it.

        Args:
            test_ratings: Test ratings sorted by time (old -> recent)
            interval: Emit running averages every N instances (0 disables)

        Returns:
            OnlineReport with per-instance results, breakdown by the
            user's training history size, and mean update latency
        """
        interval = self.settings.interval if interval is None else interval
        test_count = len(test_ratings)
        results = ResultVectors.allocate(test_count)

        # Break down the results by number of user ratings of the test pair
        intervals = self.breakdown_intervals
        counts = np.zeros(intervals + 1, dtype=np.int64)
        sums = np.zeros((intervals + 1, 3), dtype=np.float64)

        update_seconds = 0.0
        for i, rating in enumerate(test_ratings):
            if i > 0 and interval > 0 and i % interval == 0:
                self.reporter.emit(self.reporter.running_line(i, results))

            res = self.evaluate_instance(rating.user_id, rating.item_id)
            results.set(i, res)

            bucket = min(self.train.count_for_user(rating.user_id), intervals)
            counts[bucket] += 1
            sums[bucket] += res

            start = time.perf_counter()
            self.model.apply(rating.user_id, rating.item_id)
            update_seconds += time.perf_counter() - start

        breakdown = []
        for bucket in range(intervals + 1):
            count = int(counts[bucket])
            means = sums[bucket] / count if count else np.zeros(3)
            breakdown.append(BreakdownRow(
                bucket=bucket,
                count=count,
                percentage=count / test_count * 100 if test_count else 0.0,
                hr=float(means[0]),
                ndcg=float(means[1]),
                prec=float(means[2]),
            ))

        report = OnlineReport(
            results=results,
            breakdown=breakdown,
            avg_update_ms=update_seconds * 1000 / test_count if test_count else 0.0,
        )

        for line in self.reporter.breakdown_lines(report):
            self.reporter.emit(line)

        self.results = results
        return report
