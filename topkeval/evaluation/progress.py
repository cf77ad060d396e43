"""
Progress reporting for evaluation runs.

Formats running averages, final summaries and the online breakdown, and
hands each line to a sink. Sink failures are logged and never abort an
evaluation.
"""

import logging
import time
from typing import TYPE_CHECKING, Callable, Sequence

from rich.console import Console

from topkeval.data.schemas import Rating

if TYPE_CHECKING:
    from topkeval.evaluation.evaluator import OnlineReport, ResultVectors, TopKEvaluator

logger = logging.getLogger(__name__)

Sink = Callable[[str], None]


def format_elapsed(seconds: float) -> str:
    """Human readable duration: 512ms, 3.27s, 01:02:05."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ProgressReporter:
    """Format evaluation progress and write it to a sink."""

    def __init__(self, sink: Sink | None = None):
        self.console = Console(highlight=False)
        self.sink = sink or self._print

    def _print(self, line: str) -> None:
        self.console.print(line, markup=False)

    def emit(self, line: str) -> None:
        """Send a line to the sink; failures are logged and ignored."""
        try:
            self.sink(line)
        except Exception:
            logger.warning("Progress sink failed, dropping line: %r", line, exc_info=True)

    def running_line(self, i: int, results: "ResultVectors") -> str:
        """Running averages over the first i instances."""
        return (
            f"{i}: <hr, ndcg, prec> =\t {results.hits[:i].sum() / i:.4f}\t "
            f"{results.ndcgs[:i].sum() / i:.4f}\t {results.precs[:i].sum() / i:.4f}"
        )

    def breakdown_lines(self, report: "OnlineReport") -> list[str]:
        """Per-bucket table and mean update latency of an online run."""
        lines = [
            "Break down the results by number of user ratings for the test pair.",
            "#Rating\t Percentage\t HR\t NDCG\t MAP",
        ]
        for row in report.breakdown:
            lines.append(
                f"{row.bucket}\t {row.percentage:.2f}%\t {row.hr:.4f}\t {row.ndcg:.4f}\t {row.prec:.4f}"
            )
        lines.append(f"Avg model update time per instance: {report.avg_update_ms:.2f} ms")
        return lines

    def summary_line(
        self,
        iteration: int,
        results: "ResultVectors",
        build_seconds: float,
        eval_seconds: float,
        loss: float = 0.0,
    ) -> str:
        means = results.means()
        return (
            f"Iter={iteration}[{format_elapsed(build_seconds)}] <loss, hr, ndcg, prec>:\t "
            f"{loss:.4f}\t {means['hr']:.4f}\t {means['ndcg']:.4f}\t {means['prec']:.4f}\t "
            f"[{format_elapsed(eval_seconds)}]"
        )

    def show_progress(
        self,
        evaluator: "TopKEvaluator",
        iteration: int,
        start: float,
        test_ratings: Sequence[Rating],
        loss: float | None = None,
    ) -> "ResultVectors":
        """
        Evaluate the current model and report one progress line.

        Leave-one-out test sets (one rating per user) are evaluated
        offline; anything else is replayed online.

        Args:
            evaluator: Evaluator wrapping the model
            iteration: Current training iteration
            start: time.perf_counter() value at the start of the iteration
            test_ratings: Test set
            loss: Training loss; defaults to the model's own loss() offline

        Returns:
            Result vectors of the evaluation
        """
        end_iter = time.perf_counter()

        if evaluator.user_count == len(test_ratings):
            results = evaluator.evaluate(test_ratings)
            if loss is None:
                model_loss = getattr(evaluator.model, "loss", None)
                loss = model_loss() if callable(model_loss) else 0.0
        else:
            results = evaluator.evaluate_online(test_ratings, interval=100).results
            loss = 0.0

        end_eval = time.perf_counter()

        self.emit(self.summary_line(
            iteration,
            results,
            build_seconds=end_iter - start,
            eval_seconds=end_eval - end_iter,
            loss=loss,
        ))

        return results
