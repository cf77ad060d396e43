"""Exceptions raised by the evaluation harness."""


class TopKEvalError(Exception):
    """Base class for all topkeval errors."""


class EvaluationPreconditionError(TopKEvalError, ValueError):
    """Input data violates an evaluation protocol's precondition."""


class MissingNegativesError(TopKEvalError, LookupError):
    """A user has no registered negative-candidate list."""

    def __init__(self, user_id: int, store_size: int):
        self.user_id = user_id
        self.store_size = store_size
        super().__init__(
            f"No negative candidates registered for user {user_id} "
            f"(store holds {store_size} users)"
        )


class EvaluationWorkerError(TopKEvalError, RuntimeError):
    """One or more offline evaluation workers failed."""

    def __init__(self, failures: list[tuple[int, BaseException]]):
        self.failures = failures
        partitions = ", ".join(str(t) for t, _ in failures)
        first = failures[0][1]
        super().__init__(
            f"{len(failures)} evaluation worker(s) failed (partitions: {partitions}); "
            f"first error: {type(first).__name__}: {first}"
        )


class DataFormatError(TopKEvalError, ValueError):
    """An input file could not be parsed."""
