"""
Data loading for evaluation runs.

Supports the tab-separated rating files and the negative-candidate files
used by common leave-one-out benchmarks:

    ratings:    user\titem[\trating[\ttimestamp]]
    negatives:  (user,item)\tneg_1\tneg_2\t...
"""

import logging
from pathlib import Path

import polars as pl

from topkeval.config import get_settings
from topkeval.data.interactions import NegativeCandidateStore
from topkeval.data.schemas import Rating
from topkeval.exceptions import DataFormatError

logger = logging.getLogger(__name__)

RATING_COLUMNS = ["user_id", "item_id", "score", "timestamp"]


class DataLoader:
    """Load ratings and negative candidates from files."""

    def __init__(self, data_path: Path | None = None):
        self.settings = get_settings()
        self.data_path = Path(data_path) if data_path is not None else self.settings.data_path

    def load_ratings(self, filename: str) -> list[Rating]:
        """
        Load a ratings file.

        Args:
            filename: File name relative to the data path. ``.csv`` files are
                read comma-separated with a header; anything else is read as
                headerless tab-separated columns.

        Returns:
            Ratings in file order
        """
        filepath = self.data_path / filename

        try:
            if filepath.suffix == ".csv":
                df = pl.read_csv(filepath, infer_schema_length=None)
            else:
                df = pl.read_csv(filepath, separator="\t", has_header=False, infer_schema_length=None)
                df = df.rename(dict(zip(df.columns, RATING_COLUMNS)))
        except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as e:
            raise DataFormatError(f"Could not parse ratings file {filepath}: {e}") from e

        return self._df_to_ratings(df, filepath)

    def load_negatives(
        self,
        filename: str,
    ) -> tuple[NegativeCandidateStore, list[Rating]]:
        """
        Load a negative-candidate file.

        Returns:
            (store, test pairs) where the test pairs are the ``(user,item)``
            headers of each line, in file order
        """
        filepath = self.data_path / filename

        negatives: dict[int, list[int]] = {}
        test_pairs: list[Rating] = []

        with open(filepath) as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                head, *rest = line.split("\t")
                try:
                    user_str, item_str = head.strip("()").split(",")
                    user_id, item_id = int(user_str), int(item_str)
                    items = [int(x) for x in rest if x]
                except ValueError as e:
                    raise DataFormatError(f"{filepath}:{line_no}: malformed line: {line[:60]!r}") from e

                if user_id < 0 or item_id < 0 or any(i < 0 for i in items):
                    raise DataFormatError(f"{filepath}:{line_no}: negative id in line: {line[:60]!r}")

                if user_id in negatives:
                    logger.warning("%s:%d: duplicate user %d, keeping last", filepath, line_no, user_id)

                negatives[user_id] = items
                test_pairs.append(Rating(user_id=user_id, item_id=item_id))

        logger.info("Loaded negatives for %d users from %s", len(negatives), filepath)

        return NegativeCandidateStore.from_mapping(negatives), test_pairs

    def _df_to_ratings(self, df: pl.DataFrame, filepath: Path) -> list[Rating]:
        """Convert DataFrame to list of Rating objects."""
        missing = {"user_id", "item_id"} - set(df.columns)
        if missing:
            raise DataFormatError(f"{filepath}: missing columns {sorted(missing)}")

        ratings = []
        for line_no, row in enumerate(df.iter_rows(named=True), start=1):
            score = row.get("score")
            timestamp = row.get("timestamp")
            try:
                ratings.append(Rating(
                    user_id=int(row["user_id"]),
                    item_id=int(row["item_id"]),
                    score=float(score) if score is not None else 1.0,
                    timestamp=int(timestamp) if timestamp is not None else 0,
                ))
            except (TypeError, ValueError) as e:
                raise DataFormatError(f"{filepath}: bad row {line_no}: {row}") from e

        logger.info("Loaded %d ratings from %s", len(ratings), filepath)

        return ratings
