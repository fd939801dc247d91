from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Optional

from .models import UpdateOutcome

BATCH_SIZE = 20
HEADER = (
    "Post ID",
    "Title",
    "Excerpt Copied to Meta Description",
    "Made Public",
    "Updated",
    "Reindexed",
    "Error",
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def outcome_row(outcome: UpdateOutcome) -> list[str]:
    return [
        outcome.article_id,
        outcome.title,
        _flag(outcome.excerpt_copied),
        _flag(outcome.made_public),
        _flag(outcome.updated),
        _flag(outcome.reindexed),
        outcome.error or "",
    ]


def batch_path(prefix: str, batch_number: int) -> Path:
    return Path(f"{prefix}_batch{batch_number}.csv")


class BatchWriter:
    """Buffers outcomes and writes them to numbered CSV files of ``batch_size`` rows.

    ``append`` writes a file each time the running total reaches a multiple of
    ``batch_size``; ``finalize`` writes whatever partial batch is left over.
    A failed write is logged and the batch number is still consumed.
    """

    def __init__(
        self,
        prefix: str,
        batch_size: int = BATCH_SIZE,
        logger: Optional[logging.Logger] = None,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.prefix = prefix
        self.batch_size = batch_size
        self.logger = logger or logging.getLogger(__name__)
        self.outcomes: list[UpdateOutcome] = []
        self.written: list[Path] = []
        self._buffer: list[UpdateOutcome] = []
        self._batch_number = 1

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def append(self, outcome: UpdateOutcome) -> Optional[Path]:
        self.outcomes.append(outcome)
        self._buffer.append(outcome)
        if len(self._buffer) >= self.batch_size:
            return self._flush()
        return None

    def finalize(self) -> list[Path]:
        if self._buffer:
            self._flush()
        return list(self.written)

    def _flush(self) -> Optional[Path]:
        rows, self._buffer = self._buffer, []
        path = batch_path(self.prefix, self._batch_number)
        self._batch_number += 1
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                writer.writerow(HEADER)
                writer.writerows(outcome_row(outcome) for outcome in rows)
        except OSError as exc:
            self.logger.error("error writing results to %s: %s", path, exc)
            return None

        self.written.append(path)
        self.logger.info("results written to %s rows=%s", path, len(rows))
        return path
