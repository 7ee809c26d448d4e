"""Append-only event log of query interactions (history.jsonl).

One JSON object per line. The file is only ever appended to; reads parse it
line by line and skip blank or unparsable lines, so a partial trailing write
from an interrupted process never breaks later reads.
"""

import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from ..errors import HistoryError
from .models import QueryRecord

logger = logging.getLogger(__name__)


class EventLog:
    """JSONL-backed record store with no in-memory state."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, record: QueryRecord) -> None:
        """Append one record as a single line, creating the file if needed."""
        line = record.model_dump_json()
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise HistoryError(f"Failed to write to history file {self.path}: {e}") from e

    def read_all(self) -> List[QueryRecord]:
        """Read every parsable record in chronological order."""
        if not self.path.exists():
            return []

        records: List[QueryRecord] = []
        with open(self.path, encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(QueryRecord.model_validate_json(line))
                except ValidationError:
                    logger.debug(f"Skipping unparsable history line {lineno} in {self.path}")
        return records

    def read_recent(self, limit: int) -> List[QueryRecord]:
        """Get the last `limit` records, oldest first."""
        if limit <= 0:
            return []
        return self.read_all()[-limit:]

    def count_lines(self) -> int:
        """Count lines in the log by rescanning the file."""
        if not self.path.exists():
            return 0
        with open(self.path, "rb") as f:
            return sum(1 for _ in f)

    def delete(self) -> None:
        """Remove the log file (a missing file is fine)."""
        self.path.unlink(missing_ok=True)
