"""HistoryStore: the learning store used by the CLI.

Coordinates the append-only event log (history.jsonl) and the pattern
snapshot (patterns.json) inside one data directory:

    store = HistoryStore(default_history_dir())
    store.record_query(QueryRecord.create("list files", ["ls -la"], "gpt-4o-mini"))
    store.record_selection("list files", "ls -la")
    store.personalize_results("List Files", ["ls", "ls -la"])  # ['ls -la', 'ls']

Each CLI invocation owns its store for its lifetime. There is no locking:
two processes recording selections at the same time race on
patterns.json and the last writer wins.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import HistoryError
from .event_log import EventLog
from .models import QueryPattern, QueryRecord
from .patterns import PatternStore
from .scoring import rank_candidates

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "history.jsonl"
PATTERNS_FILENAME = "patterns.json"


@dataclass
class HistoryStats:
    """Statistics about the learning store."""
    total_queries: int
    unique_patterns: int
    patterns_with_preference: int


class HistoryStore:
    """Query history and learned command preferences.

    Args:
        data_dir: Directory holding history.jsonl and patterns.json. Created
            if missing.

    Raises:
        HistoryError: If the data directory cannot be created
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HistoryError(f"Failed to create history data directory {self.data_dir}: {e}") from e

        self._log = EventLog(self.history_path)
        self._patterns = PatternStore(self.patterns_path)
        self._patterns.load()
        logger.debug(f"History store opened at {self.data_dir} ({len(self._patterns)} patterns)")

    @property
    def history_path(self) -> Path:
        return self.data_dir / HISTORY_FILENAME

    @property
    def patterns_path(self) -> Path:
        return self.data_dir / PATTERNS_FILENAME

    @property
    def dirty(self) -> bool:
        """Whether the pattern snapshot has unsaved changes."""
        return self._patterns.dirty

    def record_query(self, record: QueryRecord) -> None:
        """Append a query and its results to the event log."""
        self._log.append(record)

    def record_selection(self, query: str, command: str) -> QueryPattern:
        """Record that command was selected for query and persist patterns.

        Returns:
            The updated pattern
        """
        pattern = self._patterns.get_or_create(query)
        pattern.record_selection(command)
        self._patterns.mark_dirty()
        self._patterns.save()
        logger.info(f"Recorded selection for '{pattern.normalized_query}': {command}")
        return pattern

    def get_pattern(self, query: str) -> Optional[QueryPattern]:
        """Get the pattern for a query if one exists."""
        return self._patterns.get(query)

    def personalize_results(self, query: str, candidates: List[str]) -> List[str]:
        """Re-rank model suggestions using the query's selection history.

        Without a pattern the candidates are returned as given.
        """
        pattern = self._patterns.get(query)
        if pattern is None:
            return candidates
        return rank_candidates(candidates, pattern)

    def get_recent_queries(self, limit: int) -> List[QueryRecord]:
        """Get the last `limit` query records, oldest first."""
        return self._log.read_recent(limit)

    def get_patterns_by_usage(self) -> List[QueryPattern]:
        """Get all patterns, most used first.

        Ties on query_count are broken by most recent use.
        """
        return sorted(
            self._patterns.values(),
            key=lambda p: (p.query_count, p.last_used),
            reverse=True,
        )

    def stats(self) -> HistoryStats:
        """Get history statistics (rescans the event log)."""
        patterns = self._patterns.values()
        return HistoryStats(
            total_queries=self._log.count_lines(),
            unique_patterns=len(patterns),
            patterns_with_preference=sum(1 for p in patterns if p.preferred_command is not None),
        )

    def clear(self) -> None:
        """Delete all history and learned patterns."""
        try:
            self._log.delete()
        except OSError as e:
            raise HistoryError(f"Failed to remove history file {self.history_path}: {e}") from e
        self._patterns.reset()
        logger.info(f"Cleared history in {self.data_dir}")
