"""Local learning store for qai.

Records every query interaction, aggregates selections into patterns keyed
by normalized query text, and re-ranks future suggestions:
- EventLog: append-only history.jsonl
- PatternStore: patterns.json snapshot with dirty tracking
- scoring: preferred-command selection and stable re-ranking
- HistoryStore: the facade used by the CLI
"""

from .event_log import EventLog
from .models import (
    CommandSelection,
    QueryPattern,
    QueryRecord,
    normalize_query,
)
from .patterns import PatternStore
from .scoring import PREFERRED_BONUS, pick_preferred, rank_candidates, score_command
from .store import HISTORY_FILENAME, PATTERNS_FILENAME, HistoryStats, HistoryStore

__all__ = [
    # Records
    "QueryRecord",
    "CommandSelection",
    "QueryPattern",
    "normalize_query",
    # Persistence
    "EventLog",
    "PatternStore",
    "HISTORY_FILENAME",
    "PATTERNS_FILENAME",
    # Scoring
    "PREFERRED_BONUS",
    "pick_preferred",
    "score_command",
    "rank_candidates",
    # Facade
    "HistoryStore",
    "HistoryStats",
]
