"""Pattern snapshot store (patterns.json).

Holds the mapping of normalized query -> QueryPattern in memory and
persists it as a single JSON object, rewritten wholesale on save. Writes
only happen when the mapping is dirty.

The snapshot is derived data: if it cannot be read or parsed, the store
starts from an empty mapping instead of failing.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..errors import HistoryError
from .models import QueryPattern, normalize_query

logger = logging.getLogger(__name__)

_SNAPSHOT = TypeAdapter(Dict[str, QueryPattern])


class PatternStore:
    """In-memory pattern mapping with a dirty-tracked JSON snapshot."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._patterns: Dict[str, QueryPattern] = {}
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def load(self) -> None:
        """Replace the in-memory mapping with the snapshot on disk."""
        self._patterns = {}
        self._dirty = False
        if not self.path.exists():
            return

        try:
            self._patterns = _SNAPSHOT.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(f"Discarding unreadable pattern snapshot {self.path}: {e}")
            self._patterns = {}

    def save(self) -> None:
        """Write the snapshot if anything changed since the last write."""
        if not self._dirty:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(_SNAPSHOT.dump_json(self._patterns, indent=2))
        except OSError as e:
            raise HistoryError(f"Failed to write patterns file {self.path}: {e}") from e

        self._dirty = False

    def get(self, query: str) -> Optional[QueryPattern]:
        """Look up the pattern for a query (normalized first)."""
        return self._patterns.get(normalize_query(query))

    def get_or_create(self, query: str) -> QueryPattern:
        """Get the pattern for a query, creating an empty one if needed."""
        key = normalize_query(query)
        pattern = self._patterns.get(key)
        if pattern is None:
            pattern = QueryPattern.for_query(query)
            self._patterns[key] = pattern
        return pattern

    def values(self) -> List[QueryPattern]:
        return list(self._patterns.values())

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[str]:
        return iter(self._patterns)

    def reset(self) -> None:
        """Forget all patterns and delete the snapshot file.

        Leaves the store clean: an empty snapshot is only written by the
        next mutation.
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise HistoryError(f"Failed to remove patterns file {self.path}: {e}") from e
        self._patterns = {}
        self._dirty = False
