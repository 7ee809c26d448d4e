"""Records and aggregates of the learning store.

- QueryRecord: one query interaction, appended to history.jsonl
- CommandSelection: per-command statistics inside a pattern
- QueryPattern: aggregate over all queries that normalize identically,
  stored in patterns.json

Field names are the on-disk JSON keys.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import AwareDatetime, BaseModel, Field

from .scoring import pick_preferred


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_query(query: str) -> str:
    """Normalize a query for pattern matching (trimmed, lower-cased).

    Examples:
        >>> normalize_query("  List Files  ")
        'list files'
    """
    return query.strip().lower()


def _current_dir() -> Optional[Path]:
    try:
        return Path(os.getcwd())
    except OSError:
        return None


class QueryRecord(BaseModel):
    """A single query interaction."""
    id: UUID = Field(default_factory=uuid4)
    timestamp: AwareDatetime = Field(default_factory=utcnow)
    query: str
    results: List[str] = Field(default_factory=list)
    selected_index: Optional[int] = None
    edited_command: Optional[str] = None
    executed: bool = False
    cwd: Optional[Path] = None
    model: str

    @classmethod
    def create(cls, query: str, results: List[str], model: str) -> "QueryRecord":
        """Create a record for a new query, capturing the working directory."""
        return cls(query=query, results=list(results), model=model, cwd=_current_dir())

    def select(self, index: int) -> None:
        """Mark which result the user picked.

        Raises:
            IndexError: If index does not point into results
        """
        if not 0 <= index < len(self.results):
            raise IndexError(f"selection {index} out of range for {len(self.results)} results")
        self.selected_index = index

    def edit(self, edited: str) -> None:
        """Mark that the user edited the command before running it."""
        self.edited_command = edited

    def execute(self) -> None:
        """Mark the command as executed."""
        self.executed = True

    def final_command(self) -> Optional[str]:
        """Get the final command (edited, else selected, else None)."""
        if self.edited_command is not None:
            return self.edited_command
        if self.selected_index is not None and self.selected_index < len(self.results):
            return self.results[self.selected_index]
        return None


class CommandSelection(BaseModel):
    """Selection statistics for one command within a pattern."""
    command: str
    selection_count: int = 1
    last_selected: AwareDatetime = Field(default_factory=utcnow)


class QueryPattern(BaseModel):
    """Aggregated statistics for a normalized query."""
    normalized_query: str
    # Starts at 1 and grows by one per recorded selection
    query_count: int = 1
    preferred_command: Optional[str] = None
    command_history: List[CommandSelection] = Field(default_factory=list)
    last_used: AwareDatetime = Field(default_factory=utcnow)

    @classmethod
    def for_query(cls, query: str) -> "QueryPattern":
        """Create an empty pattern keyed by the normalized form of query."""
        return cls(normalized_query=normalize_query(query))

    def find(self, command: str) -> Optional[CommandSelection]:
        """Get the history entry for an exact command, if any."""
        for selection in self.command_history:
            if selection.command == command:
                return selection
        return None

    def record_selection(self, command: str) -> None:
        """Record that command was chosen for this pattern."""
        now = utcnow()
        self.last_used = now
        self.query_count += 1

        selection = self.find(command)
        if selection is not None:
            selection.selection_count += 1
            selection.last_selected = now
        else:
            self.command_history.append(
                CommandSelection(command=command, selection_count=1, last_selected=now)
            )

        self.preferred_command = pick_preferred(self.command_history)
