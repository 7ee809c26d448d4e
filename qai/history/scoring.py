"""Scoring and re-ranking of model suggestions from selection history.

A candidate command earns:
- PREFERRED_BONUS if it is the pattern's preferred command
- ln(selection_count + 1) if it appears in the pattern's history

Log scaling keeps frequently chosen commands ahead of unseen ones without
letting a single command dominate arbitrarily.
"""

import math
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from .models import CommandSelection, QueryPattern

PREFERRED_BONUS = 10.0


def pick_preferred(history: Iterable["CommandSelection"]) -> Optional[str]:
    """Pick the most selected command from a pattern's history.

    Scans in insertion order keeping a running maximum with >=, so among
    entries tied on selection_count the last one wins.

    Returns:
        The preferred command, or None for an empty history
    """
    best: Optional["CommandSelection"] = None
    for selection in history:
        if best is None or selection.selection_count >= best.selection_count:
            best = selection
    return best.command if best is not None else None


def score_command(command: str, pattern: "QueryPattern") -> float:
    """Score a command against a pattern's history (0.0 when unknown)."""
    score = 0.0

    if pattern.preferred_command is not None and pattern.preferred_command == command:
        score += PREFERRED_BONUS

    for selection in pattern.command_history:
        if selection.command == command:
            score += math.log(selection.selection_count + 1)

    return score


def rank_candidates(candidates: List[str], pattern: "QueryPattern") -> List[str]:
    """Order candidates by descending score.

    sorted() is stable with reverse=True, so candidates with equal scores
    keep the order the model returned them in.
    """
    return sorted(candidates, key=lambda cmd: score_command(cmd, pattern), reverse=True)
