"""Clause group reconciliation: scoring and tie-break strategies."""

from .engine import ReconciliationEngine, compute_score
from .tie_break import (
    DEFAULT_TIE_BREAK,
    TIE_BREAK_STRATEGIES,
    LowestIdStrategy,
    PartyAPriorityStrategy,
    SeededHashStrategy,
    TieBreakStrategy,
    get_tie_break_strategy,
)

__all__ = [
    "ReconciliationEngine",
    "compute_score",
    "DEFAULT_TIE_BREAK",
    "TIE_BREAK_STRATEGIES",
    "LowestIdStrategy",
    "PartyAPriorityStrategy",
    "SeededHashStrategy",
    "TieBreakStrategy",
    "get_tie_break_strategy",
]
