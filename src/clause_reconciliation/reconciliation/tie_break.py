"""Named, deterministic tie-break strategies.

The final tie-break of the scoring rule runs only after S, rank
disagreement and rank sum have all tied. Every strategy here is
reproducible: the same clause group and candidates always yield the same
winner.
"""

import hashlib
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Type

from ..models.outcome import CandidateScore


class TieBreakStrategy(ABC):
    """Chooses one candidate among fully tied candidates."""

    name: str = ""

    @abstractmethod
    def choose(
        self,
        clause_group_id: str,
        candidates: Sequence[CandidateScore],
    ) -> CandidateScore:
        """
        Pick the winner among tied candidates.

        Args:
            clause_group_id: Clause group being reconciled.
            candidates: Two or more candidates tied on every scoring key.

        Returns:
            The selected candidate.
        """
        pass

    def describe(self) -> str:
        return self.name


class LowestIdStrategy(TieBreakStrategy):
    """Smallest variant id wins (plain string ordering)."""

    name = "lowest-id"

    def choose(self, clause_group_id, candidates):
        return min(candidates, key=lambda c: c.variant_id)


class SeededHashStrategy(TieBreakStrategy):
    """
    Smallest SHA-256 digest of ``seed|clause_group_id|variant_id`` wins.

    Spreads wins across variant ids independently of how they are
    spelled, while staying reproducible for a fixed seed.
    """

    name = "seeded-hash"

    def __init__(self, seed: str = ""):
        self.seed = seed

    def _digest(self, clause_group_id: str, variant_id: str) -> str:
        material = f"{self.seed}|{clause_group_id}|{variant_id}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    def choose(self, clause_group_id, candidates):
        return min(
            candidates,
            key=lambda c: (self._digest(clause_group_id, c.variant_id), c.variant_id),
        )

    def describe(self) -> str:
        return f"{self.name}(seed={self.seed!r})" if self.seed else self.name


class PartyAPriorityStrategy(TieBreakStrategy):
    """The candidate party A ranks better wins."""

    name = "party-a-priority"

    def choose(self, clause_group_id, candidates):
        return min(candidates, key=lambda c: (c.rank_a, c.variant_id))


TIE_BREAK_STRATEGIES: Dict[str, Type[TieBreakStrategy]] = {
    LowestIdStrategy.name: LowestIdStrategy,
    SeededHashStrategy.name: SeededHashStrategy,
    PartyAPriorityStrategy.name: PartyAPriorityStrategy,
}

DEFAULT_TIE_BREAK = LowestIdStrategy.name


def get_tie_break_strategy(name: str, seed: Optional[str] = None) -> TieBreakStrategy:
    """
    Build a tie-break strategy by name.

    Args:
        name: One of ``TIE_BREAK_STRATEGIES``.
        seed: Seed for ``seeded-hash``; ignored by the other strategies.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        strategy_cls = TIE_BREAK_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown tie-break strategy '{name}'. "
            f"Available: {sorted(TIE_BREAK_STRATEGIES)}"
        ) from None

    if strategy_cls is SeededHashStrategy:
        return SeededHashStrategy(seed=seed or "")
    return strategy_cls()
