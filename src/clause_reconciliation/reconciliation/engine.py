"""Reconciliation engine for a single clause group.

Given two validated preferences for the same clause group, derives the
selected variant or a red light:

1. No variant survives both rejection sets -> red light.
2. Both parties rank the same variant first -> auto-selected.
3. Exactly one shared variant -> auto-selected.
4. Otherwise the lowest S(v) = rankA + rankB + |rankA - rankB| wins,
   ties broken by smaller disagreement, then smaller rank sum, then the
   configured named tie-break strategy.
"""

import logging
from typing import List, Optional, Union

from ..interfaces.reconciler import IReconciler
from ..models.enums import RedLightReason, SelectionMethod
from ..models.outcome import CandidateScore, ReconciliationOutcome
from ..models.preference import NormalizedPreference
from .tie_break import DEFAULT_TIE_BREAK, TieBreakStrategy, get_tie_break_strategy


logger = logging.getLogger(__name__)


def compute_score(rank_a: int, rank_b: int) -> int:
    """S = sum of both ranks plus their absolute disagreement."""
    return rank_a + rank_b + abs(rank_a - rank_b)


class ReconciliationEngine(IReconciler):
    """
    Pure reconciliation of two parties' preferences.

    The engine holds no state besides its tie-break strategy and performs
    no catalog lookups; inputs must already be validated.
    """

    def __init__(
        self,
        tie_break: Union[TieBreakStrategy, str] = DEFAULT_TIE_BREAK,
        seed: Optional[str] = None,
    ):
        """
        Initialize the reconciliation engine.

        Args:
            tie_break: Strategy instance or registered strategy name.
            seed: Seed passed to named strategies that use one.
        """
        if isinstance(tie_break, str):
            tie_break = get_tie_break_strategy(tie_break, seed=seed)
        self._tie_break = tie_break

    @property
    def tie_break(self) -> TieBreakStrategy:
        return self._tie_break

    @property
    def tie_break_name(self) -> str:
        return self._tie_break.name

    def reconcile(
        self,
        preference_a: NormalizedPreference,
        preference_b: NormalizedPreference,
    ) -> ReconciliationOutcome:
        """
        Derive the outcome for one clause group.

        Args:
            preference_a: Party A's validated preference.
            preference_b: Party B's validated preference.

        Returns:
            ReconciliationOutcome for the clause group.

        Raises:
            ValueError: If the preferences belong to different clause groups.
        """
        group_id = preference_a.clause_group_id
        if preference_b.clause_group_id != group_id:
            raise ValueError(
                f"Cannot reconcile preferences of different clause groups: "
                f"'{group_id}' and '{preference_b.clause_group_id}'"
            )

        # Shared set, kept in party A's preference order for stable output.
        shared = [v for v in preference_a.ranking if v in preference_b.ranks]

        if not shared:
            logger.debug("Group %s: no shared variant, red light", group_id)
            return ReconciliationOutcome.red_light(
                group_id,
                RedLightReason.NO_SHARED_VARIANT,
                reasoning="No variant survives both parties' rejections",
            )

        top_a = preference_a.top_choice
        if top_a is not None and top_a == preference_b.top_choice:
            logger.debug("Group %s: unanimous top choice %s", group_id, top_a)
            return ReconciliationOutcome.auto_selected(
                group_id,
                top_a,
                SelectionMethod.UNANIMOUS_TOP_CHOICE,
                reasoning="Both parties ranked this variant first",
                alternatives=[v for v in shared if v != top_a],
            )

        if len(shared) == 1:
            logger.debug("Group %s: single surviving variant %s", group_id, shared[0])
            return ReconciliationOutcome.auto_selected(
                group_id,
                shared[0],
                SelectionMethod.SINGLE_SURVIVOR,
                reasoning="Only variant acceptable to both parties",
                candidate_scores=[
                    CandidateScore(
                        variant_id=shared[0],
                        rank_a=preference_a.ranks[shared[0]],
                        rank_b=preference_b.ranks[shared[0]],
                    )
                ],
            )

        return self._scored_selection(group_id, shared, preference_a, preference_b)

    def _scored_selection(
        self,
        group_id: str,
        shared: List[str],
        preference_a: NormalizedPreference,
        preference_b: NormalizedPreference,
    ) -> ReconciliationOutcome:
        """Apply the scoring rule to two or more shared candidates."""
        candidates = [
            CandidateScore(
                variant_id=v,
                rank_a=preference_a.ranks[v],
                rank_b=preference_b.ranks[v],
            )
            for v in shared
        ]

        best_key = min(c.sort_key for c in candidates)
        tied = [c for c in candidates if c.sort_key == best_key]

        tie_break_used = None
        if len(tied) > 1:
            winner = self._tie_break.choose(group_id, tied)
            tie_break_used = self._tie_break.describe()
            logger.debug(
                "Group %s: %d candidates tied at S=%d, %s picked %s",
                group_id,
                len(tied),
                winner.score,
                tie_break_used,
                winner.variant_id,
            )
        else:
            winner = tied[0]

        ordered = sorted(candidates, key=lambda c: (c.sort_key, c.variant_id))
        reasoning = (
            f"Best compromise: {preference_a.party_id} ranked #{winner.rank_a}, "
            f"{preference_b.party_id} ranked #{winner.rank_b} (score {winner.score})"
        )
        if tie_break_used:
            reasoning += f"; tie resolved by {tie_break_used}"

        return ReconciliationOutcome.scored(
            group_id,
            winner.variant_id,
            winner.score,
            candidate_scores=ordered,
            reasoning=reasoning,
            alternatives=[c.variant_id for c in ordered if c.variant_id != winner.variant_id],
            tie_break=tie_break_used,
        )
