"""Reconciliation outcome data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .enums import (
    OutcomeKind,
    RedLightReason,
    SelectionMethod,
    TemplateStatus,
)


@dataclass(frozen=True)
class CandidateScore:
    """
    Scoring detail for one shared variant.

    ``score`` is S(v) = rankA + rankB + |rankA - rankB|.
    """
    variant_id: str
    rank_a: int
    rank_b: int

    @property
    def disagreement(self) -> int:
        return abs(self.rank_a - self.rank_b)

    @property
    def rank_sum(self) -> int:
        return self.rank_a + self.rank_b

    @property
    def score(self) -> int:
        return self.rank_sum + self.disagreement

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        """Ordering before the named tie-break: S, then disagreement, then sum."""
        return (self.score, self.disagreement, self.rank_sum)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant_id": self.variant_id,
            "rank_a": self.rank_a,
            "rank_b": self.rank_b,
            "score": self.score,
            "disagreement": self.disagreement,
            "rank_sum": self.rank_sum,
        }


@dataclass(frozen=True)
class ReconciliationOutcome:
    """
    Outcome of reconciling one clause group.

    Exactly one of three shapes, distinguished by ``kind``:

    - AUTO_SELECTED: ``variant_id`` set, ``score`` None.
    - SCORED_SELECTION: ``variant_id`` and ``score`` set.
    - RED_LIGHT: ``reason`` set, no variant.

    Use the ``auto_selected``, ``scored`` and ``red_light`` constructors
    rather than building instances by hand.
    """
    clause_group_id: str
    kind: OutcomeKind
    method: SelectionMethod = SelectionMethod.NONE
    variant_id: Optional[str] = None
    score: Optional[int] = None
    reason: Optional[RedLightReason] = None
    reasoning: str = ""
    alternatives: Tuple[str, ...] = field(default_factory=tuple)
    candidate_scores: Tuple[CandidateScore, ...] = field(default_factory=tuple)
    tie_break: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "alternatives", tuple(self.alternatives))
        object.__setattr__(self, "candidate_scores", tuple(self.candidate_scores))

    @classmethod
    def auto_selected(
        cls,
        clause_group_id: str,
        variant_id: str,
        method: SelectionMethod,
        reasoning: str = "",
        alternatives: Iterable[str] = (),
        candidate_scores: Iterable[CandidateScore] = (),
    ) -> "ReconciliationOutcome":
        return cls(
            clause_group_id=clause_group_id,
            kind=OutcomeKind.AUTO_SELECTED,
            method=method,
            variant_id=variant_id,
            reasoning=reasoning,
            alternatives=tuple(alternatives),
            candidate_scores=tuple(candidate_scores),
        )

    @classmethod
    def scored(
        cls,
        clause_group_id: str,
        variant_id: str,
        score: int,
        candidate_scores: Iterable[CandidateScore],
        reasoning: str = "",
        alternatives: Iterable[str] = (),
        tie_break: Optional[str] = None,
    ) -> "ReconciliationOutcome":
        return cls(
            clause_group_id=clause_group_id,
            kind=OutcomeKind.SCORED_SELECTION,
            method=SelectionMethod.SCORED,
            variant_id=variant_id,
            score=score,
            reasoning=reasoning,
            alternatives=tuple(alternatives),
            candidate_scores=tuple(candidate_scores),
            tie_break=tie_break,
        )

    @classmethod
    def red_light(
        cls,
        clause_group_id: str,
        reason: RedLightReason,
        reasoning: str = "",
    ) -> "ReconciliationOutcome":
        return cls(
            clause_group_id=clause_group_id,
            kind=OutcomeKind.RED_LIGHT,
            reason=reason,
            reasoning=reasoning,
        )

    @property
    def is_red_light(self) -> bool:
        return self.kind == OutcomeKind.RED_LIGHT

    @property
    def selected_variant(self) -> Optional[str]:
        """Selected variant id, None for a red light."""
        return self.variant_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_group_id": self.clause_group_id,
            "kind": self.kind.value,
            "method": self.method.value,
            "variant_id": self.variant_id,
            "score": self.score,
            "reason": self.reason.value if self.reason else None,
            "reasoning": self.reasoning,
            "alternatives": list(self.alternatives),
            "candidate_scores": [c.to_dict() for c in self.candidate_scores],
            "tie_break": self.tie_break,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconciliationOutcome":
        return cls(
            clause_group_id=data["clause_group_id"],
            kind=OutcomeKind(data["kind"]),
            method=SelectionMethod(data.get("method", SelectionMethod.NONE.value)),
            variant_id=data.get("variant_id"),
            score=data.get("score"),
            reason=RedLightReason(data["reason"]) if data.get("reason") else None,
            reasoning=data.get("reasoning", ""),
            alternatives=tuple(data.get("alternatives") or ()),
            candidate_scores=tuple(
                CandidateScore(
                    variant_id=c["variant_id"],
                    rank_a=c["rank_a"],
                    rank_b=c["rank_b"],
                )
                for c in data.get("candidate_scores") or ()
            ),
            tie_break=data.get("tie_break"),
        )


@dataclass(frozen=True)
class TemplateResult:
    """
    Reconciliation result for a whole template.

    Outcomes are held in catalog order. ``status`` is derived: RESOLVED
    when no outcome is a red light, BLOCKED otherwise.
    """
    template_id: str
    party_a_id: str
    party_b_id: str
    outcomes: Tuple[ReconciliationOutcome, ...] = field(default_factory=tuple)
    reconciled_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        compare=False,
    )

    def __post_init__(self):
        object.__setattr__(self, "outcomes", tuple(self.outcomes))

    @property
    def status(self) -> TemplateStatus:
        if any(o.is_red_light for o in self.outcomes):
            return TemplateStatus.BLOCKED
        return TemplateStatus.RESOLVED

    @property
    def entries(self) -> Tuple[Tuple[str, ReconciliationOutcome], ...]:
        """(clause group id, outcome) pairs in catalog order."""
        return tuple((o.clause_group_id, o) for o in self.outcomes)

    @property
    def resolved_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.is_red_light)

    def red_light_groups(self) -> List[str]:
        """Ids of the clause groups that are red-lighted."""
        return [o.clause_group_id for o in self.outcomes if o.is_red_light]

    def outcome_for(self, clause_group_id: str) -> Optional[ReconciliationOutcome]:
        for outcome in self.outcomes:
            if outcome.clause_group_id == clause_group_id:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "party_a_id": self.party_a_id,
            "party_b_id": self.party_b_id,
            "status": self.status.value,
            "resolved_count": self.resolved_count,
            "red_light_groups": self.red_light_groups(),
            "reconciled_at": self.reconciled_at,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateResult":
        return cls(
            template_id=data["template_id"],
            party_a_id=data["party_a_id"],
            party_b_id=data["party_b_id"],
            outcomes=tuple(
                ReconciliationOutcome.from_dict(o) for o in data.get("outcomes", [])
            ),
            reconciled_at=data.get("reconciled_at", ""),
        )
