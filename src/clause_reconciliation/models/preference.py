"""Party preference data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PartyPreference:
    """
    A party's submitted input for one clause group.

    ``rejected`` and ``ranking`` must partition the group's variant set;
    rank 1 is the first element of ``ranking``. Instances are immutable:
    a resubmission is a new preference with a higher ``version``.
    """
    clause_group_id: str
    party_id: str
    rejected: FrozenSet[str] = field(default_factory=frozenset)
    ranking: Tuple[str, ...] = field(default_factory=tuple)
    version: int = 1
    submitted_at: str = field(default_factory=_now_iso, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "rejected", frozenset(self.rejected))
        object.__setattr__(self, "ranking", tuple(self.ranking))

    @property
    def key(self) -> Tuple[str, str]:
        """(clause group id, party id)."""
        return (self.clause_group_id, self.party_id)

    def revise(
        self,
        rejected: Iterable[str],
        ranking: Iterable[str],
    ) -> "PartyPreference":
        """Create the next version of this preference."""
        return PartyPreference(
            clause_group_id=self.clause_group_id,
            party_id=self.party_id,
            rejected=frozenset(rejected),
            ranking=tuple(ranking),
            version=self.version + 1,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_group_id": self.clause_group_id,
            "party_id": self.party_id,
            "rejected": sorted(self.rejected),
            "ranking": list(self.ranking),
            "version": self.version,
            "submitted_at": self.submitted_at,
        }


@dataclass(frozen=True)
class NormalizedPreference:
    """
    Validated party preference.

    The ranking is held as an explicit ``variant id -> rank`` mapping so
    the reconciliation algorithm can look ranks up in constant time.
    Only the validator should build these.
    """
    clause_group_id: str
    party_id: str
    rejected: FrozenSet[str]
    ranks: Mapping[str, int] = field(hash=False)
    version: int = 1
    submitted_at: str = field(default_factory=_now_iso, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "rejected", frozenset(self.rejected))
        object.__setattr__(self, "ranks", MappingProxyType(dict(self.ranks)))

    @property
    def key(self) -> Tuple[str, str]:
        return (self.clause_group_id, self.party_id)

    @property
    def ranking(self) -> Tuple[str, ...]:
        """Ranked variant ids, most preferred first."""
        return tuple(sorted(self.ranks, key=self.ranks.__getitem__))

    @property
    def top_choice(self) -> Optional[str]:
        """The rank-1 variant, or None when everything was rejected."""
        for variant_id, rank in self.ranks.items():
            if rank == 1:
                return variant_id
        return None

    def rank_of(self, variant_id: str) -> Optional[int]:
        return self.ranks.get(variant_id)

    def to_preference(self) -> PartyPreference:
        """Convert back to the submitted (sequence) form."""
        return PartyPreference(
            clause_group_id=self.clause_group_id,
            party_id=self.party_id,
            rejected=self.rejected,
            ranking=self.ranking,
            version=self.version,
            submitted_at=self.submitted_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_group_id": self.clause_group_id,
            "party_id": self.party_id,
            "rejected": sorted(self.rejected),
            "ranking": list(self.ranking),
            "ranks": dict(self.ranks),
            "version": self.version,
            "submitted_at": self.submitted_at,
        }
