"""Exceptions raised while validating party preferences."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ViolationType(Enum):
    """Specific ways a submitted preference can be malformed."""
    GROUP_MISMATCH = "group_mismatch"
    MALFORMED = "malformed"
    UNKNOWN_VARIANT = "unknown_variant"
    DUPLICATE_VARIANT = "duplicate_variant"
    PARTITION_MISMATCH = "partition_mismatch"
    RANK_GAP = "rank_gap"


@dataclass(eq=False)
class InvalidPreference(Exception):
    """
    Raised when a party's submission does not fit the clause catalog.

    Attributes:
        message: Human-readable error description.
        violation: Which check failed.
        clause_group_id: Clause group the submission was for.
        party_id: Submitting party.
        variant_ids: Offending variant ids, sorted.
        details: Additional context.
    """
    message: str
    violation: ViolationType
    clause_group_id: Optional[str] = None
    party_id: Optional[str] = None
    variant_ids: List[str] = field(default_factory=list)
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        self.variant_ids = sorted(self.variant_ids)
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [f"{self.violation.value}: {self.message}"]
        if self.clause_group_id:
            parts.append(f"Clause group: {self.clause_group_id}")
        if self.party_id:
            parts.append(f"Party: {self.party_id}")
        if self.variant_ids:
            parts.append(f"Variants: {', '.join(self.variant_ids)}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "violation": self.violation.value,
            "message": self.message,
            "clause_group_id": self.clause_group_id,
            "party_id": self.party_id,
            "variant_ids": list(self.variant_ids),
            "details": self.details,
        }
