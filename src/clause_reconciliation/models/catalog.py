"""Clause catalog data models.

The catalog is read-only input to the engine: a template is an ordered
collection of clause groups, and each group offers a set of named variants.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .enums import RiskLevel


@dataclass(frozen=True)
class Variant:
    """
    One candidate wording for a clause group.

    Variants are immutable once published in the catalog.
    """
    id: str
    label: str
    legal_text: str = ""
    risk_level: RiskLevel = RiskLevel.MEDIUM

    @property
    def wording(self) -> str:
        """Full wording when the catalog carries it, otherwise the label."""
        return self.legal_text or self.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "legal_text": self.legal_text,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class ClauseGroup:
    """
    A negotiable section of a contract template.

    Variant order is catalog order. It drives stable output ordering
    and is never used for ranking.
    """
    id: str
    label: str
    variants: Tuple[Variant, ...] = field(default_factory=tuple)
    category: str = "general"
    required: bool = True
    description: Optional[str] = None

    def __post_init__(self):
        # Accept any sequence from callers but store an immutable tuple.
        object.__setattr__(self, "variants", tuple(self.variants))
        ids = [v.id for v in self.variants]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Clause group '{self.id}' has duplicate variant ids")

    @property
    def variant_ids(self) -> FrozenSet[str]:
        """All variant ids of the group."""
        return frozenset(v.id for v in self.variants)

    def get_variant(self, variant_id: str) -> Optional[Variant]:
        """Get a variant by id."""
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def label_of(self, variant_id: str) -> str:
        """Display label for a variant id, falling back to the id itself."""
        variant = self.get_variant(variant_id)
        return variant.label if variant else variant_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category,
            "required": self.required,
            "description": self.description,
            "variants": [v.to_dict() for v in self.variants],
        }


@dataclass(frozen=True)
class Template:
    """
    Contract template: an ordered sequence of clause groups.
    """
    id: str
    name: str
    clause_groups: Tuple[ClauseGroup, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "clause_groups", tuple(self.clause_groups))
        ids = [g.id for g in self.clause_groups]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Template '{self.id}' has duplicate clause group ids")

    def get_group(self, group_id: str) -> Optional[ClauseGroup]:
        """Get a clause group by id."""
        for group in self.clause_groups:
            if group.id == group_id:
                return group
        return None

    @property
    def group_ids(self) -> Tuple[str, ...]:
        """Clause group ids in catalog order."""
        return tuple(g.id for g in self.clause_groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "clause_groups": [g.to_dict() for g in self.clause_groups],
        }
