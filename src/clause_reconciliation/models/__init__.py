"""Data models and enums for the Clause Preference Reconciliation engine."""

from .enums import (
    GroupState,
    OutcomeKind,
    PartyClauseStatus,
    RedLightReason,
    RiskLevel,
    SelectionMethod,
    TemplateStatus,
    VariantStatus,
)
from .catalog import ClauseGroup, Template, Variant
from .preference import NormalizedPreference, PartyPreference
from .outcome import CandidateScore, ReconciliationOutcome, TemplateResult

__all__ = [
    # Enums
    "GroupState",
    "OutcomeKind",
    "PartyClauseStatus",
    "RedLightReason",
    "RiskLevel",
    "SelectionMethod",
    "TemplateStatus",
    "VariantStatus",
    # Catalog models
    "ClauseGroup",
    "Template",
    "Variant",
    # Preference models
    "NormalizedPreference",
    "PartyPreference",
    # Outcome models
    "CandidateScore",
    "ReconciliationOutcome",
    "TemplateResult",
]
