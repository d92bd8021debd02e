"""Enumerations for the Clause Preference Reconciliation engine."""

from enum import Enum


class RiskLevel(Enum):
    """Risk rating attached to a clause variant in the catalog."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VariantStatus(Enum):
    """Publication status of a catalog variant."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class OutcomeKind(Enum):
    """Kinds of reconciliation outcome for a single clause group."""
    AUTO_SELECTED = "auto_selected"
    SCORED_SELECTION = "scored_selection"
    RED_LIGHT = "red_light"


class SelectionMethod(Enum):
    """How the engine arrived at an outcome."""
    UNANIMOUS_TOP_CHOICE = "unanimous_top_choice"
    SINGLE_SURVIVOR = "single_survivor"
    SCORED = "scored"
    NONE = "none"


class RedLightReason(Enum):
    """Why a clause group could not be resolved."""
    NO_SHARED_VARIANT = "no_shared_variant"
    MISSING_PREFERENCE = "missing_preference"
    INVALID_PREFERENCE = "invalid_preference"


class TemplateStatus(Enum):
    """Overall status of a reconciled template."""
    RESOLVED = "resolved"
    BLOCKED = "blocked"


class GroupState(Enum):
    """Submission state of a clause group inside a negotiation session."""
    PENDING = "pending"
    PARTIALLY_SUBMITTED = "partially_submitted"
    BOTH_SUBMITTED = "both_submitted"


class PartyClauseStatus(Enum):
    """How a reconciled clause looks from one party's point of view."""
    PREFERRED = "preferred"
    COMPROMISE = "compromise"
    UNRESOLVED = "unresolved"
