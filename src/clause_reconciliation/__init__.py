"""
Clause Preference Reconciliation

Derives a mutually acceptable wording for every clause group of a contract
template from two negotiating parties' rejections and rankings.
"""

__version__ = "0.1.0"

# Export main components
from .models.enums import (
    GroupState,
    OutcomeKind,
    PartyClauseStatus,
    RedLightReason,
    RiskLevel,
    SelectionMethod,
    TemplateStatus,
)
from .models.catalog import ClauseGroup, Template, Variant
from .models.preference import NormalizedPreference, PartyPreference
from .models.outcome import CandidateScore, ReconciliationOutcome, TemplateResult
from .validation import InvalidPreference, PreferenceValidator, ViolationType
from .reconciliation import ReconciliationEngine, get_tie_break_strategy
from .orchestration import BatchOrchestrator, NegotiationSession, OrchestratorConfig
from .interfaces.audit import AuditEvent, AuditEventType, IAuditLogger
from .audit import AuditLogger, DatabaseManager
from .config import (
    ConfigurationManager,
    ConfigurationError,
    EngineSettings,
    ValidationResult,
)

__all__ = [
    "GroupState",
    "OutcomeKind",
    "PartyClauseStatus",
    "RedLightReason",
    "RiskLevel",
    "SelectionMethod",
    "TemplateStatus",
    "ClauseGroup",
    "Template",
    "Variant",
    "NormalizedPreference",
    "PartyPreference",
    "CandidateScore",
    "ReconciliationOutcome",
    "TemplateResult",
    "InvalidPreference",
    "PreferenceValidator",
    "ViolationType",
    "ReconciliationEngine",
    "get_tie_break_strategy",
    "BatchOrchestrator",
    "NegotiationSession",
    "OrchestratorConfig",
    "AuditEvent",
    "AuditEventType",
    "IAuditLogger",
    "AuditLogger",
    "DatabaseManager",
    "ConfigurationManager",
    "ConfigurationError",
    "EngineSettings",
    "ValidationResult",
]
