"""Template-level orchestration of clause group reconciliation."""

from .batch_orchestrator import (
    BatchOrchestrator,
    OrchestratorConfig,
    OrchestratorStats,
    missing_preference_outcome,
)
from .negotiation_session import GroupStatus, NegotiationSession

__all__ = [
    "BatchOrchestrator",
    "OrchestratorConfig",
    "OrchestratorStats",
    "missing_preference_outcome",
    "GroupStatus",
    "NegotiationSession",
]
