"""Abstract interfaces for the Clause Preference Reconciliation engine."""

from .validator import IPreferenceValidator
from .reconciler import IReconciler
from .audit import AuditEvent, AuditEventType, IAuditLogger

__all__ = [
    "IPreferenceValidator",
    "IReconciler",
    "AuditEvent",
    "AuditEventType",
    "IAuditLogger",
]
