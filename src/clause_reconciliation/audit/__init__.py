"""Audit trail and result sink for reconciliation runs."""

from .audit_logger import TEMPLATE_RESULT_ENTITY, AuditLogger
from .database import DatabaseManager, get_database_url
from .models import (
    AuditEventModel,
    VersionHistoryModel,
    Base,
)

__all__ = [
    "AuditLogger",
    "TEMPLATE_RESULT_ENTITY",
    "DatabaseManager",
    "get_database_url",
    "AuditEventModel",
    "VersionHistoryModel",
    "Base",
]
