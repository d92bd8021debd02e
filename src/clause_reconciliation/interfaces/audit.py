"""Audit logger interface for the reconciliation engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AuditEventType(Enum):
    """Types of audit events tracked by the system."""
    PREFERENCE_SUBMITTED = "preference_submitted"
    PREFERENCE_REJECTED = "preference_rejected"
    GROUP_RECONCILED = "group_reconciled"
    TEMPLATE_RECONCILED = "template_reconciled"
    REPORT_EXPORTED = "report_exported"


@dataclass
class AuditEvent:
    """
    Audit event record.

    Represents a single auditable event, including timestamp,
    the template and clause group it concerns, and event details.
    """
    id: str
    event_type: AuditEventType
    timestamp: datetime
    template_id: Optional[str] = None
    clause_group_id: Optional[str] = None
    party_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        if self.metadata is None:
            self.metadata = {}


class IAuditLogger(ABC):
    """
    Abstract interface for audit logging.

    Implementations record and query reconciliation events for
    traceability, and act as the result sink for template results.
    """

    @abstractmethod
    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event.

        Args:
            event: The audit event to record.
        """
        pass

    @abstractmethod
    def get_events(
        self,
        template_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """
        Query audit events with optional filters.

        Args:
            template_id: Filter by template ID.
            event_type: Filter by event type.
            start_time: Filter events after this time.
            end_time: Filter events before this time.

        Returns:
            List of matching audit events.
        """
        pass

    @abstractmethod
    def export_log(
        self,
        template_id: str,
        format: str = "json",
    ) -> str:
        """
        Export the audit log for a template.

        Args:
            template_id: The template ID to export logs for.
            format: Export format ("json" or "csv").

        Returns:
            Exported log content as a string.

        Raises:
            ValueError: If format is not supported.
        """
        pass
