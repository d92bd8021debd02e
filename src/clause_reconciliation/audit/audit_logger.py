"""Audit logger and result sink for reconciliation runs."""

import csv
import io
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select

from ..interfaces.audit import AuditEvent, AuditEventType, IAuditLogger
from ..models.outcome import ReconciliationOutcome, TemplateResult
from .database import DatabaseManager
from .models import AuditEventModel, VersionHistoryModel


TEMPLATE_RESULT_ENTITY = "template_result"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _event_type_value(event_type) -> str:
    return event_type.value if isinstance(event_type, AuditEventType) else event_type


class AuditLogger(IAuditLogger):
    """
    Audit logger backed by SQLAlchemy.

    Records submissions, rejections and outcomes for traceability and
    keeps versioned snapshots of every TemplateResult.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the audit logger.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
            self._owns_db_manager = False
        else:
            self._db_manager = DatabaseManager(database_url=database_url)
            self._owns_db_manager = True

    def _to_model(self, event: AuditEvent) -> AuditEventModel:
        return AuditEventModel(
            id=str(event.id),
            event_type=_event_type_value(event.event_type),
            timestamp=event.timestamp,
            template_id=event.template_id,
            clause_group_id=event.clause_group_id,
            party_id=event.party_id,
            details=event.details or {},
            metadata_=event.metadata or {},
        )

    def _from_model(self, model: AuditEventModel) -> AuditEvent:
        return AuditEvent(
            id=str(model.id),
            event_type=AuditEventType(model.event_type),
            timestamp=model.timestamp,
            template_id=model.template_id,
            clause_group_id=model.clause_group_id,
            party_id=model.party_id,
            details=model.details or {},
            metadata=model.metadata_ or {},
        )

    def log_event(self, event: AuditEvent) -> None:
        """Record an audit event to the database."""
        model = self._to_model(event)
        with self._db_manager.get_session() as session:
            session.add(model)

    def get_events(
        self,
        template_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """
        Query audit events with optional filters, newest first.

        Args:
            template_id: Filter by template ID.
            event_type: Filter by event type.
            start_time: Filter events after this time.
            end_time: Filter events before this time.
        """
        with self._db_manager.get_session() as session:
            query = select(AuditEventModel)

            conditions = []
            if template_id:
                conditions.append(AuditEventModel.template_id == template_id)
            if event_type:
                conditions.append(AuditEventModel.event_type == _event_type_value(event_type))
            if start_time:
                conditions.append(AuditEventModel.timestamp >= start_time)
            if end_time:
                conditions.append(AuditEventModel.timestamp <= end_time)

            if conditions:
                query = query.where(and_(*conditions))

            query = query.order_by(AuditEventModel.timestamp.desc())

            models = session.execute(query).scalars().all()
            return [self._from_model(m) for m in models]

    def export_log(
        self,
        template_id: str,
        format: str = "json",
    ) -> str:
        """
        Export the audit log of a template.

        Raises:
            ValueError: If format is not supported.
        """
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {format}. Use 'json' or 'csv'.")

        events = self.get_events(template_id=template_id)

        if format == "json":
            return self._export_json(template_id, events)
        return self._export_csv(events)

    def _export_json(self, template_id: str, events: List[AuditEvent]) -> str:
        """Export events to JSON, with an outcome table built from group events."""
        outcome_table = []
        for e in events:
            if _event_type_value(e.event_type) == AuditEventType.GROUP_RECONCILED.value:
                outcome_table.append({
                    "clause_group_id": e.clause_group_id,
                    "kind": e.details.get("kind"),
                    "variant_id": e.details.get("variant_id"),
                    "score": e.details.get("score"),
                    "reason": e.details.get("reason"),
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                })

        red_lights = sum(1 for row in outcome_table if row["kind"] == "red_light")
        rejections = sum(
            1 for e in events
            if _event_type_value(e.event_type) == AuditEventType.PREFERENCE_REJECTED.value
        )

        data = {
            "template_id": template_id,
            "export_timestamp": _now().isoformat(),
            "event_count": len(events),
            "outcome_table": outcome_table,
            "outcome_summary": {
                "groups_reconciled": len(outcome_table),
                "red_lights": red_lights,
                "rejected_submissions": rejections,
            },
            "events": [
                {
                    "id": e.id,
                    "event_type": _event_type_value(e.event_type),
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                    "template_id": e.template_id,
                    "clause_group_id": e.clause_group_id,
                    "party_id": e.party_id,
                    "details": e.details,
                    "metadata": e.metadata,
                }
                for e in events
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _export_csv(self, events: List[AuditEvent]) -> str:
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "id", "event_type", "timestamp", "template_id",
            "clause_group_id", "party_id", "details", "metadata",
        ])

        for e in events:
            writer.writerow([
                e.id,
                _event_type_value(e.event_type),
                e.timestamp.isoformat() if e.timestamp else "",
                e.template_id or "",
                e.clause_group_id or "",
                e.party_id or "",
                json.dumps(e.details, ensure_ascii=False),
                json.dumps(e.metadata, ensure_ascii=False),
            ])

        return output.getvalue()

    # ========== Version History Methods ==========

    def save_version(
        self,
        entity_type: str,
        entity_id: str,
        snapshot: Dict[str, Any],
    ) -> int:
        """
        Save a version snapshot for an entity.

        Returns:
            The version number assigned to this snapshot.
        """
        with self._db_manager.get_session() as session:
            query = select(VersionHistoryModel.version).where(
                and_(
                    VersionHistoryModel.entity_type == entity_type,
                    VersionHistoryModel.entity_id == entity_id,
                )
            ).order_by(VersionHistoryModel.version.desc()).limit(1)

            latest = session.execute(query).scalar()
            new_version = (latest or 0) + 1

            session.add(VersionHistoryModel(
                entity_type=entity_type,
                entity_id=entity_id,
                version=new_version,
                snapshot=snapshot,
            ))
            return new_version

    def get_version(
        self,
        entity_type: str,
        entity_id: str,
        version: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get a version snapshot for an entity.

        Args:
            entity_type: Type of entity.
            entity_id: ID of the entity.
            version: Specific version to retrieve. If None, returns latest.

        Returns:
            The snapshot data, or None if not found.
        """
        with self._db_manager.get_session() as session:
            query = select(VersionHistoryModel).where(
                and_(
                    VersionHistoryModel.entity_type == entity_type,
                    VersionHistoryModel.entity_id == entity_id,
                )
            )

            if version is not None:
                query = query.where(VersionHistoryModel.version == version)
            else:
                query = query.order_by(VersionHistoryModel.version.desc())

            record = session.execute(query.limit(1)).scalar()
            return record.snapshot if record else None

    def get_version_history(
        self,
        entity_type: str,
        entity_id: str,
    ) -> List[Dict[str, Any]]:
        """List all version snapshots of an entity, oldest first."""
        with self._db_manager.get_session() as session:
            query = select(VersionHistoryModel).where(
                and_(
                    VersionHistoryModel.entity_type == entity_type,
                    VersionHistoryModel.entity_id == entity_id,
                )
            ).order_by(VersionHistoryModel.version.asc())

            records = session.execute(query).scalars().all()
            return [
                {
                    "version": r.version,
                    "snapshot": r.snapshot,
                    "created_at": r.created_at.isoformat() if r.created_at else None,
                }
                for r in records
            ]

    def save_result(self, result: TemplateResult) -> int:
        """Store a TemplateResult snapshot under its template id."""
        return self.save_version(TEMPLATE_RESULT_ENTITY, result.template_id, result.to_dict())

    def get_result(self, template_id: str, version: Optional[int] = None) -> Optional[TemplateResult]:
        """Load a stored TemplateResult, latest version unless one is given."""
        snapshot = self.get_version(TEMPLATE_RESULT_ENTITY, template_id, version)
        return TemplateResult.from_dict(snapshot) if snapshot else None

    # ========== Convenience Logging Methods ==========

    def log_preference_submitted(
        self,
        template_id: Optional[str],
        clause_group_id: str,
        party_id: str,
        version: int,
        ranked_count: int,
        rejected_count: int,
    ) -> None:
        """Log an accepted preference submission."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.PREFERENCE_SUBMITTED,
            timestamp=_now(),
            template_id=template_id,
            clause_group_id=clause_group_id,
            party_id=party_id,
            details={
                "version": version,
                "ranked_count": ranked_count,
                "rejected_count": rejected_count,
            },
        ))

    def log_preference_rejected(
        self,
        template_id: Optional[str],
        clause_group_id: str,
        party_id: str,
        violation: str,
        message: str,
        variant_ids: Optional[List[str]] = None,
    ) -> None:
        """Log a submission that failed validation."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.PREFERENCE_REJECTED,
            timestamp=_now(),
            template_id=template_id,
            clause_group_id=clause_group_id,
            party_id=party_id,
            details={
                "violation": violation,
                "message": message,
                "variant_ids": list(variant_ids or []),
            },
        ))

    def log_group_reconciled(
        self,
        template_id: Optional[str],
        outcome: ReconciliationOutcome,
        tie_break_strategy: Optional[str] = None,
    ) -> None:
        """Log the outcome of one clause group."""
        details = outcome.to_dict()
        details.pop("clause_group_id", None)
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.GROUP_RECONCILED,
            timestamp=_now(),
            template_id=template_id,
            clause_group_id=outcome.clause_group_id,
            details=details,
            metadata={"tie_break_strategy": tie_break_strategy} if tie_break_strategy else {},
        ))

    def log_template_reconciled(
        self,
        result: TemplateResult,
        version: Optional[int] = None,
        duration: Optional[float] = None,
    ) -> None:
        """Log a completed template reconciliation."""
        metadata: Dict[str, Any] = {}
        if version is not None:
            metadata["snapshot_version"] = version
        if duration is not None:
            metadata["duration"] = duration

        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.TEMPLATE_RECONCILED,
            timestamp=_now(),
            template_id=result.template_id,
            details={
                "status": result.status.value,
                "party_a_id": result.party_a_id,
                "party_b_id": result.party_b_id,
                "group_count": len(result.outcomes),
                "resolved_count": result.resolved_count,
                "red_light_groups": result.red_light_groups(),
            },
            metadata=metadata,
        ))

    def log_report_exported(
        self,
        template_id: str,
        export_path: str,
        export_format: str,
        party_id: Optional[str] = None,
    ) -> None:
        """Log a party report or agreement export."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.REPORT_EXPORTED,
            timestamp=_now(),
            template_id=template_id,
            party_id=party_id,
            details={
                "export_path": export_path,
                "export_format": export_format,
            },
        ))

    def close(self) -> None:
        """Close the audit logger and release resources."""
        if self._owns_db_manager:
            self._db_manager.close()
