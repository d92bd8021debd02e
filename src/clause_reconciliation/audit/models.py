"""SQLAlchemy models for the reconciliation audit trail."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AuditEventModel(Base):
    """Audit events table model."""
    __tablename__ = "reconciliation_audit_events"

    id = Column(String(36), primary_key=True, default=_new_id)
    event_type = Column(String(50), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=_utcnow)
    template_id = Column(String(255), nullable=True)
    clause_group_id = Column(String(255), nullable=True)
    party_id = Column(String(255), nullable=True)
    details = Column(JSONType)
    metadata_ = Column("metadata", JSONType)

    __table_args__ = (
        Index("idx_recon_audit_event_type", "event_type"),
        Index("idx_recon_audit_timestamp", "timestamp"),
        Index("idx_recon_audit_template_id", "template_id"),
    )


class VersionHistoryModel(Base):
    """Versioned snapshots of reconciliation results."""
    __tablename__ = "reconciliation_version_history"

    id = Column(String(36), primary_key=True, default=_new_id)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(255), nullable=False)
    version = Column(Integer, nullable=False)
    snapshot = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "version", name="uq_recon_version"),
        Index("idx_recon_version_entity", "entity_type", "entity_id"),
    )
