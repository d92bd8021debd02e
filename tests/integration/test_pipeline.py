"""Integration tests for the end-to-end reconciliation pipeline."""

import json

import pytest
from docx import Document

from clause_reconciliation.audit import AuditLogger, DatabaseManager
from clause_reconciliation.config import ConfigurationManager
from clause_reconciliation.interfaces.audit import AuditEventType
from clause_reconciliation.models import GroupState, RedLightReason, TemplateStatus
from clause_reconciliation.orchestration import NegotiationSession
from clause_reconciliation.reporting import (
    NEGOTIATION_PLACEHOLDER,
    AgreementExporter,
    PartyReportBuilder,
    ReportRenderer,
)


@pytest.fixture
def config_dir(tmp_path, nda_catalog_dict):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "catalog.json").write_text(json.dumps(nda_catalog_dict), encoding="utf-8")
    (directory / "engine.json").write_text(
        json.dumps({"tie_break_strategy": "lowest-id", "max_workers": 2}), encoding="utf-8"
    )
    return directory


@pytest.fixture
def audit_logger(tmp_path):
    db_manager = DatabaseManager(database_url=f"sqlite:///{tmp_path / 'audit.db'}")
    db_manager.init_database()
    yield AuditLogger(db_manager=db_manager)
    db_manager.close()


def submissions():
    return [
        {"clause_group_id": "nature", "party_id": "acme",
         "rejected": ["unilateral"], "ranking": ["mutual_standard", "mutual_flexible"]},
        {"clause_group_id": "nature", "party_id": "globex",
         "rejected": [], "ranking": ["mutual_standard", "unilateral", "mutual_flexible"]},
        {"clause_group_id": "definitions", "party_id": "acme",
         "rejected": [], "ranks": {"comprehensive": 1, "lean": 2, "minimal": 3}},
        {"clause_group_id": "definitions", "party_id": "globex",
         "rejected": [], "ranks": {"lean": 1, "comprehensive": 2, "minimal": 3}},
        {"clause_group_id": "obligations", "party_id": "acme",
         "rejected": ["recipient"], "ranking": ["balanced", "strict"]},
    ]


class TestPipeline:
    """Catalog loading through reconciliation, audit and export."""

    def test_batch_run(self, config_dir, audit_logger, tmp_path):
        manager = ConfigurationManager()
        load_result = manager.load_from_directory(config_dir)
        assert load_result.is_valid

        template = manager.get_template("nda")
        orchestrator = manager.build_orchestrator(audit_logger=audit_logger)
        result = orchestrator.reconcile_submissions(template, "acme", "globex", submissions())

        assert result.status == TemplateStatus.BLOCKED
        assert result.outcome_for("nature").variant_id == "mutual_standard"
        assert result.outcome_for("definitions").variant_id == "comprehensive"
        assert result.outcome_for("obligations").reason == RedLightReason.MISSING_PREFERENCE

        # Audit trail and stored snapshot
        stored = audit_logger.get_result("nda")
        assert stored == result
        group_events = audit_logger.get_events(
            template_id="nda", event_type=AuditEventType.GROUP_RECONCILED
        )
        assert len(group_events) == 3
        assert len(audit_logger.get_events(event_type=AuditEventType.TEMPLATE_RECONCILED)) == 1

        # Export
        exporter = AgreementExporter(output_dir=str(tmp_path / "exports"), audit_logger=audit_logger)
        docx_path = exporter.export(template, result, format="docx")
        texts = [p.text for p in Document(docx_path).paragraphs]
        assert "Status: DRAFT" in texts
        assert NEGOTIATION_PLACEHOLDER in texts
        assert len(audit_logger.get_events(event_type=AuditEventType.REPORT_EXPORTED)) == 1

        report = PartyReportBuilder().build(template, result, "globex")
        html = ReportRenderer().render_party_report(report)
        assert "No preference submitted by globex" in html

        orchestrator.close()

    def test_session_reaches_final_agreement(self, nda_template, audit_logger, tmp_path):
        session = NegotiationSession(nda_template, "acme", "globex", audit_logger=audit_logger)
        for record in submissions():
            session.submit_payload(record["clause_group_id"], record["party_id"], record)

        assert session.state_of("obligations") == GroupState.PARTIALLY_SUBMITTED
        assert session.result().status == TemplateStatus.BLOCKED

        status = session.submit_payload(
            "obligations", "globex", {"rejected": ["recipient"], "ranking": ["strict", "balanced"]}
        )
        assert status.state == GroupState.BOTH_SUBMITTED
        assert status.outcome.variant_id == "balanced"

        result = session.result()
        assert result.status == TemplateStatus.RESOLVED

        text_path = AgreementExporter(output_dir=str(tmp_path)).export(nda_template, result, format="txt")
        text = (tmp_path / "nda_final.txt").read_text(encoding="utf-8")
        assert text_path.endswith("nda_final.txt")
        assert "Status: FINAL" in text
        assert NEGOTIATION_PLACEHOLDER not in text

        submitted = audit_logger.get_events(event_type=AuditEventType.PREFERENCE_SUBMITTED)
        assert len(submitted) == 6
