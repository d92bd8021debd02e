"""Unit tests for party reports and agreement export."""

from unittest.mock import MagicMock

import pytest
from docx import Document

from clause_reconciliation.models import PartyClauseStatus, PartyPreference, TemplateResult
from clause_reconciliation.orchestration import BatchOrchestrator
from clause_reconciliation.reporting import (
    FALLBACK_GUIDANCE,
    NEGOTIATION_PLACEHOLDER,
    AgreementExporter,
    PartyReportBuilder,
    ReportRenderer,
)


def pref(group_id, party_id, ranking, rejected=()):
    return PartyPreference(
        clause_group_id=group_id,
        party_id=party_id,
        rejected=frozenset(rejected),
        ranking=tuple(ranking),
    )


@pytest.fixture
def preferences():
    return [
        pref("nature", "alice", ["mutual_standard", "mutual_flexible"], rejected={"unilateral"}),
        pref("nature", "bob", ["mutual_standard", "unilateral", "mutual_flexible"]),
        pref("definitions", "alice", ["comprehensive", "lean", "minimal"]),
        pref("definitions", "bob", ["lean", "comprehensive", "minimal"]),
        pref("obligations", "alice", ["balanced", "strict"], rejected={"recipient"}),
        pref("obligations", "bob", ["recipient"], rejected={"balanced", "strict"}),
    ]


@pytest.fixture
def blocked_result(nda_template, preferences):
    return BatchOrchestrator().reconcile_template(nda_template, "alice", "bob", preferences)


@pytest.fixture
def resolved_result(nda_template, preferences):
    agreed = preferences[:4] + [
        pref("obligations", "alice", ["strict", "balanced", "recipient"]),
        pref("obligations", "bob", ["strict", "recipient", "balanced"]),
    ]
    return BatchOrchestrator().reconcile_template(nda_template, "alice", "bob", agreed)


class TestPartyReportBuilder:
    """Tests for per-party report construction."""

    def test_statuses_from_preferences(self, nda_template, blocked_result, preferences):
        report = PartyReportBuilder().build(nda_template, blocked_result, "bob", preferences)

        statuses = {e.clause_group_id: e.status for e in report.entries}
        assert statuses == {
            "nature": PartyClauseStatus.PREFERRED,
            "definitions": PartyClauseStatus.COMPROMISE,
            "obligations": PartyClauseStatus.UNRESOLVED,
        }
        assert report.counterparty_id == "alice"
        assert report.template_status == "blocked"

    def test_statuses_without_preferences(self, nda_template, blocked_result):
        """Without submissions the status comes from the outcome itself."""
        builder = PartyReportBuilder()

        alice = builder.build(nda_template, blocked_result, "alice")
        bob = builder.build(nda_template, blocked_result, "bob")

        assert alice.entries[1].status == PartyClauseStatus.PREFERRED
        assert bob.entries[1].status == PartyClauseStatus.COMPROMISE
        assert alice.entries[0].status == PartyClauseStatus.PREFERRED

    def test_single_survivor_without_preferences(self, nda_template, preferences):
        """The surviving variant is preferred only by the party that ranked it first."""
        survivor = [p for p in preferences if p.clause_group_id != "definitions"] + [
            pref("definitions", "alice", ["lean", "comprehensive"], rejected={"minimal"}),
            pref("definitions", "bob", ["minimal", "lean"], rejected={"comprehensive"}),
        ]
        result = BatchOrchestrator().reconcile_template(nda_template, "alice", "bob", survivor)
        builder = PartyReportBuilder()

        alice = builder.build(nda_template, result, "alice")
        bob = builder.build(nda_template, result, "bob")

        assert result.outcome_for("definitions").variant_id == "lean"
        assert alice.entries[1].status == PartyClauseStatus.PREFERRED
        assert bob.entries[1].status == PartyClauseStatus.COMPROMISE

    def test_labels_and_guidance(self, nda_template, blocked_result, preferences):
        report = PartyReportBuilder().build(nda_template, blocked_result, "alice", preferences)

        nature, definitions, obligations = report.entries
        assert nature.outcome_label == "Standard Mutual"
        assert nature.ranking == ["Standard Mutual", "Flexible Mutual with Carveouts"]
        assert nature.rejected == ["Unilateral Discloser-Only"]
        assert nature.fallback_guidance is None
        assert obligations.outcome_label == "unresolved"
        assert obligations.fallback_guidance == FALLBACK_GUIDANCE
        assert report.guidance == [obligations]
        assert report.summary == {"preferred": 2, "compromise": 0, "unresolved": 1}

    def test_unknown_party(self, nda_template, blocked_result):
        with pytest.raises(ValueError):
            PartyReportBuilder().build(nda_template, blocked_result, "carol")

    def test_to_dict(self, nda_template, resolved_result):
        data = PartyReportBuilder().build(nda_template, resolved_result, "alice").to_dict()

        assert data["party_id"] == "alice"
        assert data["summary"]["unresolved"] == 0
        assert len(data["entries"]) == 3
        assert data["entries"][0]["status"] == "preferred"


class TestReportRenderer:
    """Tests for HTML rendering."""

    def test_render_blocked_report(self, nda_template, blocked_result, preferences):
        report = PartyReportBuilder().build(nda_template, blocked_result, "bob", preferences)

        html = ReportRenderer().render_party_report(report)

        assert "Non-Disclosure Agreement" in html
        assert "Fallback Guidance (Unresolved Clauses)" in html
        assert FALLBACK_GUIDANCE in html
        assert "Compromise" in html
        assert "Lean Definitions" in html

    def test_render_resolved_report(self, nda_template, resolved_result):
        report = PartyReportBuilder().build(nda_template, resolved_result, "alice")

        html = ReportRenderer().render_party_report(report)

        assert "No unresolved clauses requiring fallback guidance." in html

    def test_export_party_report(self, nda_template, blocked_result, tmp_path):
        report = PartyReportBuilder().build(nda_template, blocked_result, "alice")
        output_path = str(tmp_path / "reports" / "alice.html")

        written = ReportRenderer().export_party_report(report, output_path)

        assert written == output_path
        assert "<html" in (tmp_path / "reports" / "alice.html").read_text(encoding="utf-8")


class TestAgreementExporter:
    """Tests for agreement export."""

    def test_build_content(self, nda_template, blocked_result):
        content = AgreementExporter().build_content(nda_template, blocked_result)

        assert content["cover_page"]["title"] == "NON-DISCLOSURE AGREEMENT"
        assert content["cover_page"]["status"] == "DRAFT"
        assert content["cover_page"]["parties"] == ["alice", "bob"]
        assert [c["clause_group_id"] for c in content["resolved"]] == ["nature", "definitions"]
        assert content["resolved"][0]["content"].startswith("Each party may disclose")
        assert content["resolved"][1]["content"] == "Comprehensive"
        unresolved = content["unresolved"][0]
        assert unresolved["placeholder"] == NEGOTIATION_PLACEHOLDER
        assert unresolved["options"] == [
            "Mutual Balanced",
            "Strict Mutual (Enhanced Care Standard)",
            "Unilateral Recipient Obligations",
        ]

    def test_mismatched_template(self, nda_template):
        result = TemplateResult(template_id="lease", party_a_id="a", party_b_id="b")

        with pytest.raises(ValueError):
            AgreementExporter().build_content(nda_template, result)

    def test_generate_text_draft(self, nda_template, blocked_result):
        text = AgreementExporter().generate_text(nda_template, blocked_result)

        assert "Status: DRAFT" in text
        assert "LEGAL TERMS:" in text
        assert "1. NATURE OF NDA" in text
        assert "UNRESOLVED CLAUSES:" in text
        assert NEGOTIATION_PLACEHOLDER in text
        assert "Available Options: Mutual Balanced" in text

    def test_generate_text_final(self, nda_template, resolved_result):
        text = AgreementExporter().generate_text(nda_template, resolved_result)

        assert "Status: FINAL" in text
        assert "UNRESOLVED CLAUSES:" not in text
        assert "3. CONFIDENTIALITY OBLIGATIONS" in text
        assert "Strict Mutual (Enhanced Care Standard)" in text

    def test_export_text_default_path(self, nda_template, blocked_result, tmp_path):
        path = AgreementExporter(output_dir=str(tmp_path)).export_text(nda_template, blocked_result)

        assert path == str(tmp_path / "nda_draft.txt")
        assert NEGOTIATION_PLACEHOLDER in (tmp_path / "nda_draft.txt").read_text(encoding="utf-8")

    def test_export_docx_draft(self, nda_template, blocked_result, tmp_path):
        path = AgreementExporter(output_dir=str(tmp_path)).export_docx(nda_template, blocked_result)

        texts = [p.text for p in Document(path).paragraphs]
        assert path.endswith("nda_draft.docx")
        assert "NON-DISCLOSURE AGREEMENT" in texts
        assert "Status: DRAFT" in texts
        assert NEGOTIATION_PLACEHOLDER in texts
        assert "Unresolved Clauses" in texts

    def test_export_docx_final(self, nda_template, resolved_result, tmp_path):
        path = AgreementExporter(output_dir=str(tmp_path)).export(
            nda_template, resolved_result, format="docx"
        )

        texts = [p.text for p in Document(path).paragraphs]
        assert path.endswith("nda_final.docx")
        assert "Status: FINAL" in texts
        assert NEGOTIATION_PLACEHOLDER not in texts

    def test_unsupported_format(self, nda_template, blocked_result, tmp_path):
        with pytest.raises(ValueError, match="Unsupported export format"):
            AgreementExporter(output_dir=str(tmp_path)).export(nda_template, blocked_result, format="pdf")

    def test_export_is_audited(self, nda_template, blocked_result, tmp_path):
        audit_logger = MagicMock()
        exporter = AgreementExporter(output_dir=str(tmp_path), audit_logger=audit_logger)

        path = exporter.export(nda_template, blocked_result, format="txt")

        audit_logger.log_report_exported.assert_called_once_with(
            template_id="nda", export_path=path, export_format="txt"
        )
