"""Party reports and agreement export."""

from .agreement_exporter import NEGOTIATION_PLACEHOLDER, AgreementExporter
from .party_report import (
    FALLBACK_GUIDANCE,
    PartyReport,
    PartyReportBuilder,
    PartyReportEntry,
)
from .report_renderer import ReportRenderer

__all__ = [
    "AgreementExporter",
    "NEGOTIATION_PLACEHOLDER",
    "FALLBACK_GUIDANCE",
    "PartyReport",
    "PartyReportBuilder",
    "PartyReportEntry",
    "ReportRenderer",
]
