"""Agreement export for reconciled templates.

Produces the negotiated agreement as .docx or plain text. A template with
red-lighted clause groups is exported as a DRAFT with placeholders;
a fully resolved template is FINAL.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from docx import Document
from docx.shared import Pt, RGBColor

from ..interfaces.audit import IAuditLogger
from ..models.catalog import Template
from ..models.enums import TemplateStatus
from ..models.outcome import TemplateResult
from ..performance import timed_operation


logger = logging.getLogger(__name__)

NEGOTIATION_PLACEHOLDER = "[REQUIRES NEGOTIATION - INSERT AGREED LANGUAGE]"

SUPPORTED_FORMATS = ("docx", "txt")


class AgreementExporter:
    """
    Exports the reconciled agreement.

    The exported document carries a cover section (title, date, status
    and parties), the numbered resolved clauses with their selected
    wording, and the unresolved clauses with a negotiation placeholder
    and the options still on the table.
    """

    def __init__(
        self,
        output_dir: str = "data/exports",
        audit_logger: Optional[IAuditLogger] = None,
    ):
        """
        Initialize the exporter.

        Args:
            output_dir: Directory for exported files.
            audit_logger: Optional audit logger recording each export.
        """
        self.output_dir = Path(output_dir)
        self._audit_logger = audit_logger

    def build_content(self, template: Template, result: TemplateResult) -> Dict[str, Any]:
        """
        Assemble the document content independently of the output format.

        Raises:
            ValueError: If the result belongs to another template.
        """
        if result.template_id != template.id:
            raise ValueError(
                f"Result for template '{result.template_id}' cannot be exported "
                f"with template '{template.id}'"
            )

        resolved: List[Dict[str, Any]] = []
        unresolved: List[Dict[str, Any]] = []
        for group in template.clause_groups:
            outcome = result.outcome_for(group.id)
            if outcome is None:
                continue
            if outcome.is_red_light:
                unresolved.append({
                    "clause_group_id": group.id,
                    "title": group.label,
                    "placeholder": NEGOTIATION_PLACEHOLDER,
                    "options": [v.label for v in group.variants],
                    "reasoning": outcome.reasoning,
                })
            else:
                variant = group.get_variant(outcome.variant_id)
                resolved.append({
                    "clause_group_id": group.id,
                    "title": group.label,
                    "variant_id": outcome.variant_id,
                    "variant_label": variant.label if variant else outcome.variant_id,
                    "content": variant.wording if variant else outcome.variant_id,
                })

        return {
            "cover_page": {
                "title": template.name.upper(),
                "template_id": template.id,
                "date": datetime.now(timezone.utc).date().isoformat(),
                "status": self.document_status(result),
                "parties": [result.party_a_id, result.party_b_id],
            },
            "resolved": resolved,
            "unresolved": unresolved,
        }

    @staticmethod
    def document_status(result: TemplateResult) -> str:
        return "FINAL" if result.status == TemplateStatus.RESOLVED else "DRAFT"

    # =========================================================================
    # Text
    # =========================================================================

    def generate_text(self, template: Template, result: TemplateResult) -> str:
        """Render the agreement as plain text."""
        content = self.build_content(template, result)
        cover = content["cover_page"]

        lines = [
            cover["title"],
            "",
            f"Date: {cover['date']}",
            f"Template ID: {cover['template_id']}",
            f"Status: {cover['status']}",
            "",
            "Parties:",
        ]
        lines.extend(f"- {party}" for party in cover["parties"])
        lines.extend(["", "LEGAL TERMS:", ""])

        for i, clause in enumerate(content["resolved"], 1):
            lines.extend([
                f"{i}. {clause['title'].upper()}",
                clause["content"],
                "",
            ])

        if content["unresolved"]:
            lines.extend(["UNRESOLVED CLAUSES:", ""])
            for i, clause in enumerate(content["unresolved"], 1):
                lines.extend([
                    f"{i}. {clause['title'].upper()}",
                    clause["placeholder"],
                    f"Available Options: {', '.join(clause['options'])}",
                    "",
                ])

        return "\n".join(lines)

    def export_text(
        self,
        template: Template,
        result: TemplateResult,
        output_path: Optional[str] = None,
    ) -> str:
        """Write the text agreement; returns the file path."""
        output_path = output_path or str(self._default_path(template, result, "txt"))
        text = self.generate_text(template, result)

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)

        logger.info(f"Exported agreement text to: {output_path}")
        self._log_export(template.id, output_path, "txt")
        return output_path

    # =========================================================================
    # Word
    # =========================================================================

    def export_docx(
        self,
        template: Template,
        result: TemplateResult,
        output_path: Optional[str] = None,
    ) -> str:
        """Write the agreement as a Word document; returns the file path."""
        output_path = output_path or str(self._default_path(template, result, "docx"))
        content = self.build_content(template, result)
        cover = content["cover_page"]

        doc = Document()
        doc.add_heading(cover["title"], level=0)
        doc.add_paragraph(f"Date: {cover['date']}")
        status_para = doc.add_paragraph()
        status_run = status_para.add_run(f"Status: {cover['status']}")
        status_run.bold = True

        doc.add_heading("Parties", level=1)
        for party in cover["parties"]:
            doc.add_paragraph(party, style="List Bullet")

        doc.add_heading("Legal Terms", level=1)
        for i, clause in enumerate(content["resolved"], 1):
            doc.add_heading(f"{i}. {clause['title'].upper()}", level=2)
            doc.add_paragraph(clause["content"])

        if content["unresolved"]:
            doc.add_heading("Unresolved Clauses", level=1)
            for i, clause in enumerate(content["unresolved"], 1):
                doc.add_heading(f"{i}. {clause['title'].upper()}", level=2)
                para = doc.add_paragraph()
                run = para.add_run(clause["placeholder"])
                run.bold = True
                run.font.color.rgb = RGBColor(0xB9, 0x1C, 0x1C)
                options = doc.add_paragraph(f"Available Options: {', '.join(clause['options'])}")
                for options_run in options.runs:
                    options_run.font.size = Pt(9)

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        doc.save(output_path)

        logger.info(f"Exported agreement document to: {output_path}")
        self._log_export(template.id, output_path, "docx")
        return output_path

    @timed_operation("export_agreement")
    def export(
        self,
        template: Template,
        result: TemplateResult,
        format: str = "docx",
        output_path: Optional[str] = None,
    ) -> str:
        """
        Export in the requested format.

        Raises:
            ValueError: If format is not supported.
        """
        if format == "docx":
            return self.export_docx(template, result, output_path)
        if format == "txt":
            return self.export_text(template, result, output_path)
        raise ValueError(f"Unsupported export format: {format}. Use one of {SUPPORTED_FORMATS}.")

    def _default_path(self, template: Template, result: TemplateResult, extension: str) -> Path:
        slug = re.sub(r"[^A-Za-z0-9_-]+", "_", template.id).strip("_") or "agreement"
        status = self.document_status(result).lower()
        return self.output_dir / f"{slug}_{status}.{extension}"

    def _log_export(self, template_id: str, output_path: str, export_format: str) -> None:
        if self._audit_logger is None:
            return
        try:
            self._audit_logger.log_report_exported(
                template_id=template_id,
                export_path=output_path,
                export_format=export_format,
            )
        except Exception as e:
            logger.warning(f"Failed to record export of '{template_id}': {e}")
