"""HTML rendering of party reports."""

import logging
import os
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..models.enums import PartyClauseStatus
from .party_report import PartyReport


logger = logging.getLogger(__name__)

STATUS_LABELS = {
    PartyClauseStatus.PREFERRED.value: "Preferred",
    PartyClauseStatus.COMPROMISE.value: "Compromise",
    PartyClauseStatus.UNRESOLVED.value: "Unresolved",
}


class ReportRenderer:
    """
    Renders party reports with Jinja2 templates.
    """

    def __init__(self, template_dir: Optional[str] = None):
        """
        Initialize the renderer.

        Args:
            template_dir: Directory containing Jinja2 templates.
                         Defaults to the templates shipped with the package.
        """
        if template_dir is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.dirname(__file__)),
                "templates",
            )

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html', 'xml'])
        )

    def render_party_report(self, report: PartyReport) -> str:
        """Render a party report to an HTML string."""
        template = self.env.get_template('party_report.html')
        return template.render(
            report=report,
            entries=[e.to_dict() for e in report.entries],
            summary=report.summary,
            guidance=report.guidance,
            status_labels=STATUS_LABELS,
        )

    def export_party_report(self, report: PartyReport, output_path: str) -> str:
        """
        Write the rendered report to a file.

        Returns:
            Path to the written file.
        """
        html = self.render_party_report(report)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(html)

        logger.info(f"Exported party report for {report.party_id} to: {output_path}")
        return output_path
