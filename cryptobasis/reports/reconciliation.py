"""Reconciliation report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from cryptobasis.models.reports import ReconciliationReport
from cryptobasis.reports.pnl_report import money, quantity

TEMPLATE_DIR = Path(__file__).parent / "templates"


class ReconciliationReportGenerator:
    """Generates the wallet vs. ledger reconciliation report."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))
        self.env.filters["money"] = money
        self.env.filters["qty"] = quantity

    def render(self, report: ReconciliationReport) -> str:
        """Render reconciliation report."""
        template = self.env.get_template("reconciliation.txt")
        return template.render(items=report.items, summary=report.summary)
