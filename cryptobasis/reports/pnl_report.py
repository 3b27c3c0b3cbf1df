"""P&L report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from cryptobasis.models.reports import PortfolioPnLSummary, SellSimulation

TEMPLATE_DIR = Path(__file__).parent / "templates"


def money(value: float | None) -> str:
    if value is None:
        return "n/a"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def quantity(value: float) -> str:
    return f"{value:,.8f}".rstrip("0").rstrip(".")


class PnLReportGenerator:
    """Renders portfolio P&L summaries and sell previews as plain text."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))
        self.env.filters["money"] = money
        self.env.filters["qty"] = quantity

    def render(self, summary: PortfolioPnLSummary) -> str:
        template = self.env.get_template("pnl_summary.txt")
        return template.render(summary=summary)

    def render_simulation(self, simulation: SellSimulation, symbol: str) -> str:
        template = self.env.get_template("sell_preview.txt")
        return template.render(simulation=simulation, symbol=symbol)
