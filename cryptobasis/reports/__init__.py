"""Report generation for cryptobasis."""

from cryptobasis.reports.pnl_report import PnLReportGenerator
from cryptobasis.reports.reconciliation import ReconciliationReportGenerator

__all__ = [
    "PnLReportGenerator",
    "ReconciliationReportGenerator",
]
