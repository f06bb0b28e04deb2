"""Console reporting for analytics results."""

from tradelens.services.reporting.formatters import display_equity_curve, display_metrics_report

__all__ = [
    "display_equity_curve",
    "display_metrics_report",
]
