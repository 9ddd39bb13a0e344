"""
Evaluation package exposing compliance metrics aggregation.
"""

from .metrics import WindowCounts, aggregate_metrics, compliance_score, count_window

__all__ = [
    "WindowCounts",
    "aggregate_metrics",
    "compliance_score",
    "count_window",
]
