"""
Exception hierarchy for the compliance monitor.
"""

from __future__ import annotations


class ComplianceMonitorError(Exception):
    """Base class for compliance monitor failures."""


class InputValidationError(ComplianceMonitorError, ValueError):
    """Request fields are missing or malformed; rejected before scoring."""


class PersistenceWriteError(ComplianceMonitorError):
    """An append to the evaluation, metrics or alert store failed."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


class AggregationError(ComplianceMonitorError):
    """History could not be read for metrics aggregation."""


class AlertTransitionError(ComplianceMonitorError):
    """Requested alert status change is not permitted."""


class AlertNotFoundError(ComplianceMonitorError, KeyError):
    """No alert exists with the given identifier."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "alert not found"


__all__ = [
    "ComplianceMonitorError",
    "InputValidationError",
    "PersistenceWriteError",
    "AggregationError",
    "AlertTransitionError",
    "AlertNotFoundError",
]
