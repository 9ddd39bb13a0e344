"""
Persistence collaborators for compliance history, metrics and alerts.
"""

from .audit import ComplianceStore, JsonlComplianceStore

__all__ = ["ComplianceStore", "JsonlComplianceStore"]
