"""
Service layer modules responsible for orchestrating compliance evaluations.

This package exposes the primary classes via lazy imports to avoid circular
dependencies during test collection (e.g., compliance modules importing
`compliance_monitor.services.types`).
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict

__all__ = [
    "ComplianceEngine",
    "EvaluationRequest",
    "EvaluationResult",
    "EvaluationRecord",
    "EvaluationOutcome",
    "ComplianceMetricsSnapshot",
    "ComplianceAlert",
    "InputValidationError",
    "PersistenceWriteError",
]

_MODULE_ATTRS: Dict[str, str] = {
    "ComplianceEngine": "compliance_monitor.services.engine",
    "EvaluationRequest": "compliance_monitor.services.types",
    "EvaluationResult": "compliance_monitor.services.types",
    "EvaluationRecord": "compliance_monitor.services.types",
    "EvaluationOutcome": "compliance_monitor.services.types",
    "ComplianceMetricsSnapshot": "compliance_monitor.services.types",
    "ComplianceAlert": "compliance_monitor.services.types",
    "InputValidationError": "compliance_monitor.services.errors",
    "PersistenceWriteError": "compliance_monitor.services.errors",
}


def __getattr__(name: str) -> Any:
    module_path = _MODULE_ATTRS.get(name)
    if not module_path:
        raise AttributeError(f"module 'compliance_monitor.services' has no attribute '{name}'")  # pragma: no cover
    module = import_module(module_path)
    return getattr(module, name)


def __dir__() -> list[str]:  # pragma: no cover - convenience helper
    return sorted(__all__)
