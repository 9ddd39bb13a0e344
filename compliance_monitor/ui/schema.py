"""
JSON payload helpers for the compliance monitor API.

Dataclasses from `compliance_monitor.services.types` are converted into
camelCase dictionaries (ISO 8601 timestamps, enum values) so dashboard
clients can consume them without knowing Python-specific types. Keys of
free-form maps such as request metadata are left untouched.
"""

from __future__ import annotations

from dataclasses import is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from compliance_monitor.services.types import ComplianceMetricsSnapshot, EvaluationOutcome
from compliance_monitor.storage.codec import to_isoformat


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_api(obj: Any) -> Any:
    """Recursively serialise dataclasses with camelCase field names."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return to_isoformat(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {_camel(key): to_api(getattr(obj, key)) for key in obj.__dataclass_fields__}
    if isinstance(obj, dict):
        return {key: to_api(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_api(item) for item in obj]
    return obj


def serialize_check_response(outcome: EvaluationOutcome) -> Dict[str, Any]:
    """Response body for a single output check."""
    record = outcome.record
    return {
        "id": record.record_id,
        "status": record.result.status.value,
        "riskScore": record.result.risk_score,
        "reasons": list(record.result.reasons),
        "timestamp": to_isoformat(record.timestamp),
        "modelName": record.model_name,
        "patternVersion": record.pattern_version,
        "alerts": [alert.alert_id for alert in outcome.alerts],
        "degraded": outcome.degraded,
        "warnings": list(outcome.warnings),
    }


def serialize_snapshot(snapshot: ComplianceMetricsSnapshot) -> Dict[str, Any]:
    """Snapshot payload, with the dashboard's legacy counter names alongside."""
    payload = to_api(snapshot)
    payload["flaggedOutputs24h"] = snapshot.flagged_count
    payload["totalChecks24h"] = snapshot.total_count
    return payload


def get_check_output_schema() -> Dict[str, Any]:
    """
    Return the JSON Schema for the output-check response payload.

    Clients can validate responses of `POST /api/check-output` against it.
    """

    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$id": "https://compliance-monitor/schema/check-output.json",
        "title": "ComplianceCheckResponse",
        "type": "object",
        "required": ["id", "status", "riskScore", "reasons", "timestamp", "degraded", "warnings"],
        "properties": {
            "id": {"type": "string"},
            "status": {"type": "string", "enum": ["safe", "flagged", "blocked"]},
            "riskScore": {"type": "number", "minimum": 0, "maximum": 1},
            "reasons": {"type": "array", "items": {"type": "string"}},
            "timestamp": {"type": "string", "format": "date-time"},
            "modelName": {"type": "string"},
            "patternVersion": {"type": ["string", "null"]},
            "alerts": {"type": "array", "items": {"type": "string"}},
            "degraded": {"type": "boolean"},
            "warnings": {"type": "array", "items": {"type": "string"}},
        },
        "additionalProperties": False,
    }


__all__ = ["to_api", "serialize_check_response", "serialize_snapshot", "get_check_output_schema"]
