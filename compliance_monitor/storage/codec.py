"""
Conversion between compliance dataclasses and JSON-friendly dictionaries.
"""

from __future__ import annotations

from dataclasses import is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from compliance_monitor.services.types import (
    AlertSeverity,
    AlertStatus,
    BiasMeasurement,
    ComplianceAlert,
    ComplianceMetricsSnapshot,
    DispositionStatus,
    DriftMeasurement,
    EvaluationRecord,
    EvaluationResult,
    TrainingScanSummary,
)


def to_isoformat(value: datetime) -> str:
    """Return an ISO 8601 string in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO 8601 timestamps written by :func:`to_isoformat`."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_timestamp(value: Any) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def serialize(obj: Any) -> Any:
    """Recursively convert dataclasses, enums and datetimes to primitives."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return to_isoformat(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {key: serialize(getattr(obj, key)) for key in obj.__dataclass_fields__}
    if isinstance(obj, dict):
        return {key: serialize(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(item) for item in obj]
    return obj


def evaluation_record_from_dict(data: Dict[str, Any]) -> EvaluationRecord:
    result = data["result"]
    return EvaluationRecord(
        record_id=str(data["record_id"]),
        timestamp=parse_timestamp(data["timestamp"]),
        model_name=str(data["model_name"]),
        input_text=str(data.get("input_text", "")),
        output_text=str(data.get("output_text", "")),
        result=EvaluationResult(
            risk_score=float(result["risk_score"]),
            status=DispositionStatus(result["status"]),
            reasons=tuple(result.get("reasons") or ()),
        ),
        metadata=dict(data.get("metadata") or {}),
        pattern_version=data.get("pattern_version"),
    )


def snapshot_from_dict(data: Dict[str, Any]) -> ComplianceMetricsSnapshot:
    return ComplianceMetricsSnapshot(
        compliance_score=float(data["compliance_score"]),
        flagged_count=int(data["flagged_count"]),
        total_count=int(data["total_count"]),
        drift_percent=float(data.get("drift_percent", 0.0)),
        active_audits=int(data.get("active_audits", 0)),
        window_start=parse_timestamp(data["window_start"]),
        window_end=parse_timestamp(data["window_end"]),
        window_hours=int(data.get("window_hours", 24)),
        timestamp=parse_timestamp(data["timestamp"]),
    )


def alert_from_dict(data: Dict[str, Any]) -> ComplianceAlert:
    return ComplianceAlert(
        alert_id=str(data["alert_id"]),
        alert_type=str(data["alert_type"]),
        severity=AlertSeverity(data["severity"]),
        title=str(data["title"]),
        description=str(data["description"]),
        related_model=data.get("related_model"),
        status=AlertStatus(data.get("status", AlertStatus.OPEN.value)),
        created_at=parse_timestamp(data["created_at"]),
        resolved_at=_optional_timestamp(data.get("resolved_at")),
    )


def drift_from_dict(data: Dict[str, Any]) -> DriftMeasurement:
    return DriftMeasurement(
        model_name=str(data["model_name"]),
        drift_score=float(data["drift_score"]),
        baseline_accuracy=float(data["baseline_accuracy"]),
        current_accuracy=float(data["current_accuracy"]),
        data_distribution_shift=float(data.get("data_distribution_shift", 0.0)),
        performance_metrics=dict(data.get("performance_metrics") or {}),
        timestamp=parse_timestamp(data["timestamp"]),
    )


def bias_from_dict(data: Dict[str, Any]) -> BiasMeasurement:
    return BiasMeasurement(
        model_name=str(data["model_name"]),
        demographic_group=str(data["demographic_group"]),
        bias_score=float(data["bias_score"]),
        fairness_metrics=dict(data.get("fairness_metrics") or {}),
        mitigation_suggestions=list(data.get("mitigation_suggestions") or []),
        timestamp=parse_timestamp(data["timestamp"]),
    )


def training_scan_from_dict(data: Dict[str, Any]) -> TrainingScanSummary:
    return TrainingScanSummary(
        file_name=str(data["file_name"]),
        total_rows=int(data["total_rows"]),
        flagged_rows=int(data["flagged_rows"]),
        privacy_risks=int(data["privacy_risks"]),
        bias_flags=int(data["bias_flags"]),
        missing_docs=int(data.get("missing_docs", 0)),
        timestamp=parse_timestamp(data["timestamp"]),
    )


__all__ = [
    "serialize",
    "to_isoformat",
    "parse_timestamp",
    "evaluation_record_from_dict",
    "snapshot_from_dict",
    "alert_from_dict",
    "drift_from_dict",
    "bias_from_dict",
    "training_scan_from_dict",
]
