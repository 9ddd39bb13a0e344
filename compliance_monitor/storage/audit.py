"""
Append-only JSONL persistence for compliance evaluations, metrics and alerts.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

from compliance_monitor.services.errors import AggregationError, AlertNotFoundError
from compliance_monitor.services.types import (
    AlertStatus,
    BiasMeasurement,
    ComplianceAlert,
    ComplianceMetricsSnapshot,
    DriftMeasurement,
    EvaluationRecord,
    TrainingScanSummary,
    utc_now,
)

from .codec import (
    alert_from_dict,
    bias_from_dict,
    drift_from_dict,
    evaluation_record_from_dict,
    serialize,
    snapshot_from_dict,
    training_scan_from_dict,
)

logger = logging.getLogger("compliance_monitor.storage.audit")

T = TypeVar("T")


class ComplianceStore(Protocol):
    """Persistence operations the compliance engine relies on."""

    def append_evaluation(self, record: EvaluationRecord) -> None: ...

    def append_metrics_snapshot(self, snapshot: ComplianceMetricsSnapshot) -> None: ...

    def append_alert(self, alert: ComplianceAlert) -> None: ...

    def update_alert(self, alert: ComplianceAlert) -> None: ...

    def get_alert(self, alert_id: str) -> ComplianceAlert: ...

    def count_open_alerts(self) -> int: ...

    def list_alerts(self, status: Optional[AlertStatus] = None, limit: int = 50) -> List[ComplianceAlert]: ...

    def list_evaluations(self, limit: int = 50) -> List[EvaluationRecord]: ...

    def query_recent_evaluations(self, hours: int = 24) -> List[EvaluationRecord]: ...

    def latest_metrics_snapshot(self) -> Optional[ComplianceMetricsSnapshot]: ...

    def query_metrics_history(self, days: int = 7) -> List[ComplianceMetricsSnapshot]: ...

    def append_drift_measurement(self, measurement: DriftMeasurement) -> None: ...

    def query_drift_measurements(
        self, model_name: Optional[str] = None, days: int = 30
    ) -> List[DriftMeasurement]: ...

    def append_bias_measurement(self, measurement: BiasMeasurement) -> None: ...

    def query_bias_measurements(
        self, model_name: Optional[str] = None, days: int = 30
    ) -> List[BiasMeasurement]: ...

    def append_training_scan(self, summary: TrainingScanSummary) -> None: ...

    def list_training_scans(self, limit: int = 50) -> List[TrainingScanSummary]: ...


class JsonlComplianceStore:
    """One append-only JSONL file per collection under ``root``.

    Alert status changes are appended as new revisions of the same
    ``alert_id``; readers keep the latest revision.
    """

    EVALUATIONS = "evaluations.jsonl"
    METRICS = "metrics.jsonl"
    ALERTS = "alerts.jsonl"
    DRIFT = "drift.jsonl"
    BIAS = "bias.jsonl"
    TRAINING_SCANS = "training_scans.jsonl"

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _append(self, filename: str, payload: Dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            with (self.root / filename).open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    def _read(self, filename: str, parser: Callable[[Dict[str, Any]], T], *, strict: bool = False) -> List[T]:
        path = self.root / filename
        if not path.exists():
            return []
        items: List[T] = []
        with path.open("rb") as handle:
            for lineno, raw in enumerate(handle, start=1):
                if not raw.strip():
                    continue
                try:
                    items.append(parser(json.loads(raw.decode("utf-8"))))
                except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                    if strict:
                        raise AggregationError(f"{filename}:{lineno} is not a valid record: {exc}") from exc
                    logger.warning(
                        "Skipping unreadable record",
                        extra={"file": filename, "line": lineno, "error": str(exc)},
                    )
        return items

    # evaluations

    def append_evaluation(self, record: EvaluationRecord) -> None:
        self._append(self.EVALUATIONS, serialize(record))

    def list_evaluations(self, limit: int = 50) -> List[EvaluationRecord]:
        """Most recent evaluations first."""
        records = self._read(self.EVALUATIONS, evaluation_record_from_dict)
        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records[:limit]

    def query_recent_evaluations(self, hours: int = 24) -> List[EvaluationRecord]:
        """Evaluations from the trailing window, oldest first.

        Raises:
            AggregationError: when a history line cannot be parsed.
        """
        cutoff = utc_now() - timedelta(hours=hours)
        records = self._read(self.EVALUATIONS, evaluation_record_from_dict, strict=True)
        return sorted((r for r in records if r.timestamp >= cutoff), key=lambda r: r.timestamp)

    # metrics

    def append_metrics_snapshot(self, snapshot: ComplianceMetricsSnapshot) -> None:
        self._append(self.METRICS, serialize(snapshot))

    def query_metrics_history(self, days: int = 7) -> List[ComplianceMetricsSnapshot]:
        cutoff = utc_now() - timedelta(days=days)
        snapshots = self._read(self.METRICS, snapshot_from_dict)
        return sorted((s for s in snapshots if s.timestamp >= cutoff), key=lambda s: s.timestamp)

    def latest_metrics_snapshot(self) -> Optional[ComplianceMetricsSnapshot]:
        snapshots = self._read(self.METRICS, snapshot_from_dict)
        if not snapshots:
            return None
        return max(snapshots, key=lambda s: s.timestamp)

    # alerts

    def append_alert(self, alert: ComplianceAlert) -> None:
        self._append(self.ALERTS, serialize(alert))

    def update_alert(self, alert: ComplianceAlert) -> None:
        self.get_alert(alert.alert_id)
        self._append(self.ALERTS, serialize(alert))

    def _current_alerts(self) -> Dict[str, ComplianceAlert]:
        current: Dict[str, ComplianceAlert] = {}
        for alert in self._read(self.ALERTS, alert_from_dict):
            current[alert.alert_id] = alert
        return current

    def get_alert(self, alert_id: str) -> ComplianceAlert:
        alert = self._current_alerts().get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Alert '{alert_id}' not found")
        return alert

    def list_alerts(self, status: Optional[AlertStatus] = None, limit: int = 50) -> List[ComplianceAlert]:
        """Latest revision of each alert, newest first."""
        alerts = [
            alert for alert in self._current_alerts().values() if status is None or alert.status is status
        ]
        alerts.sort(key=lambda alert: alert.created_at, reverse=True)
        return alerts[:limit]

    def count_open_alerts(self) -> int:
        return sum(1 for alert in self._current_alerts().values() if alert.status is AlertStatus.OPEN)

    # collaborator measurements

    def append_drift_measurement(self, measurement: DriftMeasurement) -> None:
        self._append(self.DRIFT, serialize(measurement))

    def query_drift_measurements(self, model_name: Optional[str] = None, days: int = 30) -> List[DriftMeasurement]:
        return self._recent(self._read(self.DRIFT, drift_from_dict), model_name, days)

    def append_bias_measurement(self, measurement: BiasMeasurement) -> None:
        self._append(self.BIAS, serialize(measurement))

    def query_bias_measurements(self, model_name: Optional[str] = None, days: int = 30) -> List[BiasMeasurement]:
        return self._recent(self._read(self.BIAS, bias_from_dict), model_name, days)

    def append_training_scan(self, summary: TrainingScanSummary) -> None:
        self._append(self.TRAINING_SCANS, serialize(summary))

    def list_training_scans(self, limit: int = 50) -> List[TrainingScanSummary]:
        scans = self._read(self.TRAINING_SCANS, training_scan_from_dict)
        scans.sort(key=lambda scan: scan.timestamp, reverse=True)
        return scans[:limit]

    @staticmethod
    def _recent(items: List[Any], model_name: Optional[str], days: int) -> List[Any]:
        cutoff: datetime = utc_now() - timedelta(days=days)
        selected = [
            item
            for item in items
            if item.timestamp >= cutoff and (model_name is None or item.model_name == model_name)
        ]
        return sorted(selected, key=lambda item: item.timestamp)


__all__ = ["ComplianceStore", "JsonlComplianceStore"]
