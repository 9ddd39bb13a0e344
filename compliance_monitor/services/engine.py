"""
Compliance engine coordinating scoring, persistence, metrics and alerts.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from compliance_monitor.compliance.alerts import AlertEmitter, resolve_alert
from compliance_monitor.compliance.evaluator import build_request, evaluate_compliance
from compliance_monitor.compliance.patterns import DEFAULT_LIBRARY, PatternLibrary
from compliance_monitor.config.settings import PolicySettings, load_settings
from compliance_monitor.evaluation.metrics import aggregate_metrics
from compliance_monitor.services.errors import AggregationError, PersistenceWriteError
from compliance_monitor.services.types import (
    BiasMeasurement,
    ComplianceAlert,
    ComplianceMetricsSnapshot,
    DriftMeasurement,
    EvaluationOutcome,
    EvaluationRecord,
    EvaluationRequest,
    EvaluationResult,
    TrainingScanSummary,
    utc_now,
)
from compliance_monitor.storage.audit import ComplianceStore, JsonlComplianceStore

logger = logging.getLogger("compliance_monitor.services.engine")


@dataclass(slots=True)
class ComplianceEngine:
    """Facade that evaluates requests and maintains history, metrics and alerts."""

    store: ComplianceStore
    settings: PolicySettings = field(default_factory=PolicySettings)
    library: PatternLibrary = DEFAULT_LIBRARY
    emitter: AlertEmitter = field(init=False)
    _executor: ThreadPoolExecutor = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.emitter = AlertEmitter(self.settings)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="compliance-store")

    @classmethod
    def from_settings(cls, settings: Optional[PolicySettings] = None) -> "ComplianceEngine":
        settings = settings or load_settings()
        return cls(store=JsonlComplianceStore(settings.data_dir), settings=settings)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def evaluate(
        self,
        input_text: Any,
        output_text: Any,
        model_name: Any,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> EvaluationResult:
        """Validate and score one pair without touching the store."""
        request = build_request(input_text, output_text, model_name, metadata)
        return evaluate_compliance(request, library=self.library)

    def submit(self, request: EvaluationRequest) -> EvaluationOutcome:
        """
        Evaluate a request and record it.

        Store writes are best-effort: failures are logged and reported in
        ``EvaluationOutcome.warnings`` while the result itself stays valid.

        Every submission recomputes metrics, and drift alerts are not
        deduplicated: while drift stays above the alert threshold each call
        appends another ``model_drift`` alert, which also raises
        ``active_audits`` until those alerts are resolved.
        """

        result = evaluate_compliance(request, library=self.library)
        record = EvaluationRecord(
            record_id=uuid4().hex,
            timestamp=utc_now(),
            model_name=request.model_name,
            input_text=request.input_text,
            output_text=request.output_text,
            result=result,
            metadata=dict(request.metadata),
            pattern_version=self.library.version,
        )
        logger.info(
            "Evaluation completed",
            extra={
                "record_id": record.record_id,
                "model_name": record.model_name,
                "status": result.status.value,
                "risk_score": result.risk_score,
                "reasons": len(result.reasons),
            },
        )

        outcome = EvaluationOutcome(record=record)
        self._collect(outcome.warnings, self._persist("append_evaluation", self.store.append_evaluation, record))

        alert = self.emitter.maybe_emit(record)
        if alert is not None:
            outcome.alerts.append(alert)
            self._collect(outcome.warnings, self._persist("append_alert", self.store.append_alert, alert))

        snapshot, metric_alerts, metric_warnings = self._recompute(self.settings.metrics_window_hours)
        outcome.snapshot = snapshot
        outcome.alerts.extend(metric_alerts)
        outcome.warnings.extend(metric_warnings)
        return outcome

    def recompute_metrics(self, window_hours: Optional[int] = None) -> ComplianceMetricsSnapshot:
        """Aggregate the trailing window, store the snapshot and check drift."""
        if window_hours is None:
            window_hours = self.settings.metrics_window_hours
        snapshot, _, _ = self._recompute(window_hours)
        return snapshot

    def resolve_alert(self, alert_id: str) -> ComplianceAlert:
        alert = self.store.get_alert(alert_id)
        resolved = resolve_alert(alert)
        self.store.update_alert(resolved)
        logger.info("Alert resolved", extra={"alert_id": alert_id, "alert_type": resolved.alert_type})
        return resolved

    def record_drift(self, measurement: DriftMeasurement) -> Optional[ComplianceAlert]:
        return self._ingest("append_drift_measurement", self.store.append_drift_measurement, measurement)

    def record_bias(self, measurement: BiasMeasurement) -> Optional[ComplianceAlert]:
        return self._ingest("append_bias_measurement", self.store.append_bias_measurement, measurement)

    def record_training_scan(self, summary: TrainingScanSummary) -> Optional[ComplianceAlert]:
        return self._ingest("append_training_scan", self.store.append_training_scan, summary)

    def _ingest(self, operation: str, writer: Callable[[Any], None], subject: Any) -> Optional[ComplianceAlert]:
        error = self._persist(operation, writer, subject)
        if error is not None:
            raise error
        alert = self.emitter.maybe_emit(subject)
        if alert is not None:
            alert_error = self._persist("append_alert", self.store.append_alert, alert)
            if alert_error is not None:
                logger.warning("Alert emitted but not stored", extra={"alert_id": alert.alert_id})
        return alert

    def _recompute(
        self, window_hours: int
    ) -> Tuple[ComplianceMetricsSnapshot, List[ComplianceAlert], List[str]]:
        warnings: List[str] = []
        alerts: List[ComplianceAlert] = []
        now = utc_now()

        try:
            history = self.store.query_recent_evaluations(window_hours)
        except (AggregationError, OSError) as exc:
            logger.warning(
                "Evaluation history unreadable; using empty window",
                extra={"window_hours": window_hours, "error": str(exc)},
            )
            history = []

        snapshot = aggregate_metrics(
            history,
            window_hours=window_hours,
            now=now,
            drift_percent=self._current_drift(window_hours, now),
            active_audits=self._open_alert_count(),
        )
        self._collect(warnings, self._persist("append_metrics_snapshot", self.store.append_metrics_snapshot, snapshot))

        alert = self.emitter.maybe_emit(snapshot)
        if alert is not None:
            alerts.append(alert)
            self._collect(warnings, self._persist("append_alert", self.store.append_alert, alert))
        return snapshot, alerts, warnings

    def _current_drift(self, window_hours: int, now: datetime) -> float:
        """Highest latest-per-model drift reading inside the window."""
        days = max(1, math.ceil(window_hours / 24))
        try:
            measurements = self.store.query_drift_measurements(days=days)
        except (AggregationError, OSError) as exc:
            logger.warning("Drift measurements unreadable", extra={"error": str(exc)})
            return 0.0
        cutoff = now - timedelta(hours=window_hours)
        latest: Dict[str, DriftMeasurement] = {}
        for measurement in measurements:
            if measurement.timestamp < cutoff:
                continue
            current = latest.get(measurement.model_name)
            if current is None or measurement.timestamp >= current.timestamp:
                latest[measurement.model_name] = measurement
        return max((m.drift_score for m in latest.values()), default=0.0)

    def _open_alert_count(self) -> int:
        try:
            return self.store.count_open_alerts()
        except (AggregationError, OSError) as exc:
            logger.warning("Alert store unreadable", extra={"error": str(exc)})
            return 0

    def _persist(self, operation: str, writer: Callable[[Any], None], payload: Any) -> Optional[PersistenceWriteError]:
        timeout = self.settings.persistence_timeout_seconds
        future = self._executor.submit(writer, payload)
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError:
            error = PersistenceWriteError(operation, f"timed out after {timeout:.1f}s")
        except Exception as exc:  # noqa: BLE001 - store failures must not break the response path
            error = PersistenceWriteError(operation, f"{type(exc).__name__}: {exc}")
        else:
            return None
        logger.error("Persistence write failed", extra={"operation": operation, "detail": error.detail})
        return error

    @staticmethod
    def _collect(warnings: List[str], error: Optional[PersistenceWriteError]) -> None:
        if error is not None:
            warnings.append(str(error))


__all__ = ["ComplianceEngine"]
