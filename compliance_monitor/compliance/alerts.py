"""
Alert emission from evaluations and aggregated monitoring signals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union
from uuid import uuid4

from compliance_monitor.config.settings import PolicySettings
from compliance_monitor.services.errors import AlertTransitionError
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
    utc_now,
)

AlertSubject = Union[
    EvaluationRecord,
    EvaluationResult,
    ComplianceMetricsSnapshot,
    DriftMeasurement,
    BiasMeasurement,
    TrainingScanSummary,
]


def _new_alert(
    alert_type: str,
    severity: AlertSeverity,
    title: str,
    description: str,
    related_model: Optional[str] = None,
) -> ComplianceAlert:
    return ComplianceAlert(
        alert_id=uuid4().hex,
        alert_type=alert_type,
        severity=severity,
        title=title,
        description=description,
        related_model=related_model,
    )


@dataclass(slots=True)
class AlertEmitter:
    """Derive alerts from evaluations and monitoring measurements.

    Repeated calls with the same subject emit repeated alerts; callers own
    deduplication.
    """

    settings: PolicySettings = field(default_factory=PolicySettings)

    def maybe_emit(self, subject: AlertSubject, *, model_name: Optional[str] = None) -> Optional[ComplianceAlert]:
        if isinstance(subject, EvaluationRecord):
            return self.for_evaluation(subject.result, model_name=subject.model_name)
        if isinstance(subject, EvaluationResult):
            return self.for_evaluation(subject, model_name=model_name)
        if isinstance(subject, ComplianceMetricsSnapshot):
            return self.for_snapshot(subject)
        if isinstance(subject, DriftMeasurement):
            return self.for_drift(subject)
        if isinstance(subject, BiasMeasurement):
            return self.for_bias(subject)
        if isinstance(subject, TrainingScanSummary):
            return self.for_training_scan(subject)
        raise TypeError(f"Unsupported alert subject: {type(subject).__name__}")

    def for_evaluation(self, result: EvaluationResult, *, model_name: Optional[str] = None) -> Optional[ComplianceAlert]:
        if result.status is not DispositionStatus.BLOCKED:
            return None
        detail = "; ".join(result.reasons) if result.reasons else "no specific indicator matched"
        return _new_alert(
            "blocked_output",
            AlertSeverity.HIGH,
            "AI output blocked for regulated content",
            f"Risk score {result.risk_score:.2f} reached the block threshold ({detail}).",
            related_model=model_name,
        )

    def _drift_severity(self, drift: float) -> Optional[AlertSeverity]:
        if drift > self.settings.drift_escalation_threshold:
            return AlertSeverity.HIGH
        if drift > self.settings.drift_alert_threshold:
            return AlertSeverity.MEDIUM
        return None

    def for_snapshot(self, snapshot: ComplianceMetricsSnapshot) -> Optional[ComplianceAlert]:
        severity = self._drift_severity(snapshot.drift_percent)
        if severity is None:
            return None
        return _new_alert(
            "model_drift",
            severity,
            "Model drift above policy threshold",
            (
                f"Drift of {snapshot.drift_percent:.2f}% over the trailing {snapshot.window_hours}h window "
                f"exceeds the {self.settings.drift_alert_threshold:.2f}% threshold."
            ),
        )

    def for_drift(self, measurement: DriftMeasurement) -> Optional[ComplianceAlert]:
        severity = self._drift_severity(measurement.drift_score)
        if severity is None:
            return None
        return _new_alert(
            "model_drift",
            severity,
            f"Model drift detected for {measurement.model_name}",
            (
                f"Drift score {measurement.drift_score:.2f}% (accuracy {measurement.baseline_accuracy:.3f} -> "
                f"{measurement.current_accuracy:.3f}) exceeds the {self.settings.drift_alert_threshold:.2f}% threshold."
            ),
            related_model=measurement.model_name,
        )

    def for_bias(self, measurement: BiasMeasurement) -> Optional[ComplianceAlert]:
        if measurement.bias_score > self.settings.bias_escalation_threshold:
            severity = AlertSeverity.HIGH
        elif measurement.bias_score > self.settings.bias_alert_threshold:
            severity = AlertSeverity.MEDIUM
        else:
            return None
        return _new_alert(
            "bias_detected",
            severity,
            f"Bias detected for group '{measurement.demographic_group}'",
            (
                f"Bias score {measurement.bias_score:.3f} for {measurement.model_name} exceeds "
                f"the {self.settings.bias_alert_threshold:.3f} threshold."
            ),
            related_model=measurement.model_name,
        )

    def for_training_scan(self, summary: TrainingScanSummary) -> Optional[ComplianceAlert]:
        privacy_hit = summary.privacy_risks >= self.settings.privacy_risk_alert_threshold
        bias_hit = summary.bias_flags >= self.settings.bias_flag_alert_threshold
        if not (privacy_hit or bias_hit):
            return None
        if summary.privacy_risks >= self.settings.privacy_risk_escalation_threshold:
            severity = AlertSeverity.HIGH
        else:
            severity = AlertSeverity.MEDIUM
        return _new_alert(
            "training_data_risk",
            severity,
            f"Training data risks found in {summary.file_name}",
            (
                f"{summary.flagged_rows} of {summary.total_rows} rows flagged: "
                f"{summary.privacy_risks} privacy risks, {summary.bias_flags} bias flags, "
                f"{summary.missing_docs} missing documentation entries."
            ),
        )


def resolve_alert(alert: ComplianceAlert, *, now: Optional[datetime] = None) -> ComplianceAlert:
    """Move an OPEN alert to RESOLVED; resolved alerts are terminal."""
    if alert.status is AlertStatus.RESOLVED:
        raise AlertTransitionError(f"Alert {alert.alert_id} is already resolved")
    return replace(alert, status=AlertStatus.RESOLVED, resolved_at=now or utc_now())


__all__ = ["AlertEmitter", "AlertSubject", "resolve_alert"]
