"""
Dataclasses describing compliance evaluation payloads and records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PatternCategory(str, Enum):
    IDENTIFIER = "identifier"
    CONTACT = "contact"
    DATE = "date"
    MEDICAL_TERM = "medical_term"


class MatchLocation(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class DispositionStatus(str, Enum):
    SAFE = "safe"
    FLAGGED = "flagged"
    BLOCKED = "blocked"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


@dataclass(frozen=True, slots=True)
class EvaluationRequest:
    """Input/output pair submitted for compliance scoring."""

    input_text: str
    output_text: str
    model_name: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PatternHit:
    """Single detector match within one evaluation."""

    category: PatternCategory
    matched_in: MatchLocation
    weight: float
    detector: str


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Risk score, disposition and justification for one evaluation."""

    risk_score: float
    status: DispositionStatus
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EvaluationRecord:
    """Persisted history entry for an evaluation."""

    record_id: str
    timestamp: datetime
    model_name: str
    input_text: str
    output_text: str
    result: EvaluationResult
    metadata: Dict[str, Any] = field(default_factory=dict)
    pattern_version: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ComplianceMetricsSnapshot:
    """Rolling compliance metrics over a trailing window."""

    compliance_score: float
    flagged_count: int
    total_count: int
    drift_percent: float
    active_audits: int
    window_start: datetime
    window_end: datetime
    window_hours: int = 24
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class ComplianceAlert:
    """Alert raised by the emitter; only OPEN -> RESOLVED is allowed."""

    alert_id: str
    alert_type: str
    severity: AlertSeverity
    title: str
    description: str
    related_model: Optional[str] = None
    status: AlertStatus = AlertStatus.OPEN
    created_at: datetime = field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class DriftMeasurement:
    """Model drift reading supplied by the drift monitor."""

    model_name: str
    drift_score: float  # percent
    baseline_accuracy: float
    current_accuracy: float
    data_distribution_shift: float = 0.0
    performance_metrics: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class BiasMeasurement:
    """Fairness reading for one demographic group."""

    model_name: str
    demographic_group: str
    bias_score: float
    fairness_metrics: Dict[str, Any] = field(default_factory=dict)
    mitigation_suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class TrainingScanSummary:
    """Aggregate counts reported by the training-data scanner."""

    file_name: str
    total_rows: int
    flagged_rows: int
    privacy_risks: int
    bias_flags: int
    missing_docs: int = 0
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class EvaluationOutcome:
    """Result of a full submission, including best-effort side effects."""

    record: EvaluationRecord
    snapshot: Optional[ComplianceMetricsSnapshot] = None
    alerts: List[ComplianceAlert] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def result(self) -> EvaluationResult:
        return self.record.result

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


__all__ = [
    "PatternCategory",
    "MatchLocation",
    "DispositionStatus",
    "AlertSeverity",
    "AlertStatus",
    "EvaluationRequest",
    "PatternHit",
    "EvaluationResult",
    "EvaluationRecord",
    "ComplianceMetricsSnapshot",
    "ComplianceAlert",
    "DriftMeasurement",
    "BiasMeasurement",
    "TrainingScanSummary",
    "EvaluationOutcome",
    "utc_now",
]
