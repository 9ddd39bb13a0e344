from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from compliance_monitor.evaluation.metrics import aggregate_metrics, compliance_score
from compliance_monitor.services.types import DispositionStatus, EvaluationRecord, EvaluationResult

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_record(status: DispositionStatus, *, hours_ago: float = 1.0, index: int = 0) -> EvaluationRecord:
    score = {DispositionStatus.SAFE: 0.1, DispositionStatus.FLAGGED: 0.6, DispositionStatus.BLOCKED: 0.9}[status]
    return EvaluationRecord(
        record_id=f"r{index}",
        timestamp=NOW - timedelta(hours=hours_ago),
        model_name="test-model",
        input_text="in",
        output_text="out",
        result=EvaluationResult(risk_score=score, status=status),
    )


def test_compliance_score_counts_flagged_and_blocked():
    statuses = [DispositionStatus.SAFE] * 7 + [DispositionStatus.FLAGGED] * 2 + [DispositionStatus.BLOCKED]
    history = [make_record(status, index=i) for i, status in enumerate(statuses)]

    snapshot = aggregate_metrics(history, now=NOW)

    assert snapshot.compliance_score == 70.0
    assert snapshot.flagged_count == 3
    assert snapshot.total_count == 10
    assert snapshot.window_end == NOW
    assert snapshot.window_start == NOW - timedelta(hours=24)


def test_empty_window_scores_perfect():
    snapshot = aggregate_metrics([], now=NOW)
    assert snapshot.compliance_score == 100.0
    assert snapshot.flagged_count == 0
    assert snapshot.total_count == 0


def test_entries_outside_window_are_ignored():
    history = [
        make_record(DispositionStatus.BLOCKED, hours_ago=30, index=0),
        make_record(DispositionStatus.SAFE, hours_ago=2, index=1),
    ]
    snapshot = aggregate_metrics(history, now=NOW)
    assert snapshot.total_count == 1
    assert snapshot.compliance_score == 100.0


def test_window_bounds_are_inclusive():
    history = [make_record(DispositionStatus.FLAGGED, hours_ago=24, index=0)]
    snapshot = aggregate_metrics(history, now=NOW)
    assert snapshot.flagged_count == 1


def test_custom_window_and_collaborator_inputs():
    history = [
        make_record(DispositionStatus.FLAGGED, hours_ago=3, index=0),
        make_record(DispositionStatus.SAFE, hours_ago=0.5, index=1),
    ]
    snapshot = aggregate_metrics(history, window_hours=1, now=NOW, drift_percent=2.5, active_audits=4)
    assert snapshot.total_count == 1
    assert snapshot.window_hours == 1
    assert snapshot.drift_percent == 2.5
    assert snapshot.active_audits == 4


def test_malformed_entries_are_skipped():
    history = [
        SimpleNamespace(timestamp=None, status="flagged"),
        SimpleNamespace(timestamp=NOW, status="unknown"),
        SimpleNamespace(timestamp=NOW - timedelta(hours=1), status="blocked"),
        make_record(DispositionStatus.SAFE, index=3),
    ]
    snapshot = aggregate_metrics(history, now=NOW)
    assert snapshot.total_count == 2
    assert snapshot.flagged_count == 1
    assert snapshot.compliance_score == 50.0


def test_history_is_not_mutated():
    history = [make_record(DispositionStatus.SAFE, index=i) for i in range(3)]
    before = list(history)
    aggregate_metrics(history, now=NOW)
    assert history == before


def test_invalid_window_rejected():
    with pytest.raises(ValueError):
        aggregate_metrics([], window_hours=0, now=NOW)


def test_compliance_score_helper():
    assert compliance_score(0, 0) == 100.0
    assert compliance_score(4, 1) == 75.0
