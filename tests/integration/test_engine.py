import time

import pytest

from compliance_monitor.compliance.evaluator import build_request
from compliance_monitor.config.settings import PolicySettings
from compliance_monitor.services.engine import ComplianceEngine
from compliance_monitor.services.errors import AlertTransitionError, InputValidationError, PersistenceWriteError
from compliance_monitor.services.types import (
    AlertSeverity,
    AlertStatus,
    DispositionStatus,
    DriftMeasurement,
    TrainingScanSummary,
)
from compliance_monitor.storage.audit import JsonlComplianceStore


@pytest.fixture
def store(tmp_path):
    return JsonlComplianceStore(tmp_path / "store")


@pytest.fixture
def engine(store):
    engine = ComplianceEngine(store=store, settings=PolicySettings(data_dir=store.root))
    yield engine
    engine.close()


def submit(engine, input_text, output_text="", model_name="clinical-llm", metadata=None):
    return engine.submit(build_request(input_text, output_text, model_name, metadata))


def test_evaluate_is_pure(engine, store):
    result = engine.evaluate("Contact me at a@b.com regarding patient diagnosis", "", "clinical-llm")
    assert result.status is DispositionStatus.FLAGGED
    assert store.list_evaluations() == []


def test_evaluate_rejects_invalid_fields(engine):
    with pytest.raises(InputValidationError):
        engine.evaluate("input", "output", "")
    with pytest.raises(InputValidationError):
        engine.evaluate(["not", "text"], "output", "model")
    with pytest.raises(InputValidationError):
        engine.evaluate("input", "output", "model", metadata=["not", "a", "map"])


def test_submit_records_history_and_metrics(engine, store):
    outcome = submit(engine, "Contact me at a@b.com regarding patient diagnosis", metadata={"session": "s1"})

    assert outcome.result.status is DispositionStatus.FLAGGED
    assert not outcome.degraded
    assert outcome.alerts == []
    assert outcome.record.pattern_version == engine.library.version
    assert store.list_evaluations()[0].record_id == outcome.record.record_id
    assert store.list_evaluations()[0].metadata == {"session": "s1"}

    assert outcome.snapshot.total_count == 1
    assert outcome.snapshot.flagged_count == 1
    assert outcome.snapshot.compliance_score == 0.0
    assert store.latest_metrics_snapshot() == outcome.snapshot


def test_metrics_track_mixed_history(engine):
    for _ in range(3):
        submit(engine, "What time is it?", "Noon.")
    outcome = submit(engine, "SSN 123-45-6789, email a@b.com, patient record")
    assert outcome.snapshot.total_count == 4
    assert outcome.snapshot.compliance_score == 75.0


def test_blocked_submission_emits_high_alert(engine, store):
    outcome = submit(engine, "SSN 123-45-6789, email a@b.com", "patient diagnosis")

    assert outcome.result.status is DispositionStatus.BLOCKED
    assert len(outcome.alerts) == 1
    alert = outcome.alerts[0]
    assert alert.severity is AlertSeverity.HIGH
    assert alert.related_model == "clinical-llm"
    assert store.get_alert(alert.alert_id).status is AlertStatus.OPEN


def test_failed_history_write_degrades_but_returns_result(engine, store, monkeypatch):
    def boom(record):
        raise OSError("disk full")

    monkeypatch.setattr(store, "append_evaluation", boom)
    outcome = submit(engine, "Contact me at a@b.com regarding patient diagnosis")

    assert outcome.degraded
    assert outcome.result.status is DispositionStatus.FLAGGED
    assert any("append_evaluation failed" in warning and "disk full" in warning for warning in outcome.warnings)
    assert outcome.snapshot.total_count == 0


def test_slow_write_times_out(store):
    engine = ComplianceEngine(
        store=store,
        settings=PolicySettings(data_dir=store.root, persistence_timeout_seconds=0.05),
    )
    original = store.append_evaluation

    def slow(record):
        time.sleep(0.3)
        original(record)

    store.append_evaluation = slow
    try:
        outcome = submit(engine, "hello", "world")
    finally:
        engine.close()

    assert outcome.result.status is DispositionStatus.SAFE
    assert any("timed out" in warning for warning in outcome.warnings)


def test_corrupt_history_falls_back_to_empty_window(engine, store):
    submit(engine, "SSN 123-45-6789, email a@b.com, patient record")
    with (store.root / JsonlComplianceStore.EVALUATIONS).open("a", encoding="utf-8") as fh:
        fh.write("garbage\n")

    snapshot = engine.recompute_metrics()
    assert snapshot.total_count == 0
    assert snapshot.compliance_score == 100.0


def test_drift_measurement_feeds_snapshot_and_alerts(engine, store):
    alert = engine.record_drift(
        DriftMeasurement(model_name="clinical-llm", drift_score=12.0, baseline_accuracy=0.93, current_accuracy=0.8)
    )
    assert alert.severity is AlertSeverity.HIGH

    snapshot = engine.recompute_metrics()
    assert snapshot.drift_percent == 12.0
    assert snapshot.active_audits == 1

    drift_alerts = [a for a in store.list_alerts() if a.alert_type == "model_drift"]
    assert len(drift_alerts) == 2


def test_latest_drift_per_model_wins(engine):
    engine.record_drift(DriftMeasurement(model_name="a", drift_score=4.0, baseline_accuracy=0.9, current_accuracy=0.87))
    engine.record_drift(DriftMeasurement(model_name="a", drift_score=1.0, baseline_accuracy=0.9, current_accuracy=0.89))
    engine.record_drift(DriftMeasurement(model_name="b", drift_score=2.0, baseline_accuracy=0.9, current_accuracy=0.88))
    assert engine.recompute_metrics().drift_percent == 2.0


def test_training_scan_write_failure_raises(engine, store, monkeypatch):
    def boom(summary):
        raise OSError("read-only")

    monkeypatch.setattr(store, "append_training_scan", boom)
    summary = TrainingScanSummary(file_name="x.csv", total_rows=10, flagged_rows=1, privacy_risks=1, bias_flags=0)
    with pytest.raises(PersistenceWriteError):
        engine.record_training_scan(summary)


def test_resolve_alert_is_terminal(engine, store):
    outcome = submit(engine, "SSN 123-45-6789, email a@b.com", "patient diagnosis")
    alert_id = outcome.alerts[0].alert_id

    resolved = engine.resolve_alert(alert_id)
    assert resolved.status is AlertStatus.RESOLVED
    assert store.get_alert(alert_id).resolved_at is not None

    with pytest.raises(AlertTransitionError):
        engine.resolve_alert(alert_id)


@pytest.mark.parametrize("filename", [JsonlComplianceStore.EVALUATIONS, JsonlComplianceStore.ALERTS])
def test_undecodable_store_bytes_do_not_break_checks(engine, store, filename):
    submit(engine, "SSN 123-45-6789, email a@b.com", "patient diagnosis")
    with (store.root / filename).open("ab") as fh:
        fh.write(b"\xff\xfe garbage\n")

    engine.recompute_metrics()

    outcome = submit(engine, "hello", "world", model_name="m")
    assert outcome.result.status is DispositionStatus.SAFE
    assert outcome.snapshot is not None


def test_undecodable_history_falls_back_to_empty_window(engine, store):
    submit(engine, "SSN 123-45-6789, email a@b.com, patient record")
    with (store.root / JsonlComplianceStore.EVALUATIONS).open("ab") as fh:
        fh.write(b"\xff\xfe garbage\n")

    snapshot = engine.recompute_metrics()
    assert snapshot.total_count == 0
    assert snapshot.compliance_score == 100.0


def test_recompute_rejects_zero_window(engine):
    with pytest.raises(ValueError):
        engine.recompute_metrics(0)
