from pathlib import Path

import pytest

from compliance_monitor.config.settings import DEFAULT_DATA_DIR, PolicySettings, load_settings


def test_defaults_without_environment():
    settings = load_settings({})
    assert settings == PolicySettings()
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.metrics_window_hours == 24


def test_environment_overrides(tmp_path):
    settings = load_settings(
        {
            "COMPLIANCE_DATA_DIR": str(tmp_path),
            "COMPLIANCE_METRICS_WINDOW_HOURS": "12",
            "COMPLIANCE_DRIFT_ALERT_THRESHOLD": "3.5",
            "COMPLIANCE_PRIVACY_RISK_ESCALATION_THRESHOLD": "10",
        }
    )
    assert settings.data_dir == Path(tmp_path)
    assert settings.metrics_window_hours == 12
    assert settings.drift_alert_threshold == 3.5
    assert settings.privacy_risk_escalation_threshold == 10


def test_invalid_number_raises():
    with pytest.raises(ValueError, match="COMPLIANCE_BIAS_ALERT_THRESHOLD"):
        load_settings({"COMPLIANCE_BIAS_ALERT_THRESHOLD": "high"})


def test_escalation_below_alert_threshold_rejected():
    with pytest.raises(ValueError):
        PolicySettings(drift_alert_threshold=10.0, drift_escalation_threshold=5.0)
