"""
Policy thresholds and runtime settings for the compliance monitor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DATA_DIR = Path("project_bundle/compliance_store")


@dataclass(frozen=True, slots=True)
class PolicySettings:
    """Alerting thresholds and store/runtime configuration."""

    data_dir: Path = DEFAULT_DATA_DIR
    metrics_window_hours: int = 24
    persistence_timeout_seconds: float = 2.0
    drift_alert_threshold: float = 5.0
    drift_escalation_threshold: float = 10.0
    bias_alert_threshold: float = 0.1
    bias_escalation_threshold: float = 0.25
    privacy_risk_alert_threshold: int = 1
    privacy_risk_escalation_threshold: int = 50
    bias_flag_alert_threshold: int = 25

    def __post_init__(self) -> None:
        if self.metrics_window_hours <= 0:
            raise ValueError("metrics_window_hours must be positive")
        if self.persistence_timeout_seconds <= 0:
            raise ValueError("persistence_timeout_seconds must be positive")
        if self.drift_escalation_threshold < self.drift_alert_threshold:
            raise ValueError("drift escalation threshold must not be below the alert threshold")
        if self.bias_escalation_threshold < self.bias_alert_threshold:
            raise ValueError("bias escalation threshold must not be below the alert threshold")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> PolicySettings:
    """Build settings from environment variables (``.env`` is honoured)."""
    if env is None:
        load_dotenv()
        env = os.environ
    defaults = PolicySettings()
    return PolicySettings(
        data_dir=Path(env.get("COMPLIANCE_DATA_DIR") or defaults.data_dir),
        metrics_window_hours=_env_int(env, "COMPLIANCE_METRICS_WINDOW_HOURS", defaults.metrics_window_hours),
        persistence_timeout_seconds=_env_float(
            env, "COMPLIANCE_PERSIST_TIMEOUT_SECONDS", defaults.persistence_timeout_seconds
        ),
        drift_alert_threshold=_env_float(env, "COMPLIANCE_DRIFT_ALERT_THRESHOLD", defaults.drift_alert_threshold),
        drift_escalation_threshold=_env_float(
            env, "COMPLIANCE_DRIFT_ESCALATION_THRESHOLD", defaults.drift_escalation_threshold
        ),
        bias_alert_threshold=_env_float(env, "COMPLIANCE_BIAS_ALERT_THRESHOLD", defaults.bias_alert_threshold),
        bias_escalation_threshold=_env_float(
            env, "COMPLIANCE_BIAS_ESCALATION_THRESHOLD", defaults.bias_escalation_threshold
        ),
        privacy_risk_alert_threshold=_env_int(
            env, "COMPLIANCE_PRIVACY_RISK_ALERT_THRESHOLD", defaults.privacy_risk_alert_threshold
        ),
        privacy_risk_escalation_threshold=_env_int(
            env, "COMPLIANCE_PRIVACY_RISK_ESCALATION_THRESHOLD", defaults.privacy_risk_escalation_threshold
        ),
        bias_flag_alert_threshold=_env_int(
            env, "COMPLIANCE_BIAS_FLAG_ALERT_THRESHOLD", defaults.bias_flag_alert_threshold
        ),
    )


__all__ = ["PolicySettings", "load_settings", "DEFAULT_DATA_DIR"]
