"""
compliance_monitor package bootstrap.

Scores AI model input/output pairs for HIPAA/GDPR-sensitive content and
maintains rolling compliance metrics and alerts.
"""

from importlib import metadata


def get_version() -> str:
    """Return the package version if installed, else '0.0.0'."""
    try:
        return metadata.version("compliance-monitor")
    except metadata.PackageNotFoundError:  # pragma: no cover - best effort only
        return "0.0.0"


__all__ = ["get_version"]
