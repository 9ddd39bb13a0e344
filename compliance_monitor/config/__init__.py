"""
Runtime configuration for the compliance monitor.
"""

from .settings import DEFAULT_DATA_DIR, PolicySettings, load_settings

__all__ = ["DEFAULT_DATA_DIR", "PolicySettings", "load_settings"]
