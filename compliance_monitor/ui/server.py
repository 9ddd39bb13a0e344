"""
Command-line entry point for running the compliance monitor API service.

Usage:
    python -m compliance_monitor.ui.server

Environment variables:
    COMPLIANCE_DATA_DIR       Directory holding the JSONL stores.
    COMPLIANCE_API_HOST       Host interface to bind (default: 127.0.0.1).
    COMPLIANCE_API_PORT       Port for the service (default: 8000).
    COMPLIANCE_API_RELOAD     Set to "1" to enable autoreload (development only).
"""

from __future__ import annotations

import os
from typing import Optional

import uvicorn


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def main() -> None:
    """Boot the FastAPI application with configurable host/port."""

    host = os.getenv("COMPLIANCE_API_HOST", "127.0.0.1")
    port = int(os.getenv("COMPLIANCE_API_PORT", "8000"))
    reload_flag = _env_bool(os.getenv("COMPLIANCE_API_RELOAD"), default=False)

    uvicorn.run(
        "compliance_monitor.ui.api:create_app",
        host=host,
        port=port,
        reload=reload_flag,
        factory=True,
    )


if __name__ == "__main__":
    main()
