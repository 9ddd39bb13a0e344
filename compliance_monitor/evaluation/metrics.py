"""
Rolling compliance metrics over evaluation history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from compliance_monitor.services.types import ComplianceMetricsSnapshot, DispositionStatus, utc_now

logger = logging.getLogger("compliance_monitor.evaluation.metrics")

@dataclass(slots=True)
class WindowCounts:
    """Disposition tallies for entries inside one window."""

    total: int = 0
    safe: int = 0
    flagged: int = 0
    blocked: int = 0
    skipped: int = 0

    @property
    def non_compliant(self) -> int:
        return self.flagged + self.blocked

    def add(self, status: DispositionStatus) -> None:
        self.total += 1
        if status is DispositionStatus.SAFE:
            self.safe += 1
        elif status is DispositionStatus.FLAGGED:
            self.flagged += 1
        elif status is DispositionStatus.BLOCKED:
            self.blocked += 1


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _entry_timestamp(entry: Any) -> Optional[datetime]:
    value = getattr(entry, "timestamp", None)
    if isinstance(value, datetime):
        return _as_utc(value)
    return None


def _entry_status(entry: Any) -> Optional[DispositionStatus]:
    result = getattr(entry, "result", entry)
    status = getattr(result, "status", None)
    if isinstance(status, DispositionStatus):
        return status
    try:
        return DispositionStatus(status)
    except ValueError:
        return None


def count_window(history: Iterable[Any], *, window_start: datetime, window_end: datetime) -> WindowCounts:
    """Tally dispositions of entries whose timestamp falls inside the window."""
    counts = WindowCounts()
    for entry in history or ():
        timestamp = _entry_timestamp(entry)
        status = _entry_status(entry)
        if timestamp is None or status is None:
            counts.skipped += 1
            continue
        if timestamp < window_start or timestamp > window_end:
            continue
        counts.add(status)
    if counts.skipped:
        logger.warning(
            "Skipped malformed history entries during aggregation",
            extra={"skipped": counts.skipped},
        )
    return counts


def compliance_score(total: int, non_compliant: int) -> float:
    """Percentage of compliant evaluations; an empty window scores 100."""
    if total <= 0:
        return 100.0
    return 100.0 * (total - non_compliant) / total


def aggregate_metrics(
    history: Iterable[Any],
    *,
    window_hours: int = 24,
    now: Optional[datetime] = None,
    drift_percent: float = 0.0,
    active_audits: int = 0,
) -> ComplianceMetricsSnapshot:
    """
    Roll evaluation history up into a compliance snapshot.

    Args:
        history: Evaluation records (anything exposing ``timestamp`` and a
            ``result.status`` or ``status``). Not mutated.
        window_hours: Trailing window length; bounds are inclusive.
        now: Window end, defaults to the current UTC time.
        drift_percent: Drift reading supplied by the drift monitor.
        active_audits: Count supplied by the caller (open alerts).

    Returns:
        ComplianceMetricsSnapshot for the window.
    """

    if window_hours <= 0:
        raise ValueError("window_hours must be positive")
    window_end = _as_utc(now) if now else utc_now()
    window_start = window_end - timedelta(hours=window_hours)
    counts = count_window(history, window_start=window_start, window_end=window_end)
    return ComplianceMetricsSnapshot(
        compliance_score=compliance_score(counts.total, counts.non_compliant),
        flagged_count=counts.non_compliant,
        total_count=counts.total,
        drift_percent=float(drift_percent),
        active_audits=int(active_audits),
        window_start=window_start,
        window_end=window_end,
        window_hours=window_hours,
        timestamp=window_end,
    )


__all__ = ["WindowCounts", "aggregate_metrics", "compliance_score", "count_window"]
