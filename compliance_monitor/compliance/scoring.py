"""
Risk scoring and disposition thresholds.
"""

from __future__ import annotations

import math
from typing import Iterable

from compliance_monitor.services.types import DispositionStatus, PatternHit

BLOCK_THRESHOLD = 0.8
FLAG_THRESHOLD = 0.5
MAX_RISK_SCORE = 1.0


def score_hits(hits: Iterable[PatternHit]) -> float:
    """Sum hit weights into a risk score clamped to [0, 1]."""
    # fsum is exact, so 0.3 + 0.3 + 0.1 + 0.1 lands on 0.8 in any order.
    total = round(math.fsum(hit.weight for hit in hits), 6)
    return min(max(total, 0.0), MAX_RISK_SCORE)


def classify_score(score: float) -> DispositionStatus:
    if score >= BLOCK_THRESHOLD:
        return DispositionStatus.BLOCKED
    if score >= FLAG_THRESHOLD:
        return DispositionStatus.FLAGGED
    return DispositionStatus.SAFE


__all__ = ["score_hits", "classify_score", "BLOCK_THRESHOLD", "FLAG_THRESHOLD", "MAX_RISK_SCORE"]
