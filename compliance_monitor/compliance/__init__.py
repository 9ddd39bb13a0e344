"""
Compliance detectors, scoring and alerting.

Modules under this package score AI input/output pairs for regulated
personal and health data and produce safe/flagged/blocked dispositions.
"""

from .alerts import AlertEmitter, resolve_alert
from .evaluator import build_request, evaluate_compliance
from .patterns import DEFAULT_LIBRARY, PATTERN_LIBRARY_VERSION, PatternLibrary
from .reasons import explain
from .scoring import classify_score, score_hits

__all__ = [
    "AlertEmitter",
    "DEFAULT_LIBRARY",
    "PATTERN_LIBRARY_VERSION",
    "PatternLibrary",
    "build_request",
    "classify_score",
    "evaluate_compliance",
    "explain",
    "resolve_alert",
    "score_hits",
]
