"""
Human-readable justification for non-safe dispositions.
"""

from __future__ import annotations

from typing import Callable, List, Tuple

from compliance_monitor.compliance.patterns import EMAIL_PATTERN, SSN_PATTERN
from compliance_monitor.compliance.scoring import FLAG_THRESHOLD

SSN_REASON = "Potential SSN detected"
EMAIL_REASON = "Email address detected"
PATIENT_REASON = "Patient information referenced"

# Priority order is part of the output contract.
REASON_CHECKS: Tuple[Tuple[Callable[[str], bool], str], ...] = (
    (lambda text: bool(SSN_PATTERN.search(text)), SSN_REASON),
    (lambda text: bool(EMAIL_PATTERN.search(text)), EMAIL_REASON),
    (lambda text: "patient" in text.lower(), PATIENT_REASON),
)


def explain(input_text: str, output_text: str, score: float) -> List[str]:
    """
    Return ordered reasons for a flagged or blocked evaluation.

    Scores below the flag threshold get no reasons. Phone, date and most
    medical-term hits have no matching check, so a non-safe result can still
    come back with an empty list.
    """

    if score < FLAG_THRESHOLD:
        return []
    text = input_text + output_text
    return [reason for check, reason in REASON_CHECKS if check(text)]


__all__ = ["explain", "SSN_REASON", "EMAIL_REASON", "PATIENT_REASON"]
