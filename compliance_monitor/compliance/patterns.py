"""
Versioned pattern library for regulated-data detection (PHI/PII shapes).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

from compliance_monitor.services.types import MatchLocation, PatternCategory, PatternHit

PATTERN_LIBRARY_VERSION = "2024.1"

REGEX_WEIGHT = 0.3
TERM_WEIGHT = 0.1

SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b", re.ASCII)
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
PHONE_PATTERN = re.compile(r"\b\d{10,11}\b", re.ASCII)
DATE_PATTERN = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b", re.ASCII)


@dataclass(frozen=True, slots=True)
class PatternDetector:
    """Regex detector for one regulated-data shape."""

    detector_id: str
    category: PatternCategory
    pattern: re.Pattern[str]
    weight: float = REGEX_WEIGHT

    def matches(self, text: str) -> bool:
        return bool(self.pattern.search(text))


DETECTORS: Tuple[PatternDetector, ...] = (
    PatternDetector("ssn", PatternCategory.IDENTIFIER, SSN_PATTERN),
    PatternDetector("phone", PatternCategory.CONTACT, PHONE_PATTERN),
    PatternDetector("email", PatternCategory.CONTACT, EMAIL_PATTERN),
    PatternDetector("date", PatternCategory.DATE, DATE_PATTERN),
)

MEDICAL_TERMS: Tuple[str, ...] = (
    "diagnosis",
    "treatment",
    "medication",
    "prescription",
    "medical record",
    "patient",
    "symptom",
    "condition",
    "therapy",
    "surgery",
)


@dataclass(frozen=True, slots=True)
class PatternLibrary:
    """Detectors plus the sensitive medical vocabulary, pinned to a version."""

    version: str = PATTERN_LIBRARY_VERSION
    detectors: Tuple[PatternDetector, ...] = DETECTORS
    medical_terms: Tuple[str, ...] = MEDICAL_TERMS
    term_weight: float = TERM_WEIGHT

    def find_hits(self, text: str, location: MatchLocation = MatchLocation.INPUT) -> FrozenSet[PatternHit]:
        """Return every detector and distinct-term hit within a single text."""
        hits = {
            PatternHit(detector.category, location, detector.weight, detector.detector_id)
            for detector in self.detectors
            if detector.matches(text)
        }
        lowered = text.lower()
        hits.update(
            PatternHit(PatternCategory.MEDICAL_TERM, location, self.term_weight, f"term:{term}")
            for term in self.medical_terms
            if term in lowered
        )
        return frozenset(hits)

    def collect_hits(self, input_text: str, output_text: str) -> Tuple[PatternHit, ...]:
        """
        Collect hits for one input/output pair.

        Each regex detector counts once, whichever side it appears on (input
        wins). Medical terms are checked against the joined text and count
        once per distinct term.
        """

        hits: List[PatternHit] = []
        for detector in self.detectors:
            if detector.matches(input_text):
                location = MatchLocation.INPUT
            elif detector.matches(output_text):
                location = MatchLocation.OUTPUT
            else:
                continue
            hits.append(PatternHit(detector.category, location, detector.weight, detector.detector_id))

        combined = f"{input_text} {output_text}".lower()
        input_lower = input_text.lower()
        for term in self.medical_terms:
            if term not in combined:
                continue
            location = MatchLocation.INPUT if term in input_lower else MatchLocation.OUTPUT
            hits.append(PatternHit(PatternCategory.MEDICAL_TERM, location, self.term_weight, f"term:{term}"))
        return tuple(hits)


DEFAULT_LIBRARY = PatternLibrary()


__all__ = [
    "PATTERN_LIBRARY_VERSION",
    "PatternDetector",
    "PatternLibrary",
    "DETECTORS",
    "MEDICAL_TERMS",
    "DEFAULT_LIBRARY",
    "SSN_PATTERN",
    "EMAIL_PATTERN",
    "PHONE_PATTERN",
    "DATE_PATTERN",
]
