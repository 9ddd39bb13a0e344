"""
Pattern-based compliance evaluation of a single input/output pair.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Optional

from compliance_monitor.compliance.patterns import DEFAULT_LIBRARY, PatternLibrary
from compliance_monitor.compliance.reasons import explain
from compliance_monitor.compliance.scoring import classify_score, score_hits
from compliance_monitor.services.errors import InputValidationError
from compliance_monitor.services.types import DispositionStatus, EvaluationRequest, EvaluationResult


def build_request(
    input_text: Any,
    output_text: Any,
    model_name: Any,
    metadata: Optional[Mapping[str, Any]] = None,
) -> EvaluationRequest:
    """Validate raw fields and freeze them into an EvaluationRequest."""
    if not isinstance(input_text, str):
        raise InputValidationError("input must be a string")
    if not isinstance(output_text, str):
        raise InputValidationError("output must be a string")
    if not isinstance(model_name, str) or not model_name.strip():
        raise InputValidationError("modelName must be a non-empty string")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise InputValidationError("metadata must be a key/value mapping")

    meta: Dict[str, Any] = {str(key): value for key, value in (metadata or {}).items()}
    return EvaluationRequest(
        input_text=input_text,
        output_text=output_text,
        model_name=model_name.strip(),
        metadata=meta,
    )


def evaluate_compliance(
    request: EvaluationRequest,
    *,
    library: PatternLibrary = DEFAULT_LIBRARY,
) -> EvaluationResult:
    """Score the pair, classify it and attach reasons when not safe."""

    hits = library.collect_hits(request.input_text, request.output_text)
    risk_score = score_hits(hits)
    status = classify_score(risk_score)
    reasons: tuple[str, ...] = ()
    if status is not DispositionStatus.SAFE:
        reasons = tuple(explain(request.input_text, request.output_text, risk_score))
    return EvaluationResult(risk_score=risk_score, status=status, reasons=reasons)


__all__ = ["build_request", "evaluate_compliance"]
