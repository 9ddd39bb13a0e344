"""
FastAPI application exposing the compliance engine to dashboards and clients.

Output checks are scored synchronously; persistence, metrics and alerting
are best-effort side effects reported back as warnings on the response.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

load_dotenv()

logger = logging.getLogger("compliance_monitor.ui.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

from compliance_monitor.compliance.evaluator import build_request
from compliance_monitor.services.engine import ComplianceEngine
from compliance_monitor.services.errors import (
    AlertNotFoundError,
    AlertTransitionError,
    InputValidationError,
    PersistenceWriteError,
)
from compliance_monitor.services.types import (
    AlertStatus,
    BiasMeasurement,
    DriftMeasurement,
    TrainingScanSummary,
    utc_now,
)

from .schema import get_check_output_schema, serialize_check_response, serialize_snapshot, to_api


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class CheckOutputRequest(ApiModel):
    input: StrictStr
    output: StrictStr
    model_name: StrictStr
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DriftRequest(ApiModel):
    model_name: str
    drift_score: float = Field(ge=0)
    baseline_accuracy: float
    current_accuracy: float
    data_distribution_shift: float = 0.0
    performance_metrics: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class BiasRequest(ApiModel):
    model_name: str
    demographic_group: str
    bias_score: float = Field(ge=0)
    fairness_metrics: Dict[str, Any] = Field(default_factory=dict)
    mitigation_suggestions: List[str] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


class TrainingScanRequest(ApiModel):
    file_name: str
    total_rows: int = Field(ge=0)
    flagged_rows: int = Field(ge=0)
    privacy_risks: int = Field(ge=0)
    bias_flags: int = Field(ge=0)
    missing_docs: int = Field(default=0, ge=0)
    timestamp: Optional[datetime] = None


def _timestamp(value: Optional[datetime]) -> datetime:
    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _ingest_response(kind: str, record: Any, alert: Any) -> Dict[str, Any]:
    return {
        "status": "recorded",
        kind: to_api(record),
        "alert": to_api(alert) if alert is not None else None,
    }


def create_app(engine: Optional[ComplianceEngine] = None) -> FastAPI:
    """Build the API around ``engine`` (configured from the environment if omitted)."""

    engine = engine or ComplianceEngine.from_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        engine.close()

    app = FastAPI(title="Compliance Monitor API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.state.engine = engine

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "patternVersion": engine.library.version}

    @app.post("/api/check-output")
    def check_output(payload: CheckOutputRequest) -> dict:
        """Score an input/output pair and record the result."""
        try:
            request = build_request(payload.input, payload.output, payload.model_name, payload.metadata)
        except InputValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        outcome = engine.submit(request)
        if outcome.degraded:
            logger.warning(
                "Output check returned with degraded persistence",
                extra={"record_id": outcome.record.record_id, "warnings": len(outcome.warnings)},
            )
        return serialize_check_response(outcome)

    @app.get("/api/schema/check-output")
    def check_output_schema() -> dict:
        return get_check_output_schema()

    @app.get("/api/metrics")
    def latest_metrics() -> dict:
        snapshot = engine.store.latest_metrics_snapshot()
        if snapshot is None:
            snapshot = engine.recompute_metrics()
        return serialize_snapshot(snapshot)

    @app.post("/api/metrics/recompute", status_code=201)
    def recompute_metrics(window_hours: Optional[int] = Query(None, alias="windowHours", ge=1)) -> dict:
        return serialize_snapshot(engine.recompute_metrics(window_hours))

    @app.get("/api/metrics/history")
    def metrics_history(days: int = Query(7, ge=1)) -> List[dict]:
        return [serialize_snapshot(snapshot) for snapshot in engine.store.query_metrics_history(days)]

    @app.get("/api/logs")
    def evaluation_logs(limit: int = Query(50, ge=1, le=1000)) -> List[dict]:
        return [to_api(record) for record in engine.store.list_evaluations(limit)]

    @app.get("/api/alerts")
    def list_alerts(
        status: Optional[AlertStatus] = Query(None),
        limit: int = Query(50, ge=1, le=1000),
    ) -> List[dict]:
        return [to_api(alert) for alert in engine.store.list_alerts(status, limit)]

    @app.post("/api/alerts/{alert_id}/resolve")
    def resolve_alert(alert_id: str) -> dict:
        try:
            alert = engine.resolve_alert(alert_id)
        except AlertNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except AlertTransitionError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return to_api(alert)

    @app.post("/api/drift-data", status_code=201)
    def record_drift(payload: DriftRequest) -> dict:
        measurement = DriftMeasurement(
            model_name=payload.model_name,
            drift_score=payload.drift_score,
            baseline_accuracy=payload.baseline_accuracy,
            current_accuracy=payload.current_accuracy,
            data_distribution_shift=payload.data_distribution_shift,
            performance_metrics=payload.performance_metrics,
            timestamp=_timestamp(payload.timestamp),
        )
        try:
            alert = engine.record_drift(measurement)
        except PersistenceWriteError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return _ingest_response("measurement", measurement, alert)

    @app.get("/api/drift-data")
    def drift_data(model: Optional[str] = Query(None), days: int = Query(30, ge=1)) -> List[dict]:
        return [to_api(item) for item in engine.store.query_drift_measurements(model, days)]

    @app.post("/api/bias-results", status_code=201)
    def record_bias(payload: BiasRequest) -> dict:
        measurement = BiasMeasurement(
            model_name=payload.model_name,
            demographic_group=payload.demographic_group,
            bias_score=payload.bias_score,
            fairness_metrics=payload.fairness_metrics,
            mitigation_suggestions=payload.mitigation_suggestions,
            timestamp=_timestamp(payload.timestamp),
        )
        try:
            alert = engine.record_bias(measurement)
        except PersistenceWriteError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return _ingest_response("measurement", measurement, alert)

    @app.get("/api/bias-results")
    def bias_results(model: Optional[str] = Query(None), days: int = Query(30, ge=1)) -> List[dict]:
        return [to_api(item) for item in engine.store.query_bias_measurements(model, days)]

    @app.post("/api/training-scans", status_code=201)
    def record_training_scan(payload: TrainingScanRequest) -> dict:
        if payload.flagged_rows > payload.total_rows:
            raise HTTPException(status_code=400, detail="flaggedRows cannot exceed totalRows.")
        summary = TrainingScanSummary(
            file_name=payload.file_name,
            total_rows=payload.total_rows,
            flagged_rows=payload.flagged_rows,
            privacy_risks=payload.privacy_risks,
            bias_flags=payload.bias_flags,
            missing_docs=payload.missing_docs,
            timestamp=_timestamp(payload.timestamp),
        )
        try:
            alert = engine.record_training_scan(summary)
        except PersistenceWriteError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return _ingest_response("scan", summary, alert)

    @app.get("/api/training-scans")
    def training_scans(limit: int = Query(50, ge=1, le=1000)) -> List[dict]:
        return [to_api(scan) for scan in engine.store.list_training_scans(limit)]

    return app


__all__ = ["create_app"]
