"""Metrics, pipeline report and recency classification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clientpulse.core.dependencies import get_db_session
from clientpulse.schemas.clients import RecencyRequest, RecencyResponse
from clientpulse.schemas.metrics import MetricsSnapshotResponse, MonthlyPerformanceResponse, StageDwellResponse
from clientpulse.services.metrics_service import MetricsService
from clientpulse.services.pipeline_service import PipelineService
from clientpulse.tracking.recency import classify

router = APIRouter(tags=["metrics"])


@router.get("/metrics/summary", response_model=MetricsSnapshotResponse)
def metrics_summary(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db_session),
) -> MetricsSnapshotResponse:
    snapshot = MetricsService(db).aggregate_metrics(include_inactive=include_inactive)
    return MetricsSnapshotResponse.model_validate(snapshot)


@router.get("/metrics/stages", response_model=list[StageDwellResponse])
def stage_report(db: Session = Depends(get_db_session)) -> list[StageDwellResponse]:
    return [StageDwellResponse.model_validate(row) for row in PipelineService(db).stage_dwell_report()]


@router.get("/metrics/performance", response_model=list[MonthlyPerformanceResponse])
def agent_performance(
    months: int = Query(default=12, ge=1, le=36),
    db: Session = Depends(get_db_session),
) -> list[MonthlyPerformanceResponse]:
    rows = MetricsService(db).agent_performance(months=months)
    return [MonthlyPerformanceResponse.model_validate(row) for row in rows]


@router.post("/recency/classify", response_model=RecencyResponse)
def classify_recency(payload: RecencyRequest) -> RecencyResponse:
    return RecencyResponse.model_validate(classify(payload.last_interaction_date, now=payload.now))
