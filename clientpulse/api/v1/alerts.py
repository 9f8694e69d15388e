"""Staleness alert endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clientpulse.core.config import get_config
from clientpulse.core.dependencies import get_db_session
from clientpulse.core.exceptions import ValidationError
from clientpulse.schemas.alerts import AlertResponse, MarkReadResponse, PendingCountResponse, ScanResponse
from clientpulse.services.alert_service import AlertService
from clientpulse.tracking.alerts import LEVEL_FILTERS

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertResponse])
def list_alerts(
    level: str = Query(default="all"),
    db: Session = Depends(get_db_session),
) -> list[AlertResponse]:
    if level.lower() not in LEVEL_FILTERS:
        raise ValidationError({"level": f"Must be one of: {', '.join(LEVEL_FILTERS)}"})
    return [AlertResponse.model_validate(alert) for alert in AlertService(db).list_alerts(level)]


@router.get("/pending-count", response_model=PendingCountResponse)
def pending_count(db: Session = Depends(get_db_session)) -> PendingCountResponse:
    return PendingCountResponse(pending=AlertService(db).pending_count())


@router.get("/recent", response_model=list[AlertResponse])
def recent_alerts(
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db_session),
) -> list[AlertResponse]:
    resolved = limit or get_config().RECENT_ALERTS_LIMIT
    return [AlertResponse.model_validate(alert) for alert in AlertService(db).recent(resolved)]


@router.post("/scan", response_model=ScanResponse)
def scan_alerts(db: Session = Depends(get_db_session)) -> ScanResponse:
    return ScanResponse.model_validate(AlertService(db).scan())


@router.post("/clients/{client_id}/read", response_model=MarkReadResponse)
def mark_client_alerts_read(client_id: str, db: Session = Depends(get_db_session)) -> MarkReadResponse:
    return MarkReadResponse(client_id=client_id, marked_read=AlertService(db).mark_read(client_id))


@router.post("/{alert_id}/read", response_model=MarkReadResponse)
def mark_alert_read(alert_id: str, db: Session = Depends(get_db_session)) -> MarkReadResponse:
    service = AlertService(db)
    client_id, count = service.mark_alert_read(alert_id)
    return MarkReadResponse(client_id=client_id, marked_read=count)
