"""Interaction feed and edit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clientpulse.core.dependencies import get_db_session
from clientpulse.schemas.interactions import InteractionResponse, InteractionUpdateRequest
from clientpulse.services.interaction_service import InteractionService

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.get("/recent", response_model=list[InteractionResponse])
def recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db_session),
) -> list[InteractionResponse]:
    return [InteractionResponse.model_validate(row) for row in InteractionService(db).recent_activity(limit)]


@router.patch("/{interaction_id}", response_model=InteractionResponse)
def update_interaction(
    interaction_id: str,
    payload: InteractionUpdateRequest,
    db: Session = Depends(get_db_session),
) -> InteractionResponse:
    interaction = InteractionService(db).update_interaction(interaction_id, payload.model_dump(exclude_unset=True))
    return InteractionResponse.model_validate(interaction)
