"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from clientpulse.api.v1 import agents, alerts, clients, health, interactions, metrics
from clientpulse.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(agents.router)
api_router.include_router(clients.router)
api_router.include_router(interactions.router)
api_router.include_router(alerts.router)
api_router.include_router(metrics.router)


def get_api_router() -> APIRouter:
    return api_router
