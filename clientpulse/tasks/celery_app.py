"""Celery application bootstrap."""

from __future__ import annotations

import os

from celery import Celery

from clientpulse.core.config import get_config

config = get_config()

celery_app = Celery(
    "clientpulse",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["clientpulse.tasks.tracking_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    beat_schedule={
        "scan-stale-clients": {
            "task": "tracking.scan_alerts",
            "schedule": float(config.ALERT_SCAN_INTERVAL_SECONDS),
        },
        "refresh-engagement-metrics": {
            "task": "tracking.refresh_metrics",
            "schedule": float(max(config.METRICS_CACHE_TTL_SECONDS, 1)),
        },
    },
)

# Local/dev convenience: run tasks synchronously when requested.
if os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() in {"1", "true", "yes", "on"}:
    celery_app.conf.task_always_eager = True
