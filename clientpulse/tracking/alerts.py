"""Deduplication, ranking and filtering of staleness alerts.

Detection passes may write several raw alert rows for the same client. The
functions here reduce them to one alert per client (the stalest one) and never
raise on bad rows: a corrupt record is logged and dropped so it cannot hide the
client's other alerts.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from clientpulse.core.enums import TIER_ALERT_LEVELS, AlertLevel, NotificationStatus, Tier
from clientpulse.tracking.recency import tier_for_days

logger = logging.getLogger(__name__)

LEVEL_FILTERS = ("all", AlertLevel.MEDIUM.value, AlertLevel.HIGH.value, AlertLevel.CRITICAL.value)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class AlertRecord:
    id: str | None
    client_id: str
    days_without_interaction: int
    alert_level: AlertLevel
    notification_status: NotificationStatus = NotificationStatus.PENDING
    tier: Tier | None = None
    created_at: datetime | None = None
    client_name: str | None = None
    client_company: str | None = None

    @classmethod
    def from_row(cls, row: Any, client_name: str | None = None, client_company: str | None = None) -> "AlertRecord":
        return cls(
            id=row.id,
            client_id=row.client_id,
            days_without_interaction=int(row.days_without_interaction),
            alert_level=AlertLevel(row.alert_level),
            notification_status=NotificationStatus(row.notification_status),
            tier=Tier(row.tier) if row.tier is not None else None,
            created_at=row.created_at,
            client_name=client_name,
            client_company=client_company,
        )


def _parse_days(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(number)


def _parse_created_at(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def coerce_alert(raw: AlertRecord | Mapping[str, Any]) -> AlertRecord | None:
    """Normalize a raw alert into an `AlertRecord`, or None when malformed."""
    if isinstance(raw, AlertRecord):
        source: Mapping[str, Any] = raw.__dict__
    elif isinstance(raw, Mapping):
        source = raw
    else:
        return None

    client_id = source.get("client_id")
    days = _parse_days(source.get("days_without_interaction"))
    if not client_id or days is None:
        return None

    level_value = source.get("alert_level")
    try:
        tier = Tier(source["tier"]) if source.get("tier") is not None else tier_for_days(days)
        level = AlertLevel(level_value) if level_value is not None else None
        status = NotificationStatus(source.get("notification_status") or NotificationStatus.PENDING)
    except ValueError:
        return None
    if level is None:
        level = TIER_ALERT_LEVELS[tier]

    return AlertRecord(
        id=source.get("id"),
        client_id=str(client_id),
        days_without_interaction=days,
        alert_level=level,
        notification_status=status,
        tier=tier,
        created_at=_parse_created_at(source.get("created_at")),
        client_name=source.get("client_name"),
        client_company=source.get("client_company"),
    )


def dedupe_alerts(raw_alerts: Iterable[AlertRecord | Mapping[str, Any]]) -> list[AlertRecord]:
    """Keep exactly one alert per client: the one with the most days without interaction.

    Ties go to the most recently created record, then to the later one in input
    order. Output is sorted by days (descending) then client id.
    """
    best: dict[str, tuple[tuple[int, datetime, int], AlertRecord]] = {}
    rejected = 0
    for position, raw in enumerate(raw_alerts):
        alert = coerce_alert(raw)
        if alert is None:
            rejected += 1
            continue
        rank = (alert.days_without_interaction, alert.created_at or _EPOCH, position)
        current = best.get(alert.client_id)
        if current is None or rank > current[0]:
            best[alert.client_id] = (rank, alert)

    if rejected:
        logger.warning(
            "alerts.dedupe.rejected_records",
            extra={"event": "alerts.dedupe.rejected_records", "rejected": rejected},
        )

    return sorted(
        (alert for _, alert in best.values()),
        key=lambda alert: (-alert.days_without_interaction, alert.client_id),
    )


def filter_alerts(alerts: Iterable[AlertRecord], level: str | AlertLevel = "all") -> list[AlertRecord]:
    """Filter alerts by level; `all` keeps every alert."""
    selected = level.value if isinstance(level, AlertLevel) else str(level).lower()
    if selected not in LEVEL_FILTERS:
        raise ValueError(f"Unsupported alert level filter: {level}")
    if selected == "all":
        return list(alerts)
    return [alert for alert in alerts if alert.alert_level.value == selected]


def pending_count(alerts: Iterable[AlertRecord]) -> int:
    """Badge count of alerts not yet sent or read."""
    return sum(1 for alert in alerts if alert.notification_status == NotificationStatus.PENDING)


def top_alerts(alerts: Iterable[AlertRecord], limit: int = 5) -> list[AlertRecord]:
    ranked = sorted(alerts, key=lambda alert: (-alert.days_without_interaction, alert.client_id))
    return ranked[: max(0, limit)]
