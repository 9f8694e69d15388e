"""Recency classification of clients by days since their last interaction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from clientpulse.core.enums import TIER_ALERT_LEVELS, AlertLevel, Tier

# Inclusive upper bound (in whole days) of each bounded tier.
TIER_UPPER_BOUNDS: tuple[tuple[int, Tier], ...] = (
    (30, Tier.DAYS_0_30),
    (60, Tier.DAYS_31_60),
    (90, Tier.DAYS_61_90),
)


@dataclass(frozen=True)
class Recency:
    tier: Tier
    alert_level: AlertLevel
    days: int | None


def _coerce_timestamp(value: datetime | date | str | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        if isinstance(value, date):
            value = datetime.combine(value, time.min)
        else:
            return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(last_interaction: datetime | date | str | None, now: datetime | None = None) -> int | None:
    """Whole days elapsed since `last_interaction`, clamped at zero."""
    last = _coerce_timestamp(last_interaction)
    if last is None:
        return None
    current = _coerce_timestamp(now) or datetime.now(timezone.utc)
    elapsed = current - last
    return max(0, elapsed.days)


def tier_for_days(days: int | None) -> Tier:
    if days is None:
        return Tier.DAYS_90_PLUS
    for upper, tier in TIER_UPPER_BOUNDS:
        if days <= upper:
            return tier
    return Tier.DAYS_90_PLUS


def classify(last_interaction: datetime | date | str | None, now: datetime | None = None) -> Recency:
    """Classify a last-interaction timestamp into a staleness tier.

    A missing or unparseable timestamp is maximally stale (`90+` / critical).
    Never raises.
    """
    days = days_since(last_interaction, now=now)
    tier = tier_for_days(days)
    return Recency(tier=tier, alert_level=TIER_ALERT_LEVELS[tier], days=days)
