"""Pure engagement computations: recency tiers, alert ranking, metrics."""

from clientpulse.tracking.alerts import AlertRecord, dedupe_alerts, filter_alerts, pending_count, top_alerts
from clientpulse.tracking.metrics import AgentMetrics, MetricsSnapshot, TierBucket, aggregate
from clientpulse.tracking.recency import Recency, classify, days_since, tier_for_days

__all__ = [
    "AgentMetrics",
    "AlertRecord",
    "MetricsSnapshot",
    "Recency",
    "TierBucket",
    "aggregate",
    "classify",
    "days_since",
    "dedupe_alerts",
    "filter_alerts",
    "pending_count",
    "tier_for_days",
    "top_alerts",
]
