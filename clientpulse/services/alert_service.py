"""Persistence side of staleness alerts: detection passes, listing and acknowledgment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from clientpulse.core.enums import AlertLevel, ClientStatus, NotificationStatus
from clientpulse.core.exceptions import NotFoundError
from clientpulse.models import Alert, Client
from clientpulse.services.base_service import BaseService
from clientpulse.tracking.alerts import AlertRecord, dedupe_alerts, filter_alerts, pending_count, top_alerts
from clientpulse.tracking.recency import classify, days_since

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    scanned: int
    created: int
    refreshed: int


class AlertService(BaseService):
    def scan(self, now: datetime | None = None) -> ScanResult:
        """Run one detection pass over non-inactive clients.

        Open rows at the client's current level get their day count refreshed.
        A new pending row is written only when the client has no open row at that
        level, so acknowledged alerts stay acknowledged until the level changes.
        """
        timestamp = self._now(now)
        created = refreshed = 0
        with self.unit_of_work("alerts.scan") as repo:
            clients = repo.list_clients(statuses=[ClientStatus.ACTIVE, ClientStatus.AT_RISK])
            open_by_client: dict[str, list[Alert]] = {}
            for row in repo.list_open_alerts():
                open_by_client.setdefault(row.client_id, []).append(row)

            scanned_ids = {client.id for client in clients}
            for client_id, rows in open_by_client.items():
                if client_id not in scanned_ids:
                    # Inactive clients are out of detection; their open rows close.
                    for row in rows:
                        row.closed_at = timestamp

            for client in clients:
                recency = classify(client.last_interaction_date, now=timestamp)
                if recency.alert_level == AlertLevel.NORMAL:
                    continue
                days = recency.days
                if days is None:
                    # Never contacted: count from when the client was registered.
                    days = days_since(client.created_at, now=timestamp) or 0
                same_level = [
                    row for row in open_by_client.get(client.id, []) if row.alert_level == recency.alert_level
                ]
                if same_level:
                    for row in same_level:
                        if row.days_without_interaction != days:
                            row.days_without_interaction = days
                            refreshed += 1
                    continue
                repo.add(
                    Alert(
                        client_id=client.id,
                        days_without_interaction=days,
                        tier=recency.tier,
                        alert_level=recency.alert_level,
                        notification_status=NotificationStatus.PENDING,
                    )
                )
                created += 1

        result = ScanResult(scanned=len(clients), created=created, refreshed=refreshed)
        logger.info(
            "alerts.scan.completed",
            extra={
                "event": "alerts.scan.completed",
                "scanned": result.scanned,
                "alerts_created": created,
                "alerts_refreshed": refreshed,
            },
        )
        return result

    def _open_records(self) -> list[AlertRecord]:
        with self.read("alerts.list") as repo:
            rows = repo.list_open_alerts()
            clients: dict[str, Client | None] = {}
            records = []
            for row in rows:
                if row.client_id not in clients:
                    clients[row.client_id] = repo.get_client(row.client_id)
                client = clients[row.client_id]
                records.append(
                    AlertRecord.from_row(
                        row,
                        client_name=client.name if client else None,
                        client_company=client.company if client else None,
                    )
                )
            return records

    def list_alerts(self, level: str | AlertLevel = "all") -> list[AlertRecord]:
        """One alert per client (the stalest open one), optionally filtered by level."""
        return filter_alerts(dedupe_alerts(self._open_records()), level)

    def pending_count(self) -> int:
        return pending_count(self.list_alerts())

    def recent(self, limit: int = 5) -> list[AlertRecord]:
        return top_alerts(self.list_alerts(), limit=limit)

    def mark_read(self, client_id: str) -> int:
        """Acknowledge every open raw alert row of a client; returns the rows touched."""
        with self.unit_of_work("alerts.mark_read") as repo:
            if repo.get_client(client_id) is None:
                raise NotFoundError("Client", client_id)
            rows = repo.list_open_alerts(client_id=client_id)
            for row in rows:
                row.notification_status = NotificationStatus.READ

        logger.info(
            "alerts.marked_read",
            extra={"event": "alerts.marked_read", "client_id": client_id, "rows": len(rows)},
        )
        return len(rows)

    def mark_alert_read(self, alert_id: str) -> tuple[str, int]:
        """Acknowledge by alert id; applies to every open row of the alert's client."""
        with self.read("alerts.get") as repo:
            row = repo.get_alert(alert_id)
            if row is None:
                raise NotFoundError("Alert", alert_id)
            client_id = row.client_id
        return client_id, self.mark_read(client_id)
