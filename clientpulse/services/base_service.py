"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clientpulse.core.exceptions import PersistenceUnavailable
from clientpulse.database import db as db_module
from clientpulse.database.repository import EngagementRepository, SQLAlchemyRepository

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that run one unit of work against a repository."""

    def __init__(
        self,
        db: Session | None = None,
        repository: EngagementRepository | None = None,
    ) -> None:
        if repository is None:
            repository = SQLAlchemyRepository(db or db_module.SessionLocal())
        self.repository = repository
        self.db = repository.session

    @staticmethod
    def _now(now: datetime | None = None) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now

    @contextmanager
    def unit_of_work(self, operation: str) -> Generator[EngagementRepository, None, None]:
        """Commit on success; roll back on any failure.

        Store errors surface as `PersistenceUnavailable`; domain errors propagate unchanged.
        """
        try:
            yield self.repository
            self.repository.commit()
        except SQLAlchemyError as exc:
            self.repository.rollback()
            logger.error(
                "store.unavailable",
                extra={"event": "store.unavailable", "operation": operation, "error": str(exc)},
            )
            raise PersistenceUnavailable(f"Store unavailable during {operation}.") from exc
        except Exception:
            self.repository.rollback()
            raise

    @contextmanager
    def read(self, operation: str) -> Generator[EngagementRepository, None, None]:
        """Read-only access with store errors mapped to `PersistenceUnavailable`."""
        try:
            yield self.repository
        except SQLAlchemyError as exc:
            self.repository.rollback()
            logger.error(
                "store.unavailable",
                extra={"event": "store.unavailable", "operation": operation, "error": str(exc)},
            )
            raise PersistenceUnavailable(f"Store unavailable during {operation}.") from exc

    def rollback(self) -> None:
        self.repository.rollback()

    def close(self) -> None:
        self.repository.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
