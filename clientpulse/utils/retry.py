"""Retry bookkeeping for store calls that are safe to repeat."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from clientpulse.core.exceptions import PersistenceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_unavailable(
    operation: Callable[[], T],
    operation_name: str,
    max_retries: int = 2,
    base_backoff_seconds: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run `operation`, retrying only `PersistenceUnavailable` with exponential backoff.

    Only use for reads and idempotent writes. Business-rule failures propagate on
    the first attempt.
    """
    for attempt in range(max_retries + 1):
        try:
            return operation()
        except PersistenceUnavailable as exc:
            if attempt >= max_retries:
                logger.error(
                    "retry.exhausted",
                    extra={"event": "retry.exhausted", "operation": operation_name, "attempts": attempt + 1},
                )
                raise
            delay = max(0.0, base_backoff_seconds) * (2**attempt)
            logger.warning(
                "retry.persistence_unavailable",
                extra={
                    "event": "retry.persistence_unavailable",
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "delay_seconds": delay,
                    "error": str(exc),
                },
            )
            if delay > 0:
                sleep(delay)
    raise AssertionError("unreachable")
