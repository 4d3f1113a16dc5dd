"""Audit logging service."""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Protocol

from smart_attendance.services.clock import utc_now
from smart_attendance.services.retry import call_with_retry_sync

_logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(
        self,
        actor_id: str,
        action: str,
        target: str,
        details: dict[str, object],
        occurred_at: datetime,
    ) -> None:
        """Create an audit event row."""


def _default_executor() -> Executor:
    return ThreadPoolExecutor(max_workers=2, thread_name_prefix="audit")


@dataclass
class AuditService:
    """Service for recording audit events.

    ``submit_event`` hands the write, retries included, to a worker thread so
    callers never wait on audit storage.
    """

    repository: AuditRepository
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.1
    executor: Executor = field(default_factory=_default_executor)
    _pending: set[Future[None]] = field(default_factory=set, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def record_event(
        self,
        actor_id: str,
        action: str,
        target: str,
        details: dict[str, object],
        occurred_at: datetime | None = None,
    ) -> None:
        """Persist an audit event, retrying transient failures."""
        call_with_retry_sync(
            partial(
                self.repository.create_event,
                actor_id=actor_id,
                action=action,
                target=target,
                details=details,
                occurred_at=occurred_at or utc_now(),
            ),
            action=f"audit:{action}",
            attempts=self.retry_attempts,
            delay_seconds=self.retry_delay_seconds,
        )

    def submit_event(
        self,
        actor_id: str,
        action: str,
        target: str,
        details: dict[str, object],
    ) -> Future[None]:
        """Record an audit event in the background; failures are logged."""
        future = self.executor.submit(
            self.record_event,
            actor_id=actor_id,
            action=action,
            target=target,
            details=details,
            occurred_at=utc_now(),
        )
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(partial(self._finish, action, target))
        return future

    def wait_for_pending(self, timeout: float | None = None) -> None:
        """Block until every submitted audit write has finished."""
        with self._lock:
            pending = set(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        """Finish outstanding writes and stop the worker threads."""
        self.executor.shutdown(wait=True)

    def _finish(self, action: str, target: str, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            _logger.error(
                "Failed to write audit event %s for %s",
                action,
                target,
                exc_info=error,
            )
