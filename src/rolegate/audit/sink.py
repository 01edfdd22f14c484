"""
rolegate.audit.sink

Audit sinks.

Responsibilities:
- Define the `AuditSink` protocol: synchronous, non-blocking `emit`.
- Provide a queue-backed sink persisting events from a background worker.
- Provide a log-only sink for environments without the identity store.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.audit.events import SecurityEvent
from rolegate.db.repositories.security_events import SecurityEventRepo
from rolegate.observability.logging import get_logger

log = get_logger(__name__)


class AuditSink(Protocol):
    def emit(self, event: SecurityEvent) -> None: ...


class LoggingAuditSink:
    def emit(self, event: SecurityEvent) -> None:
        log.warning(
            "security_event",
            event_type=event.event_type.value,
            severity=event.severity.value,
            principal_id=event.principal_id,
            details=event.details,
        )


class QueuedAuditSink:
    """
    - `emit` only enqueues; it never awaits and never raises
    - a single worker drains the queue into `security_events`
    - persistence failures are logged and the event is dropped
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        maxsize: int = 1000,
    ) -> None:
        self._session_factory = session_factory
        self._queue: asyncio.Queue[SecurityEvent] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task[None] | None = None

    def emit(self, event: SecurityEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            log.error(
                "audit_queue_full",
                event_type=event.event_type.value,
                principal_id=event.principal_id,
            )

    @property
    def backlog(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run(), name="audit-sink")

    async def stop(self) -> None:
        # Drain what is already queued, then cancel the idle worker.
        if self._worker is None:
            return
        await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def flush(self) -> None:
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._persist(event)
            except Exception:
                log.exception(
                    "audit_persist_failed",
                    event_type=event.event_type.value,
                    principal_id=event.principal_id,
                )
            finally:
                self._queue.task_done()

    async def _persist(self, event: SecurityEvent) -> None:
        async with self._session_factory() as session:
            await SecurityEventRepo(session).add(
                event_type=event.event_type.value,
                severity=event.severity.value,
                principal_id=event.principal_id,
                details=event.details,
            )
            await session.commit()


# --- Module Notes -----------------------------------------------------------
# The sink is started/stopped by the app lifespan hooks in `rolegate.api.app`.
