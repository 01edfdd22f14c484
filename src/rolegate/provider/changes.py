"""
rolegate.provider.changes

In-process change notification feed.

Responsibilities:
- Deliver row-change events keyed by (principal id, table name) to async subscribers.
- Hand out idempotent `Subscription` handles for teardown.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from rolegate.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    table: str
    principal_id: str
    action: str  # INSERT / UPDATE / DELETE
    payload: dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    def __init__(self, feed: ChangeFeed, key: tuple[str, str], callback: ChangeCallback) -> None:
        self._feed = feed
        self._key = key
        self._callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self._key, self._callback)


class ChangeFeed:
    def __init__(self) -> None:
        self._subscribers: dict[tuple[str, str], list[ChangeCallback]] = defaultdict(list)

    def subscribe(
        self, *, principal_id: str, table: str, callback: ChangeCallback
    ) -> Subscription:
        key = (principal_id, table)
        self._subscribers[key].append(callback)
        return Subscription(self, key, callback)

    def subscriber_count(self, *, principal_id: str, table: str) -> int:
        return len(self._subscribers.get((principal_id, table), ()))

    async def publish(self, event: ChangeEvent) -> None:
        # Snapshot: callbacks may unsubscribe while being notified.
        for callback in list(self._subscribers.get((event.principal_id, event.table), ())):
            try:
                await callback(event)
            except Exception:
                # A broken subscriber must not stop delivery to the others or fail the writer.
                log.exception(
                    "change_callback_failed",
                    table=event.table,
                    principal_id=event.principal_id,
                )

    def _remove(self, key: tuple[str, str], callback: ChangeCallback) -> None:
        callbacks = self._subscribers.get(key)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            return
        if not callbacks:
            del self._subscribers[key]
