"""
rolegate.policy.navigation

Session-scoped navigation guard.

Responsibilities:
- Own the per-session state (current route, last decision, role subscription)
  with explicit start/close.
- Discard decisions superseded by a newer navigation or role change
  (generation counter).
- Recompute the decision for the current route on every role-change event.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from rolegate.auth.models import RouteKey, Session
from rolegate.observability.logging import get_logger
from rolegate.policy.decisions import AccessDecision
from rolegate.policy.engine import AccessDecisionEngine
from rolegate.provider.changes import ChangeEvent, Subscription

log = get_logger(__name__)

DecisionListener = Callable[[RouteKey, AccessDecision], Awaitable[None]]


class NavigationGuard:
    """
    Usage:

        async with NavigationGuard(engine=engine, session=session, on_decision=render) as guard:
            await guard.navigate("/orders")

    `navigate` returns None when its result was superseded; callers keep
    showing the pending state until a non-None decision arrives.
    """

    def __init__(
        self,
        *,
        engine: AccessDecisionEngine,
        session: Session | None,
        on_decision: DecisionListener | None = None,
    ) -> None:
        self._engine = engine
        self._session = session
        self._on_decision = on_decision

        self._generation = 0
        self._in_flight = 0
        self._route: RouteKey | None = None
        self._decision: AccessDecision | None = None
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task[AccessDecision | None]] = set()
        self._closed = False

    @property
    def route(self) -> RouteKey | None:
        return self._route

    @property
    def decision(self) -> AccessDecision | None:
        return self._decision

    @property
    def pending(self) -> bool:
        return self._in_flight > 0

    async def start(self) -> None:
        self._subscribe()

    async def close(self) -> None:
        self._closed = True
        self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> NavigationGuard:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def navigate(self, route: RouteKey) -> AccessDecision | None:
        self._route = route
        return await self._evaluate(route)

    async def refresh(self) -> AccessDecision | None:
        if self._route is None:
            return None
        return await self._evaluate(self._route)

    async def replace_session(self, session: Session | None) -> AccessDecision | None:
        # Step-up and sign-out both produce a new session projection.
        previous = self._session.principal_id if self._session else None
        self._session = session
        current = session.principal_id if session else None
        if previous != current:
            self._unsubscribe()
            self._subscribe()
        return await self.refresh()

    async def drain(self) -> None:
        # Wait for re-evaluations scheduled by role-change events.
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _evaluate(self, route: RouteKey) -> AccessDecision | None:
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            decision = await self._engine.decide(route, self._session)
        finally:
            self._in_flight -= 1

        if self._closed or generation != self._generation:
            log.debug("stale_decision_discarded", route=route, generation=generation)
            return None

        self._decision = decision
        if self._on_decision is not None:
            await self._on_decision(route, decision)
        return decision

    async def _on_role_change(self, event: ChangeEvent) -> None:
        if self._closed or self._route is None:
            return
        log.info("role_change_observed", principal_id=event.principal_id, action=event.action)
        # Schedule instead of awaiting so the publisher is never blocked by a decision.
        task = asyncio.create_task(self._evaluate(self._route))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _subscribe(self) -> None:
        if self._session is None or self._closed or self._subscription is not None:
            return
        self._subscription = self._engine.roles.watch(
            self._session.principal_id, self._on_role_change
        )

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
