"""
tests.test_change_feed
"""

from __future__ import annotations

import pytest

from rolegate.provider.changes import ChangeEvent, ChangeFeed


def _event(principal_id: str = "u", table: str = "user_roles") -> ChangeEvent:
    return ChangeEvent(table=table, principal_id=principal_id, action="UPDATE")


@pytest.mark.asyncio
async def test_delivers_only_matching_key() -> None:
    feed = ChangeFeed()
    got: list[ChangeEvent] = []

    async def cb(event: ChangeEvent) -> None:
        got.append(event)

    feed.subscribe(principal_id="u", table="user_roles", callback=cb)
    await feed.publish(_event())
    await feed.publish(_event(principal_id="v"))
    await feed.publish(_event(table="profiles"))
    assert len(got) == 1


@pytest.mark.asyncio
async def test_close_is_idempotent() -> None:
    feed = ChangeFeed()

    async def cb(event: ChangeEvent) -> None:
        raise AssertionError("closed subscription was notified")

    sub = feed.subscribe(principal_id="u", table="user_roles", callback=cb)
    sub.close()
    sub.close()
    assert sub.closed
    assert feed.subscriber_count(principal_id="u", table="user_roles") == 0
    await feed.publish(_event())


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others() -> None:
    feed = ChangeFeed()
    got: list[str] = []

    async def broken(event: ChangeEvent) -> None:
        raise RuntimeError("boom")

    async def healthy(event: ChangeEvent) -> None:
        got.append(event.action)

    feed.subscribe(principal_id="u", table="user_roles", callback=broken)
    feed.subscribe(principal_id="u", table="user_roles", callback=healthy)
    await feed.publish(_event())
    assert got == ["UPDATE"]


@pytest.mark.asyncio
async def test_subscriber_may_unsubscribe_during_delivery() -> None:
    feed = ChangeFeed()
    calls = 0

    async def once(event: ChangeEvent) -> None:
        nonlocal calls
        calls += 1
        sub.close()

    sub = feed.subscribe(principal_id="u", table="user_roles", callback=once)
    await feed.publish(_event())
    await feed.publish(_event())
    assert calls == 1
