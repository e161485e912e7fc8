"""Pytest configuration and shared fixtures for the assistant bot tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from core.purge import BULK_DELETE_LIMIT, BULK_DELETE_MAX_AGE, Capability, ChannelPurger

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Wall clock the tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeMessage:
    id: int
    created_at: datetime


@dataclass
class FakeChannel:
    id: int
    name: str = "general"
    position: int = 3
    category_id: int | None = None
    messages: list[FakeMessage] = field(default_factory=list)  # newest first
    deleted: bool = False

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"


class FakeHost:
    """In-memory PurgeHost that enforces Discord's bulk delete rules."""

    def __init__(self, clock: FakeClock, capabilities: set[Capability] | None = None):
        self.clock = clock
        self.capabilities = (
            {Capability.MANAGE_MESSAGES, Capability.READ_MESSAGE_HISTORY}
            if capabilities is None
            else capabilities
        )
        self.fetch_calls = 0
        self.bulk_batches: list[list[int]] = []
        self.undeletable: set[int] = set()
        self.fail_bulk_on_call: int | None = None
        self.fail_on: str | None = None
        self.created: list[FakeChannel] = []
        self.parent_calls: list[tuple[int, int, bool]] = []
        self.position_calls: list[tuple[int, int]] = []

    async def fetch_recent_messages(self, channel: FakeChannel, limit: int, before: Any = None):
        self.fetch_calls += 1
        messages = channel.messages
        if before is not None:
            messages = [m for m in messages if m.id < before.id]
        return list(messages[:limit])

    async def bulk_delete(self, channel: FakeChannel, messages):
        if self.fail_bulk_on_call is not None and len(self.bulk_batches) + 1 == self.fail_bulk_on_call:
            raise RuntimeError("429 Too Many Requests")

        assert 1 <= len(messages) <= BULK_DELETE_LIMIT
        for message in messages:
            assert self.clock() - message.created_at < BULK_DELETE_MAX_AGE, "aged message in bulk delete"

        self.bulk_batches.append([m.id for m in messages])
        removed = {m.id for m in messages if m.id not in self.undeletable}
        channel.messages = [m for m in channel.messages if m.id not in removed]
        return len(removed)

    def has_capability(self, channel, principal, capability: Capability) -> bool:
        return capability in self.capabilities

    def _maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            raise RuntimeError(f"{step} exploded")

    async def create_channel_like(self, channel: FakeChannel, reason: str) -> FakeChannel:
        self._maybe_fail("clone")
        clone = FakeChannel(id=channel.id + 1000, name=channel.name, position=0)
        self.created.append(clone)
        return clone

    async def set_parent(self, channel: FakeChannel, parent_id: int, inherit_permissions: bool = True):
        self._maybe_fail("parent")
        self.parent_calls.append((channel.id, parent_id, inherit_permissions))
        channel.category_id = parent_id

    async def set_position(self, channel: FakeChannel, index: int):
        self._maybe_fail("position")
        self.position_calls.append((channel.id, index))
        channel.position = index

    async def delete_channel(self, channel: FakeChannel, reason: str):
        self._maybe_fail("delete")
        channel.deleted = True


def young_messages(count: int, start_id: int = 10_000) -> list[FakeMessage]:
    """`count` messages from the last day, newest first."""
    return [
        FakeMessage(id=start_id + count - i, created_at=NOW - timedelta(hours=1, seconds=i))
        for i in range(count)
    ]


def old_messages(count: int, start_id: int = 1_000) -> list[FakeMessage]:
    """`count` messages from three weeks ago, newest first."""
    return [
        FakeMessage(id=start_id + count - i, created_at=NOW - timedelta(days=21, seconds=i))
        for i in range(count)
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def host(clock: FakeClock) -> FakeHost:
    return FakeHost(clock)


@pytest.fixture
def sleeps(clock: FakeClock) -> list[float]:
    return []


@pytest.fixture
def purger(host: FakeHost, clock: FakeClock, sleeps: list[float]) -> ChannelPurger:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        clock.advance(seconds)

    return ChannelPurger(host, clock=clock, sleep=fake_sleep)
