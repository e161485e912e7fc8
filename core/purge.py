"""
Bulk Channel Purge Engine

Deletes every message it can from a channel in one invocation:
- Bulk deletes in batches of up to 100 messages
- Skips messages older than 14 days (Discord rejects the whole batch otherwise)
- Paces batches to stay inside Discord rate limits
- Recreates the channel when older history remains and the bot may manage channels
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


# Discord bulk delete limits
BULK_DELETE_MAX_AGE = timedelta(days=14)
BULK_DELETE_LIMIT = 100
PACING_DELAY_SECONDS = 0.75

NUKE_REASON = "Nuke channel to clear messages older than 14 days"
DELETE_REASON = "Nuked to clear messages older than 14 days"


class Capability(Enum):
    MANAGE_MESSAGES = "manage_messages"
    READ_MESSAGE_HISTORY = "read_message_history"
    MANAGE_CHANNELS = "manage_channels"


class PurgeOutcome(Enum):
    PURGED_EMPTY = "PURGED_EMPTY"
    PARTIAL_NO_CAPABILITY = "PARTIAL_NO_CAPABILITY"
    RECREATED = "RECREATED"
    RECENT_SKIPPED = "RECENT_SKIPPED"
    REJECTED = "REJECTED"
    BULK_FAILED = "BULK_FAILED"
    RECREATE_FAILED = "RECREATE_FAILED"
    ALREADY_RUNNING = "ALREADY_RUNNING"


class RecreateStep(Enum):
    CLONE = "CLONE"
    SET_PARENT = "SET_PARENT"
    SET_POSITION = "SET_POSITION"
    DELETE_ORIGINAL = "DELETE_ORIGINAL"


class RecreateError(Exception):
    """A recreate sub-step failed"""

    def __init__(self, step: RecreateStep, cause: BaseException):
        super().__init__(f"{step.value} failed: {cause}")
        self.step = step
        self.cause = cause


class PurgeHost(Protocol):
    """Remote operations the purge engine needs from the chat platform"""

    async def fetch_recent_messages(
        self, channel: Any, limit: int, before: Optional[Any] = None
    ) -> Sequence[Any]: ...

    async def bulk_delete(self, channel: Any, messages: Sequence[Any]) -> int: ...

    def has_capability(self, channel: Any, principal: Any, capability: Capability) -> bool: ...

    async def create_channel_like(self, channel: Any, reason: str) -> Any: ...

    async def set_parent(
        self, channel: Any, parent_id: int, inherit_permissions: bool = True
    ) -> None: ...

    async def set_position(self, channel: Any, index: int) -> None: ...

    async def delete_channel(self, channel: Any, reason: str) -> None: ...


@dataclass
class PurgeRequest:
    """Single purge invocation, discarded once the result is reported"""
    channel: Any
    principal: Any
    deleted: int = 0


@dataclass
class PurgeResult:
    """Terminal state of a purge invocation"""
    outcome: PurgeOutcome
    deleted: int = 0
    new_channel: Any = None
    failed_step: Optional[RecreateStep] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def message(self) -> str:
        """User-facing status line"""
        purged = f"✅ Purged **{self.deleted}** recent message(s)."

        if self.outcome == PurgeOutcome.PURGED_EMPTY:
            return f"{purged} Channel is now empty."
        if self.outcome == PurgeOutcome.PARTIAL_NO_CAPABILITY:
            return (
                f"{purged}\n"
                "⚠️ I can't remove older messages (>14 days). Grant **Manage Channels** "
                "if you want me to recreate the channel (nuke)."
            )
        if self.outcome == PurgeOutcome.RECREATED:
            mention = getattr(self.new_channel, "mention", self.new_channel)
            return (
                f"{purged}\n"
                "🧨 Older messages couldn't be bulk-deleted, so I **recreated the channel**.\n"
                f"➡️ New channel: {mention}"
            )
        if self.outcome == PurgeOutcome.RECENT_SKIPPED:
            return (
                f"{purged}\n"
                "⚠️ Discord skipped some recent messages. Run the purge again to finish."
            )
        if self.outcome == PurgeOutcome.REJECTED:
            return "❌ I need **Manage Messages** and **Read Message History** in this channel."
        if self.outcome == PurgeOutcome.ALREADY_RUNNING:
            return "⏳ A purge is already running in this channel."
        if self.outcome == PurgeOutcome.BULK_FAILED:
            return (
                f"❌ Purge stopped early after deleting **{self.deleted}** message(s). "
                "Try again in a moment."
            )
        return "❌ Failed to delete all messages (purge or nuke step errored)."


ProgressCallback = Callable[[int], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChannelPurger:
    """
    Runs purge requests against a PurgeHost.

    One purge per channel at a time; a second request for a channel that is
    already being purged returns ALREADY_RUNNING without touching it.
    """

    def __init__(
        self,
        host: PurgeHost,
        pacing_delay: float = PACING_DELAY_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.host = host
        self.pacing_delay = pacing_delay
        self._clock = clock
        self._sleep = sleep
        self._active: set[int] = set()

    def is_purging(self, channel_id: int) -> bool:
        return channel_id in self._active

    async def purge(
        self,
        channel: Any,
        principal: Any,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PurgeResult:
        """Purge a channel and return the terminal state. Never raises."""
        request = PurgeRequest(channel=channel, principal=principal)

        try:
            allowed = self._can(request, Capability.MANAGE_MESSAGES) and self._can(
                request, Capability.READ_MESSAGE_HISTORY
            )
        except Exception as e:
            logger.error(f"Permission check failed for channel {channel.id}: {e}")
            return PurgeResult(PurgeOutcome.REJECTED, error=e)

        if not allowed:
            logger.info(f"Purge rejected for channel {channel.id}: missing permissions")
            return PurgeResult(PurgeOutcome.REJECTED)

        if channel.id in self._active:
            logger.warning(f"Purge already running for channel {channel.id}")
            return PurgeResult(PurgeOutcome.ALREADY_RUNNING)

        self._active.add(channel.id)
        try:
            return await self._run(request, on_progress)
        finally:
            self._active.discard(channel.id)

    async def delete_recent(self, channel: Any, amount: int) -> int:
        """
        Bulk delete up to `amount` of the newest messages, skipping any past
        the age cutoff. Returns the number deleted. Errors propagate.
        """
        if amount < 1 or amount > BULK_DELETE_LIMIT:
            raise ValueError(f"amount must be between 1 and {BULK_DELETE_LIMIT}")

        batch = await self.host.fetch_recent_messages(channel, amount)
        cutoff = self._clock() - BULK_DELETE_MAX_AGE
        deletable = [m for m in batch if m.created_at > cutoff]
        if not deletable:
            return 0

        deleted = await self.host.bulk_delete(channel, deletable)
        logger.info(f"Deleted {deleted} recent messages in channel {channel.id}")
        return deleted

    def _can(self, request: PurgeRequest, capability: Capability) -> bool:
        return self.host.has_capability(request.channel, request.principal, capability)

    async def _run(
        self, request: PurgeRequest, on_progress: Optional[ProgressCallback]
    ) -> PurgeResult:
        channel = request.channel

        try:
            await self._bulk_phase(request, on_progress)
            leftover = await self.host.fetch_recent_messages(channel, 1)
        except Exception as e:
            logger.error(f"Bulk purge failed in channel {channel.id} after {request.deleted} deletions: {e}")
            return PurgeResult(PurgeOutcome.BULK_FAILED, deleted=request.deleted, error=e)

        if not leftover:
            logger.info(f"Purge complete: deleted {request.deleted} messages, channel {channel.id} empty")
            return PurgeResult(PurgeOutcome.PURGED_EMPTY, deleted=request.deleted)

        # Skipped by the remote, not aged out
        if leftover[0].created_at > self._clock() - BULK_DELETE_MAX_AGE:
            logger.warning(
                f"Purge left recent messages in channel {channel.id} after {request.deleted} deletions"
            )
            return PurgeResult(PurgeOutcome.RECENT_SKIPPED, deleted=request.deleted)

        try:
            can_recreate = self._can(request, Capability.MANAGE_CHANNELS)
        except Exception as e:
            logger.error(f"Manage Channels check failed for channel {channel.id}: {e}")
            can_recreate = False

        if not can_recreate:
            logger.info(
                f"Purge partial: deleted {request.deleted} messages, "
                f"older history remains in channel {channel.id}"
            )
            return PurgeResult(PurgeOutcome.PARTIAL_NO_CAPABILITY, deleted=request.deleted)

        try:
            new_channel = await self._recreate(channel)
        except RecreateError as e:
            logger.error(f"Channel recreate failed for {channel.id}: {e}")
            return PurgeResult(
                PurgeOutcome.RECREATE_FAILED,
                deleted=request.deleted,
                failed_step=e.step,
                error=e.cause,
            )

        logger.info(f"Channel {channel.id} recreated as {new_channel.id} after deleting {request.deleted} messages")
        return PurgeResult(PurgeOutcome.RECREATED, deleted=request.deleted, new_channel=new_channel)

    async def _bulk_phase(
        self, request: PurgeRequest, on_progress: Optional[ProgressCallback]
    ) -> None:
        channel = request.channel
        cursor = None

        while True:
            batch = await self.host.fetch_recent_messages(
                channel, BULK_DELETE_LIMIT, before=cursor
            )
            if not batch:
                break

            # Age is measured now, not at invocation start
            cutoff = self._clock() - BULK_DELETE_MAX_AGE
            deletable = [m for m in batch if m.created_at > cutoff]
            if not deletable:
                break

            deleted = await self.host.bulk_delete(channel, deletable)
            request.deleted += deleted
            logger.debug(f"Bulk deleted {deleted}/{len(deletable)} messages in channel {channel.id}")

            if on_progress is not None:
                await on_progress(request.deleted)

            await self._sleep(self.pacing_delay)
            cursor = batch[-1]

    async def _recreate(self, channel: Any) -> Any:
        step = RecreateStep.CLONE
        try:
            # Threads have neither a position nor a category
            position = channel.position
            parent_id = channel.category_id
            new_channel = await self.host.create_channel_like(channel, NUKE_REASON)

            if parent_id is not None:
                step = RecreateStep.SET_PARENT
                await self.host.set_parent(new_channel, parent_id, inherit_permissions=True)

            step = RecreateStep.SET_POSITION
            await self.host.set_position(new_channel, position)

            step = RecreateStep.DELETE_ORIGINAL
            await self.host.delete_channel(channel, DELETE_REASON)
        except Exception as e:
            raise RecreateError(step, e) from e

        return new_channel
