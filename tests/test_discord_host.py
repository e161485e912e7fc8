"""
Tests for the discord.py purge host adapter.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.discord_host import DiscordPurgeHost
from core.purge import Capability


def message(age: timedelta, message_id: int = 1):
    return SimpleNamespace(id=message_id, created_at=datetime.now(timezone.utc) - age)


class TestFetch:
    """Test history fetching."""

    @pytest.mark.asyncio
    async def test_fetch_passes_limit_and_cursor(self):
        calls = []
        messages = [message(timedelta(minutes=1), i) for i in range(3)]

        async def history(limit, before):
            calls.append((limit, before))
            for m in messages:
                yield m

        channel = MagicMock()
        channel.history = history
        cursor = object()

        result = await DiscordPurgeHost().fetch_recent_messages(channel, 100, before=cursor)

        assert result == messages
        assert calls == [(100, cursor)]


class TestBulkDelete:
    """Test bulk delete guards."""

    @pytest.mark.asyncio
    async def test_deletes_and_counts(self):
        channel = MagicMock()
        channel.delete_messages = AsyncMock()
        batch = [message(timedelta(days=1), i) for i in range(5)]

        deleted = await DiscordPurgeHost().bulk_delete(channel, batch)

        assert deleted == 5
        channel.delete_messages.assert_awaited_once_with(batch)

    @pytest.mark.asyncio
    async def test_drops_aged_messages(self):
        channel = MagicMock()
        channel.delete_messages = AsyncMock()
        fresh = message(timedelta(days=1), 1)
        stale = message(timedelta(days=15), 2)

        deleted = await DiscordPurgeHost().bulk_delete(channel, [fresh, stale])

        assert deleted == 1
        channel.delete_messages.assert_awaited_once_with([fresh])

    @pytest.mark.asyncio
    async def test_all_aged_skips_call(self):
        channel = MagicMock()
        channel.delete_messages = AsyncMock()

        deleted = await DiscordPurgeHost().bulk_delete(channel, [message(timedelta(days=20))])

        assert deleted == 0
        channel.delete_messages.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 101])
    async def test_rejects_bad_batch_size(self, count):
        batch = [message(timedelta(minutes=1), i) for i in range(count)]

        with pytest.raises(ValueError):
            await DiscordPurgeHost().bulk_delete(MagicMock(), batch)


class TestChannelOperations:
    """Test capability checks and channel management calls."""

    def test_has_capability_reads_permission_flag(self):
        channel = MagicMock()
        channel.permissions_for.return_value = SimpleNamespace(
            manage_messages=True, read_message_history=False, manage_channels=True
        )
        host = DiscordPurgeHost()

        assert host.has_capability(channel, "me", Capability.MANAGE_MESSAGES)
        assert not host.has_capability(channel, "me", Capability.READ_MESSAGE_HISTORY)
        channel.permissions_for.assert_called_with("me")

    @pytest.mark.asyncio
    async def test_create_channel_like_clones_name(self):
        channel = MagicMock()
        channel.name = "homework"
        channel.clone = AsyncMock(return_value="new")

        result = await DiscordPurgeHost().create_channel_like(channel, "because")

        assert result == "new"
        channel.clone.assert_awaited_once_with(name="homework", reason="because")

    @pytest.mark.asyncio
    async def test_set_parent_syncs_permissions(self):
        category = object()
        channel = MagicMock()
        channel.guild.get_channel.return_value = category
        channel.edit = AsyncMock()

        await DiscordPurgeHost().set_parent(channel, 55)

        channel.guild.get_channel.assert_called_once_with(55)
        channel.edit.assert_awaited_once_with(category=category, sync_permissions=True)

    @pytest.mark.asyncio
    async def test_set_position_and_delete(self):
        channel = MagicMock()
        channel.edit = AsyncMock()
        channel.delete = AsyncMock()
        host = DiscordPurgeHost()

        await host.set_position(channel, 4)
        await host.delete_channel(channel, "nuked")

        channel.edit.assert_awaited_once_with(position=4)
        channel.delete.assert_awaited_once_with(reason="nuked")
