"""
discord.py adapter for the purge engine.

Maps the PurgeHost operations onto TextChannel calls.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

import discord

from core.purge import BULK_DELETE_LIMIT, BULK_DELETE_MAX_AGE, Capability

logger = logging.getLogger(__name__)


class DiscordPurgeHost:
    """PurgeHost backed by live discord.py channel objects"""

    async def fetch_recent_messages(
        self,
        channel: discord.TextChannel,
        limit: int,
        before: Optional[discord.abc.Snowflake] = None,
    ) -> list[discord.Message]:
        return [message async for message in channel.history(limit=limit, before=before)]

    async def bulk_delete(
        self, channel: discord.TextChannel, messages: Sequence[discord.Message]
    ) -> int:
        """
        Bulk delete messages and return how many were actually sent for deletion.

        Messages that aged past the bulk cutoff since they were fetched are
        dropped here, since Discord rejects the whole request otherwise.
        """
        if not messages or len(messages) > BULK_DELETE_LIMIT:
            raise ValueError(f"bulk delete takes 1-{BULK_DELETE_LIMIT} messages, got {len(messages)}")

        cutoff = datetime.now(timezone.utc) - BULK_DELETE_MAX_AGE
        eligible = [m for m in messages if m.created_at > cutoff]
        if len(eligible) < len(messages):
            logger.debug(f"Dropped {len(messages) - len(eligible)} messages that aged out before deletion")
        if not eligible:
            return 0

        await channel.delete_messages(eligible)
        return len(eligible)

    def has_capability(
        self,
        channel: discord.abc.GuildChannel,
        principal: discord.Member,
        capability: Capability,
    ) -> bool:
        perms = channel.permissions_for(principal)
        return bool(getattr(perms, capability.value))

    async def create_channel_like(
        self, channel: discord.TextChannel, reason: str
    ) -> discord.TextChannel:
        return await channel.clone(name=channel.name, reason=reason)

    async def set_parent(
        self,
        channel: discord.TextChannel,
        parent_id: int,
        inherit_permissions: bool = True,
    ) -> None:
        category = channel.guild.get_channel(parent_id) or discord.Object(id=parent_id)
        await channel.edit(category=category, sync_permissions=inherit_permissions)

    async def set_position(self, channel: discord.TextChannel, index: int) -> None:
        await channel.edit(position=index)

    async def delete_channel(self, channel: discord.TextChannel, reason: str) -> None:
        await channel.delete(reason=reason)
