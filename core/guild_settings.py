"""
Per-guild AI settings

Each guild gets its own context prompt. Handlers read an immutable snapshot
at use time, so an update in one guild never leaks into another guild or
into a request that is already running.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from core.database import Database, get_all_guild_configs, save_guild_context

logger = logging.getLogger(__name__)


DEFAULT_CONTEXT_PROMPT = "You are a helpful assistant that provides concise initial answers."


@dataclass(frozen=True)
class GuildSettings:
    """Snapshot of one guild's configuration"""
    guild_id: int
    context_prompt: str = DEFAULT_CONTEXT_PROMPT
    updated_at: Optional[datetime] = field(default=None, compare=False)


class GuildSettingsStore:
    """
    Guild settings with an in-memory cache.

    When a Database is given, updates are written through and load() restores
    the cache on startup. Without one, settings live for the process only.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        default_prompt: str = DEFAULT_CONTEXT_PROMPT,
    ):
        self.db = db
        self.default_prompt = default_prompt
        self._settings: dict[int, GuildSettings] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> int:
        """Load stored settings into the cache, returns the number loaded"""
        if self.db is None:
            return 0

        async with self.db.session() as session:
            configs = await get_all_guild_configs(session)

        for config in configs:
            self._settings[config.guild_id] = GuildSettings(
                guild_id=config.guild_id,
                context_prompt=config.context_prompt,
                updated_at=config.updated_at,
            )

        logger.info(f"Loaded settings for {len(configs)} guilds")
        return len(configs)

    def get(self, guild_id: int) -> GuildSettings:
        """Read-at-use snapshot for a guild"""
        settings = self._settings.get(guild_id)
        if settings is None:
            return GuildSettings(guild_id=guild_id, context_prompt=self.default_prompt)
        return settings

    async def set_context(self, guild_id: int, context_prompt: str) -> GuildSettings:
        """Replace a guild's context prompt"""
        context_prompt = context_prompt.strip()
        if not context_prompt:
            raise ValueError("context prompt must not be empty")

        updated = GuildSettings(
            guild_id=guild_id,
            context_prompt=context_prompt,
            updated_at=datetime.now(timezone.utc),
        )

        async with self._lock:
            if self.db is not None:
                async with self.db.session() as session:
                    await save_guild_context(
                        session, guild_id, updated.context_prompt, updated.updated_at
                    )
            self._settings[guild_id] = updated

        logger.info(f"Context prompt updated for guild {guild_id}")
        return updated
