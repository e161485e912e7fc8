"""
Assistant Bot Core Module

Purge engine, AI client, guild settings and interaction webhook helpers.
"""

from core.purge import (
    ChannelPurger, PurgeHost, PurgeRequest, PurgeResult, PurgeOutcome,
    RecreateStep, RecreateError, Capability,
)
from core.discord_host import DiscordPurgeHost
from core.gemini import GeminiClient, GeminiError
from core.guild_settings import GuildSettings, GuildSettingsStore
from core.database import Database, GuildConfig

__all__ = [
    'ChannelPurger',
    'PurgeHost',
    'PurgeRequest',
    'PurgeResult',
    'PurgeOutcome',
    'RecreateStep',
    'RecreateError',
    'Capability',
    'DiscordPurgeHost',
    'GeminiClient',
    'GeminiError',
    'GuildSettings',
    'GuildSettingsStore',
    'Database',
    'GuildConfig',
]
