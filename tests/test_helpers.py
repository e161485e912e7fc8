"""
Tests for the command helpers.
"""

from unittest.mock import MagicMock

import discord

from core.helpers import (
    build_forum_prompt,
    extract_chat_prompt,
    parse_command,
    private_channel_overwrites,
    split_message,
)


class TestSplitMessage:
    """Test chunking for Discord's 2000 character limit."""

    def test_short_message(self):
        assert split_message("hello") == ["hello"]

    def test_long_message(self):
        chunks = split_message("a" * 4500)

        assert [len(c) for c in chunks] == [2000, 2000, 500]
        assert "".join(chunks) == "a" * 4500

    def test_empty_message(self):
        assert split_message("") == []


class TestCommandParsing:
    """Test message command parsing."""

    def test_parse_command(self):
        assert parse_command("  !CHAT hello   there ") == ("!chat", ["hello", "there"])

    def test_parse_empty(self):
        assert parse_command("   ") == (None, [])

    def test_chat_prompt_drops_mentions(self):
        args = ["<@123>", "what", "is", "<#456>", "recursion?"]

        assert extract_chat_prompt(args) == "what is recursion?"

    def test_forum_prompt(self):
        assert build_forum_prompt("Be brief.", "Why?") == "Be brief.\n\nUser asked: Why?"


class TestPrivateChannelOverwrites:
    """Test permission overwrites for private channels."""

    def test_with_admin_role(self):
        guild = MagicMock()
        member = MagicMock()
        admin = MagicMock()

        overwrites = private_channel_overwrites(guild, member, admin)

        assert overwrites[guild.default_role].view_channel is False
        assert overwrites[member].view_channel is True
        assert overwrites[member].read_message_history is True
        assert overwrites[admin].manage_channels is True
        assert all(isinstance(o, discord.PermissionOverwrite) for o in overwrites.values())

    def test_without_admin_role(self):
        guild = MagicMock()
        member = MagicMock()

        overwrites = private_channel_overwrites(guild, member)

        assert len(overwrites) == 2
