"""
Shared helpers for the bot commands
"""

from typing import Optional

import discord


MESSAGE_CHUNK_SIZE = 2000

HELP_TEXT = """
```
📘 Available Commands

AI:
!chat <message>                → Ask AI via Gemini (no context)

Message Commands (Admin Only):
!help                          → Show this help message
!deleteall                     → Purge this channel

Slash Commands (Admin Only, most are ephemeral):
/help                          → Show this help message
/setcontext <text>             → Update AI response behavior
/addrole <role> <user>         → Assign a role to a user
/removerole <role> <user>      → Remove a role from a user
/createrole <name>             → Create a new role
/deleterole <name>             → Delete a role
/renamerole <old_name> <new_name> → Rename a role
/createchannel <name>          → Create a text channel
/deletechannel <#channel>      → Delete a text channel
/createprivatechannel <user>   → Private channel for a user + Admins
/senddm <user> <message>       → Send a DM to a user
/delete <amount>               → Delete 1–100 recent messages
/deleteall                     → Purge recent messages
/verify usr                    → Add the "Students" role to a user
```
"""


def split_message(text: str, size: int = MESSAGE_CHUNK_SIZE) -> list[str]:
    """Split text into chunks Discord will accept"""
    return [text[i:i + size] for i in range(0, len(text), size)]


def parse_command(content: str) -> tuple[Optional[str], list[str]]:
    """Split a message into a lowercased command word and its arguments"""
    args = content.split()
    if not args:
        return None, []
    return args[0].lower(), args[1:]


def extract_chat_prompt(args: list[str]) -> str:
    """Drop user and channel mentions from !chat arguments"""
    return " ".join(arg for arg in args if not arg.startswith(("<@", "<#")))


def build_forum_prompt(context_prompt: str, question: str) -> str:
    return f"{context_prompt}\n\nUser asked: {question}"


def private_channel_overwrites(
    guild: discord.Guild,
    member: discord.abc.Snowflake,
    admin_role: Optional[discord.Role] = None,
) -> dict:
    """Hide a channel from everyone except one member and the admin role"""
    overwrites = {
        guild.default_role: discord.PermissionOverwrite(view_channel=False),
        member: discord.PermissionOverwrite(
            view_channel=True,
            send_messages=True,
            read_message_history=True,
        ),
    }
    if admin_role is not None:
        overwrites[admin_role] = discord.PermissionOverwrite(
            view_channel=True,
            send_messages=True,
            read_message_history=True,
            manage_channels=True,
        )
    return overwrites
