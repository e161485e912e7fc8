"""
Discord Channel Purge Utility

One-time script to wipe a channel with the same engine the /deleteall
command uses. Messages older than 14 days are cleared by recreating the
channel when the bot has Manage Channels.

Usage:
    python scripts/purge_channel.py [--channel ID] [--yes]

Options:
    --channel ID    Channel to purge (default: DISCORD_CHANNEL_ID)
    --yes           Skip the confirmation prompt
"""

import asyncio
import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import discord
from dotenv import load_dotenv

from core.discord_host import DiscordPurgeHost
from core.purge import ChannelPurger

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


async def purge_channel(bot_token: str, channel_id: int) -> str:
    """Log in, purge one channel and return the status message"""
    client = discord.Client(intents=discord.Intents.default())
    ready = asyncio.Event()

    @client.event
    async def on_ready():
        logger.info(f"Connected as {client.user}")
        ready.set()

    runner = asyncio.create_task(client.start(bot_token))
    try:
        try:
            await asyncio.wait_for(ready.wait(), timeout=30.0)
        except asyncio.TimeoutError:
            return "❌ Could not connect to Discord within 30 seconds."

        try:
            channel = client.get_channel(channel_id) or await client.fetch_channel(channel_id)
        except discord.NotFound:
            return f"❌ Channel {channel_id} not found."
        except discord.Forbidden:
            return f"❌ No access to channel {channel_id}."

        if not isinstance(channel, discord.TextChannel):
            return f"❌ Channel {channel_id} is not a text channel."

        purger = ChannelPurger(DiscordPurgeHost())

        async def report_progress(deleted: int):
            print(f"  ...{deleted} deleted")

        result = await purger.purge(channel, channel.guild.me, on_progress=report_progress)
        return result.message
    finally:
        await client.close()
        await asyncio.gather(runner, return_exceptions=True)


async def main():
    parser = argparse.ArgumentParser(description="Purge all messages in a Discord channel")
    parser.add_argument(
        "--channel",
        type=int,
        default=None,
        help="Channel ID to purge (default: DISCORD_CHANNEL_ID)",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )
    args = parser.parse_args()

    # Load environment
    load_dotenv()

    bot_token = os.getenv("DISCORD_BOT_TOKEN")
    channel_id_str = os.getenv("DISCORD_CHANNEL_ID")

    if not bot_token:
        print("ERROR: DISCORD_BOT_TOKEN not set in environment")
        sys.exit(1)

    channel_id = args.channel or (int(channel_id_str) if channel_id_str else None)
    if channel_id is None:
        print("ERROR: pass --channel or set DISCORD_CHANNEL_ID")
        sys.exit(1)

    print("Discord Channel Purge Utility")
    print(f"Channel ID: {channel_id}")
    print()

    if not args.yes:
        confirm = input("Delete every message in this channel? (yes/no): ")
        if confirm.lower() != "yes":
            print("Aborted.")
            sys.exit(0)

    print()
    print("Running purge...")
    message = await purge_channel(bot_token, channel_id)

    print()
    print(message)


if __name__ == "__main__":
    asyncio.run(main())
