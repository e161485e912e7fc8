"""
Classroom Assistant Bot

Discord bot that:
1. Answers DMs and !chat requests with Gemini
2. Auto-answers new posts in the "questions" forum using the guild's context prompt
3. Exposes admin slash commands for roles, channels, DMs and message purges
4. Purges whole channels, recreating them when history is older than 14 days
"""

import asyncio
import logging
import os
import signal
from typing import Optional

import discord
from discord import app_commands

from bot.commands import register_commands
from core.database import Database
from core.discord_host import DiscordPurgeHost
from core.gemini import DEFAULT_MODEL, GeminiClient, GeminiError
from core.guild_settings import GuildSettingsStore
from core.helpers import (
    HELP_TEXT,
    build_forum_prompt,
    extract_chat_prompt,
    parse_command,
    split_message,
)
from core.purge import Capability, ChannelPurger, PurgeOutcome

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


MESSAGE_COMMANDS = {"!chat", "!help", "!deleteall"}


def is_admin(member) -> bool:
    perms = getattr(member, "guild_permissions", None)
    return bool(perms and perms.administrator)


class ServerAssistant:
    """
    Discord client plus the command handlers

    Features:
    - Per-guild AI context, read fresh for every request
    - One purge at a time per channel
    - Slash commands synced to every guild on ready and on join
    """

    def __init__(
        self,
        bot_token: str,
        ai: GeminiClient,
        settings: GuildSettingsStore,
        purger: Optional[ChannelPurger] = None,
        admin_role_name: str = "Admin",
        verify_role_name: str = "Students",
        questions_forum: str = "questions",
    ):
        self.bot_token = bot_token
        self.ai = ai
        self.settings = settings
        self.purger = purger or ChannelPurger(DiscordPurgeHost())
        self.admin_role_name = admin_role_name
        self.verify_role_name = verify_role_name
        self.questions_forum = questions_forum

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        self._client = discord.Client(intents=intents)
        self.tree = app_commands.CommandTree(self._client)
        register_commands(self.tree, self)

        # Register event handlers
        @self._client.event
        async def on_ready():
            logger.info(f"{self._client.user} is online!")
            for guild in self._client.guilds:
                await self.sync_commands(guild)

        @self._client.event
        async def on_guild_join(guild: discord.Guild):
            await self.sync_commands(guild)

        @self._client.event
        async def on_thread_create(thread: discord.Thread):
            await self.handle_thread_create(thread)

        @self._client.event
        async def on_message(message: discord.Message):
            await self.handle_message(message)

    async def start(self):
        """Connect to Discord and run until closed"""
        await self._client.start(self.bot_token)

    async def stop(self):
        """Close the Discord connection and the AI client"""
        if not self._client.is_closed():
            await self._client.close()
        await self.ai.close()
        logger.info("Assistant bot stopped")

    async def sync_commands(self, guild: discord.Guild):
        """Register slash commands in one guild"""
        try:
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"✅ Registered slash commands in guild {guild.id}")
        except discord.HTTPException as e:
            logger.error(f"Error registering slash commands in guild {guild.id}: {e}")

    def can_manage_messages(self, channel: discord.abc.GuildChannel) -> bool:
        me = channel.guild.me
        host = self.purger.host
        return host.has_capability(channel, me, Capability.MANAGE_MESSAGES) and host.has_capability(
            channel, me, Capability.READ_MESSAGE_HISTORY
        )

    async def ask(self, prompt: str) -> str:
        return await self.ai.generate_content(prompt)

    # ---- Forum auto-responder ----

    async def handle_thread_create(self, thread: discord.Thread):
        """Answer the opening post of a new thread in the questions forum"""
        parent = thread.parent
        if parent is None or parent.name.lower() != self.questions_forum:
            return

        try:
            await thread.join()
            first_message = None
            async for message in thread.history(limit=1, oldest_first=True):
                first_message = message
            if first_message is None:
                return

            settings = self.settings.get(thread.guild.id)
            response = await self.ask(build_forum_prompt(settings.context_prompt, first_message.content))

            reply = (
                f"{first_message.author.mention}, **AI Response** *(an instructor will respond "
                f"with a full response within 1 business day)*:\n\n{response}"
            )
            for chunk in split_message(reply):
                await thread.send(chunk)
        except (GeminiError, discord.HTTPException) as e:
            logger.error(f"Error handling forum post in thread {thread.id}: {e}")

    # ---- Message commands ----

    async def handle_message(self, message: discord.Message):
        if message.author.bot:
            return

        if isinstance(message.channel, discord.DMChannel):
            await self._handle_dm(message)
            return

        command, args = parse_command(message.content)
        if command is None or not command.startswith("!"):
            return

        if command not in MESSAGE_COMMANDS:
            if is_admin(message.author):
                await message.channel.send(
                    f"❌ This `!` command has been moved to a slash command. Use `/{command[1:]}` instead."
                )
            return

        if command == "!help":
            for chunk in split_message(HELP_TEXT):
                await message.channel.send(chunk)
        elif command == "!chat":
            await self._handle_chat(message, args)
        elif command == "!deleteall":
            if is_admin(message.author):
                await self._handle_deleteall(message)

    async def _handle_dm(self, message: discord.Message):
        try:
            response = await self.ask(message.content)
        except GeminiError as e:
            logger.error(f"Error handling DM: {e}")
            await message.channel.send("❌ Sorry, something went wrong with the AI.")
            return
        for chunk in split_message(response):
            await message.channel.send(chunk)

    async def _handle_chat(self, message: discord.Message, args: list[str]):
        prompt = extract_chat_prompt(args)
        if not prompt:
            await message.channel.send("Usage: !chat <message> [#channel] [@user]")
            return

        target = message.channel_mentions[0] if message.channel_mentions else message.channel
        user = message.mentions[0] if message.mentions else None

        try:
            response = await self.ask(prompt)
            reply = f"{user.mention}, {response}" if user else response
            for chunk in split_message(reply):
                await target.send(chunk)
        except (GeminiError, discord.HTTPException) as e:
            logger.error(f"Error while executing AI chat: {e}")
            await message.channel.send("❌ Error while executing AI chat.")

    async def _handle_deleteall(self, message: discord.Message):
        result = await self.purger.purge(message.channel, message.guild.me)
        if result.outcome == PurgeOutcome.RECREATE_FAILED:
            logger.error(f"!deleteall recreate failed at {result.failed_step.value}: {result.error}")

        # The invoking channel is deleted by a recreate
        destination = result.new_channel if result.outcome == PurgeOutcome.RECREATED else message.channel
        try:
            await destination.send(result.message)
        except discord.HTTPException as e:
            logger.warning(f"Could not report purge result: {e}")


async def _wait_for_shutdown(shutdown_event: asyncio.Event):
    """Wait for SIGINT/SIGTERM"""
    loop = asyncio.get_running_loop()

    def handle_signal():
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_signal)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await shutdown_event.wait()


async def main():
    """Main entry point"""
    # Load .env files
    from dotenv import load_dotenv
    load_dotenv(os.getenv('BOT_ENV_FILE', 'ai_bot.env'))
    load_dotenv()

    bot_token = os.getenv('DISCORD_BOT_TOKEN')
    gemini_key = os.getenv('GEMINI_API_KEY')
    if not bot_token:
        raise SystemExit("DISCORD_BOT_TOKEN not set in environment")
    if not gemini_key:
        raise SystemExit("GEMINI_API_KEY not set in environment")

    database_url = os.getenv('DATABASE_URL', 'sqlite:///assistant.db')

    db = Database(database_url)
    await db.create_tables()
    settings = GuildSettingsStore(db)
    await settings.load()
    logger.info("Database initialized")

    assistant = ServerAssistant(
        bot_token=bot_token,
        ai=GeminiClient(gemini_key, model=os.getenv('GEMINI_MODEL', DEFAULT_MODEL)),
        settings=settings,
        admin_role_name=os.getenv('ADMIN_ROLE', 'Admin'),
        verify_role_name=os.getenv('VERIFY_ROLE', 'Students'),
        questions_forum=os.getenv('QUESTIONS_FORUM', 'questions').lower(),
    )

    shutdown_event = asyncio.Event()
    tasks = [
        asyncio.create_task(assistant.start()),
        asyncio.create_task(_wait_for_shutdown(shutdown_event)),
    ]

    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.exception():
                logger.error(f"Assistant bot crashed: {task.exception()}")
    finally:
        logger.info("Shutting down...")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await assistant.stop()
        await db.close()


if __name__ == '__main__':
    asyncio.run(main())
