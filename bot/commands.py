"""
Slash commands for the assistant bot

Everything except /help requires the Administrator permission and a guild.
"""

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from core.helpers import HELP_TEXT, private_channel_overwrites
from core.purge import PurgeOutcome

if TYPE_CHECKING:
    from bot.main import ServerAssistant

logger = logging.getLogger(__name__)


NO_PERMISSION = "❌ You don’t have permission to use this command."
GUILD_ONLY = "❌ This command can only be used in servers."


async def _reply(interaction: discord.Interaction, content: str, ephemeral: bool = True):
    if interaction.response.is_done():
        await interaction.followup.send(content, ephemeral=ephemeral)
    else:
        await interaction.response.send_message(content, ephemeral=ephemeral)


async def on_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    """Tree-wide error handler"""
    if isinstance(error, app_commands.NoPrivateMessage):
        await _reply(interaction, GUILD_ONLY)
    elif isinstance(error, app_commands.MissingPermissions):
        await _reply(interaction, NO_PERMISSION)
    else:
        command = interaction.command.name if interaction.command else "?"
        logger.error(f"Command /{command} failed: {error}", exc_info=error)
        await _reply(interaction, "❌ Something went wrong while running that command.")


def register_commands(tree: app_commands.CommandTree, assistant: "ServerAssistant") -> None:
    """Add every slash command to the tree"""
    tree.on_error = on_command_error

    admin_only = app_commands.checks.has_permissions(administrator=True)

    @tree.command(name="help", description="Shows a list of all available commands.")
    @app_commands.guild_only()
    async def help_command(interaction: discord.Interaction):
        await interaction.response.send_message(HELP_TEXT, ephemeral=True)

    @tree.command(name="setcontext", description="Updates the AI's response behavior/context.")
    @app_commands.describe(text="The new context for the AI.")
    @app_commands.guild_only()
    @admin_only
    async def setcontext(interaction: discord.Interaction, text: str):
        try:
            await assistant.settings.set_context(interaction.guild_id, text)
        except ValueError:
            await interaction.response.send_message("❌ Context can't be empty.", ephemeral=True)
            return
        await interaction.response.send_message("✅ AI context updated successfully!", ephemeral=True)

    # ---- Roles ----

    @tree.command(name="addrole", description="Assigns a role to a user.")
    @app_commands.describe(role="The role to add.", user="The user to give the role to.")
    @app_commands.guild_only()
    @admin_only
    async def addrole(interaction: discord.Interaction, role: discord.Role, user: discord.Member):
        await user.add_roles(role)
        await interaction.response.send_message(f"✅ Added {role.name} to {user}.", ephemeral=True)

    @tree.command(name="removerole", description="Removes a role from a user.")
    @app_commands.describe(role="The role to remove.", user="The user to remove the role from.")
    @app_commands.guild_only()
    @admin_only
    async def removerole(interaction: discord.Interaction, role: discord.Role, user: discord.Member):
        await user.remove_roles(role)
        await interaction.response.send_message(f"✅ Removed {role.name} from {user}.", ephemeral=True)

    @tree.command(name="createrole", description="Creates a new role.")
    @app_commands.describe(name="The name for the new role.")
    @app_commands.guild_only()
    @admin_only
    async def createrole(interaction: discord.Interaction, name: str):
        await interaction.guild.create_role(name=name)
        await interaction.response.send_message(f'✅ Role "{name}" created.', ephemeral=True)

    @tree.command(name="deleterole", description="Deletes a role.")
    @app_commands.describe(name="The role to delete.")
    @app_commands.guild_only()
    @admin_only
    async def deleterole(interaction: discord.Interaction, name: discord.Role):
        await name.delete()
        await interaction.response.send_message(f'✅ Role "{name.name}" deleted.', ephemeral=True)

    @tree.command(name="renamerole", description="Renames an existing role.")
    @app_commands.describe(old_name="The role to rename.", new_name="The new name for the role.")
    @app_commands.guild_only()
    @admin_only
    async def renamerole(interaction: discord.Interaction, old_name: discord.Role, new_name: str):
        previous = old_name.name
        await old_name.edit(name=new_name)
        await interaction.response.send_message(f'✅ Renamed "{previous}" to "{new_name}".', ephemeral=True)

    # ---- Channels ----

    @tree.command(name="createchannel", description="Creates a new text channel.")
    @app_commands.describe(name="The name for the new channel.")
    @app_commands.guild_only()
    @admin_only
    async def createchannel(interaction: discord.Interaction, name: str):
        try:
            channel = await interaction.guild.create_text_channel(name=name)
        except discord.HTTPException as e:
            logger.error(f"Failed to create channel {name!r}: {e}")
            await interaction.response.send_message("❌ Failed to create channel.", ephemeral=True)
            return
        await interaction.response.send_message(f"✅ Channel created: {channel.mention}", ephemeral=True)

    @tree.command(name="deletechannel", description="Deletes a text channel.")
    @app_commands.describe(channel="The channel to delete.")
    @app_commands.guild_only()
    @admin_only
    async def deletechannel(interaction: discord.Interaction, channel: discord.TextChannel):
        try:
            await channel.delete()
        except discord.HTTPException as e:
            logger.error(f"Failed to delete channel {channel.id}: {e}")
            await interaction.response.send_message("❌ Failed to delete channel.", ephemeral=True)
            return
        await interaction.response.send_message(f"✅ Channel deleted: {channel.name}", ephemeral=True)

    @tree.command(name="createprivatechannel", description="Creates a private text channel for a user and admins.")
    @app_commands.describe(user="The user to create the private channel for.")
    @app_commands.guild_only()
    @admin_only
    async def createprivatechannel(interaction: discord.Interaction, user: discord.Member):
        guild = interaction.guild
        admin_role = discord.utils.get(guild.roles, name=assistant.admin_role_name)
        try:
            channel = await guild.create_text_channel(
                name=f"{user.name}-private",
                overwrites=private_channel_overwrites(guild, user, admin_role),
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to create private channel for {user.id}: {e}")
            await interaction.response.send_message("❌ Failed to create private channel.", ephemeral=True)
            return
        await interaction.response.send_message(f"✅ Private channel created: {channel.mention}", ephemeral=True)

    # ---- Messaging ----

    @tree.command(name="senddm", description="Sends a direct message to a user.")
    @app_commands.describe(user="The user to send the DM to.", message="The message to send.")
    @app_commands.guild_only()
    @admin_only
    async def senddm(interaction: discord.Interaction, user: discord.Member, message: str):
        try:
            await user.send(message)
        except discord.HTTPException as e:
            logger.warning(f"Could not DM {user.id}: {e}")
            await interaction.response.send_message(
                f"❌ Could not send DM to {user}. They might have DMs disabled.", ephemeral=True
            )
            return
        await interaction.response.send_message(f"✅ Sent DM to {user}", ephemeral=True)

    @tree.command(name="delete", description="Delete a number of recent messages in this channel (1–100, <14 days)")
    @app_commands.describe(amount="Number of messages to delete (1–100)")
    @app_commands.guild_only()
    @admin_only
    async def delete(interaction: discord.Interaction, amount: int):
        channel = interaction.channel
        if not assistant.can_manage_messages(channel):
            await interaction.response.send_message(
                "❌ I need **Manage Messages** and **Read Message History** in this channel.",
                ephemeral=True,
            )
            return
        if amount < 1 or amount > 100:
            await interaction.response.send_message(
                "⚠️ Please provide a number between **1** and **100**.", ephemeral=True
            )
            return

        try:
            deleted = await assistant.purger.delete_recent(channel, amount)
        except discord.HTTPException as e:
            logger.error(f"Failed to delete messages in {channel.id}: {e}")
            await interaction.response.send_message("❌ Failed to delete messages.", ephemeral=True)
            return
        await interaction.response.send_message(
            f"✅ Deleted **{deleted}** message(s) in {channel.mention}.", ephemeral=True
        )

    @tree.command(name="deleteall", description="Delete all messages in this channel (handles 14-day limit; may nuke channel)")
    @app_commands.guild_only()
    @admin_only
    async def deleteall(interaction: discord.Interaction):
        channel = interaction.channel
        if not assistant.can_manage_messages(channel):
            await interaction.response.send_message(
                "❌ I need **Manage Messages** and **Read Message History** in this channel.",
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)

        async def report_progress(deleted: int):
            try:
                await interaction.edit_original_response(content=f"🧹 Deleted **{deleted}** message(s) so far...")
            except discord.HTTPException as e:
                logger.debug(f"Progress update skipped: {e}")

        result = await assistant.purger.purge(channel, interaction.guild.me, on_progress=report_progress)
        if result.outcome == PurgeOutcome.RECREATE_FAILED:
            logger.error(f"/deleteall recreate failed at {result.failed_step.value}: {result.error}")

        try:
            await interaction.edit_original_response(content=result.message)
        except discord.HTTPException as e:
            logger.warning(f"Could not report purge result: {e}")

    # ---- Verification ----

    @tree.command(name="verify", description="Adds the 'Students' role to a user.")
    @app_commands.describe(usr="The user to add the role to.")
    @app_commands.guild_only()
    @admin_only
    async def verify(interaction: discord.Interaction, usr: discord.Member):
        role_name = assistant.verify_role_name
        role = discord.utils.get(interaction.guild.roles, name=role_name)
        if role is None:
            await interaction.response.send_message(f'❌ Role "**{role_name}**" not found.', ephemeral=True)
            return
        try:
            await usr.add_roles(role)
        except discord.HTTPException as e:
            logger.error(f"Failed to add {role_name} to {usr.id}: {e}")
            await interaction.response.send_message(
                f"❌ Failed to add the role to {usr.name}.", ephemeral=True
            )
            return
        await interaction.response.send_message(f'✅ Added the "**{role_name}**" role to {usr.name}.')
