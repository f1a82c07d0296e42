# cogs/admin_misc.py
import logging

import discord
from discord import app_commands
from discord.ext import commands

logger = logging.getLogger(__name__)

class AdminMisc(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @app_commands.command(name="sync", description="Force sync slash commands (admin)")
    async def sync(self, interaction: discord.Interaction):
        perms = getattr(interaction.user, "guild_permissions", None)
        if not (perms and perms.administrator):
            return await interaction.response.send_message("❌ You don’t have permission.", ephemeral=True)
        await interaction.response.defer(thinking=True, ephemeral=True)
        cmds = await interaction.client.tree.sync()
        logger.info(f"Slash commands synced by {interaction.user.id}: {len(cmds)}")
        await interaction.followup.send(f"✅ Synced {len(cmds)} command(s).", ephemeral=True)

async def setup(bot):
    await bot.add_cog(AdminMisc(bot))
