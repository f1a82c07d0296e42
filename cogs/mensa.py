# cogs/mensa.py
from __future__ import annotations

import logging
from functools import partial
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from mensa import plan
from mensa.avatars import decode_avatar
from mensa.config import AVATAR_SIZE, PLAN_FILENAME
from mensa.errors import FetchError, MensaError, RenderError
from mensa.grid import format_cell
from mensa.positions import PositionEntry
from mensa.service import MensaService
from utils.settings import load_settings, max_duration

logger = logging.getLogger(__name__)

DELETED_MSG = "Your location was rapidly approached (position was deleted)."


class MensaCog(commands.Cog):
    """Mark your seat on the mensa plan and see who is sitting where."""

    mensa = app_commands.Group(name="mensa", description="Mensa seating plan")

    def __init__(self, bot: commands.Bot, settings: dict | None = None):
        self.bot = bot
        st = settings if settings is not None else load_settings()
        self.service = MensaService(
            fetch_avatar=self.fetch_avatar,
            background_loader=partial(plan.load_background, st.get("plan_image")),
            max_duration=max_duration(st),
        )

    # ---------------- avatar fetch (Discord CDN) ----------------
    async def fetch_avatar(self, user_id: int):
        user = self.bot.get_user(user_id)
        try:
            if user is None:
                user = await self.bot.fetch_user(user_id)
            asset = user.display_avatar.replace(format="png", size=AVATAR_SIZE)
            data = await asset.read()
        except discord.NotFound as e:
            raise FetchError(user_id, "unknown user") from e
        except discord.HTTPException as e:
            raise FetchError(user_id, f"HTTP {e.status}: {e.text}") from e
        except (discord.DiscordException, ValueError) as e:
            raise FetchError(user_id, repr(e)) from e
        return decode_avatar(user_id, data)
    # ------------------------------------------------------------

    @mensa.command(name="add", description="Mark your position in the mensa (or play battleship)")
    @app_commands.describe(
        position="Letter Number (without space), e.g. B3",
        expires="Time until your position disappears. Use 0 to delete your marker. Default 1 hour"
    )
    async def add(self, interaction: discord.Interaction, position: str, expires: Optional[str] = None):
        uid = interaction.user.id
        try:
            result = self.service.set_position(uid, position, expires)
        except MensaError as e:
            logger.debug(f"Rejected /mensa add from {uid}: {e}")
            return await interaction.response.send_message(f"❌ {e.user_message}", ephemeral=True)

        if result.cleared:
            return await interaction.response.send_message(DELETED_MSG, ephemeral=True)

        await interaction.response.defer(thinking=True)
        entry = self.service.get_position(uid)
        await self._send_plan(interaction, caption=_caption(uid, entry) if entry else None)

    @mensa.command(name="plan", description="See the plan")
    async def plan_cmd(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        await self._send_plan(interaction)

    @mensa.command(name="remove", description="Delete your marker from the plan")
    async def remove(self, interaction: discord.Interaction):
        self.service.clear_position(interaction.user.id)
        await interaction.response.send_message(DELETED_MSG, ephemeral=True)

    async def _send_plan(self, interaction: discord.Interaction, caption: str | None = None):
        try:
            buf = await self.service.render_plan_png()
        except FetchError as e:
            logger.warning(f"Plan render aborted: {e}")
            return await interaction.followup.send(
                f"❌ {e.user_message} Please try again in a moment.", ephemeral=True
            )
        except RenderError as e:
            logger.error(f"Plan render hit an internal error: {e}", exc_info=True)
            return await interaction.followup.send(f"❌ {e.user_message} See logs.", ephemeral=True)

        logger.debug("Sending updated mensa plan")
        await interaction.followup.send(
            content=caption,
            file=discord.File(buf, filename=PLAN_FILENAME),
        )

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        cause = getattr(error, "original", error)
        logger.error(f"Mensa command failed: {cause!r}", exc_info=cause)
        msg = "❌ Something went wrong. See logs."
        if interaction.response.is_done():
            await interaction.followup.send(msg, ephemeral=True)
        else:
            await interaction.response.send_message(msg, ephemeral=True)


def _caption(user_id: int, entry: PositionEntry) -> str:
    ts = int(entry.expires_at.timestamp())
    return f"📍 <@{user_id}> is at **{format_cell(entry.cell)}** until <t:{ts}:t>"


async def setup(bot: commands.Bot):
    await bot.add_cog(MensaCog(bot))
