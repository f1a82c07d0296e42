# cogs/help.py
import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional, List

from mensa.config import MIN_LETTER, MAX_LETTER, MIN_NUMBER, MAX_NUMBER

HELP_CATEGORIES = [
    ("Mensa plan", "mensa"),
    ("Formats", "formats"),
    ("Admin", "admin"),
    ("All", "all"),
]

def build_mensa_embed(guild: Optional[discord.Guild]) -> discord.Embed:
    e = discord.Embed(
        title="Mensa Plan",
        description=(
            "Mark where you're sitting so others can find you. Your avatar shows up on the plan "
            "until your marker expires.\n\n"
            "Markers disappear on their own; there's nothing to clean up."
        ),
        color=discord.Color.blurple()
    )
    e.add_field(
        name="`/mensa add`",
        value=(
            "**Purpose:** Mark your position and post the updated plan.\n"
            "**Usage:** `/mensa add position: B3 expires: 30m`\n"
            "**Notes:** `expires` defaults to 1 hour. Use `0` to delete your marker."
        ),
        inline=False
    )
    e.add_field(
        name="`/mensa plan`",
        value="**Purpose:** Show who is where right now.",
        inline=False
    )
    e.add_field(
        name="`/mensa remove`",
        value="**Purpose:** Delete your marker (same as `expires: 0`).",
        inline=False
    )
    if guild:
        e.set_footer(text=f"Server: {guild.name}")
    return e

def build_formats_embed() -> discord.Embed:
    e = discord.Embed(title="Positions & Durations", color=discord.Color.dark_teal())
    e.add_field(
        name="Position",
        value=(
            f"A letter `{MIN_LETTER}`–`{MAX_LETTER}` and a number `{MIN_NUMBER}`–`{MAX_NUMBER}`, no space.\n"
            "Either order works: `B3`, `3B`, `j10`, `10J`."
        ),
        inline=False
    )
    e.add_field(
        name="Duration",
        value=(
            "Number + unit: `45s`, `30m`, `2h`, `1h30m`, `1 day`.\n"
            "A bare number is seconds. `0` deletes your marker."
        ),
        inline=False
    )
    return e

def build_admin_embed() -> discord.Embed:
    e = discord.Embed(title="Admin Commands", color=discord.Color.dark_gold())
    e.add_field(
        name="`/sync`",
        value=(
            "**Purpose:** (Re)register slash commands.\n"
            "**When to run:** First install, or after you update/add commands."
        ),
        inline=False
    )
    return e

def build_embeds(category_value: Optional[str], guild: Optional[discord.Guild]) -> List[discord.Embed]:
    if category_value == "formats":
        return [build_formats_embed()]
    if category_value == "admin":
        return [build_admin_embed()]
    if category_value == "all":
        return [build_mensa_embed(guild), build_formats_embed(), build_admin_embed()]
    # Default landing
    return [build_mensa_embed(guild)]

class HelpSelect(discord.ui.Select):
    def __init__(self, guild: Optional[discord.Guild]):
        options = [
            discord.SelectOption(label=label, value=value)
            for label, value in HELP_CATEGORIES
        ]
        super().__init__(placeholder="Choose a help section…", min_values=1, max_values=1, options=options)
        self.guild = guild

    async def callback(self, interaction: discord.Interaction):
        await interaction.response.edit_message(embeds=build_embeds(self.values[0], self.guild), view=self.view)

class HelpView(discord.ui.View):
    def __init__(self, guild: Optional[discord.Guild]):
        super().__init__(timeout=300)  # 5 minutes
        self.add_item(HelpSelect(guild))

class HelpCog(commands.Cog):
    """Help for the mensa plan commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="help", description="How to mark your spot on the mensa plan.")
    @app_commands.describe(category="Pick a specific section (optional).")
    @app_commands.choices(category=[
        app_commands.Choice(name=label, value=value) for label, value in HELP_CATEGORIES
    ])
    async def help_cmd(self, interaction: discord.Interaction, category: Optional[app_commands.Choice[str]] = None):
        await interaction.response.send_message(
            embeds=build_embeds(category.value if category else None, interaction.guild),
            view=HelpView(interaction.guild),
            ephemeral=True
        )

async def setup(bot: commands.Bot):
    await bot.add_cog(HelpCog(bot))
