# bot.py
import asyncio, discord, os
from discord.ext import commands

import logging

from utils.settings import load_settings

SETTINGS = load_settings()
logging.basicConfig(
    level=getattr(logging, str(SETTINGS.get("log_level") or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("bot")

INTENTS = discord.Intents.default()
BOT = commands.Bot(command_prefix=SETTINGS.get("command_prefix") or "!", intents=INTENTS)

EXTENSIONS = (
    "cogs.mensa",
    "cogs.help",
    "cogs.admin_misc",
)

@BOT.event
async def on_ready():
    logger.info(f"Logged in as {BOT.user} ({BOT.user.id})")
    try:
        synced = await BOT.tree.sync()
        logger.info(f"Synced {len(synced)} command(s).")
    except Exception as e:
        logger.error(f"Slash sync failed: {e}", exc_info=True)

async def main():
    async with BOT:
        for ext in EXTENSIONS:
            await BOT.load_extension(ext)
        await BOT.start(os.environ["DISCORD_TOKEN"])

if __name__ == "__main__":
    asyncio.run(main())
