"""
rme Discord Bot

Registers the /rme and /delrme slash commands, restores scheduled reminders
from storage when it connects, and delivers them when they come due.
"""

import asyncio
import os
from typing import Optional

import asyncpg
import discord
from discord.ext import commands
from dotenv import load_dotenv

from commands.delivery import DiscordNotificationSink
from commands.reminder_commands import ReminderCommands
from reminders import InMemoryReminderStore, ReminderConfig, ReminderScheduler, ReminderStore
from reminders.channel_store import ChannelReminderStore
from reminders.pg_store import PostgresReminderStore

load_dotenv()

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("rme")


class ReminderBot(commands.Bot):
    """Discord bot that schedules and delivers reminders."""

    def __init__(self, config: Optional[ReminderConfig] = None):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config or ReminderConfig.from_env()
        self.db_pool: Optional[asyncpg.Pool] = None
        self.scheduler: Optional[ReminderScheduler] = None
        self._reconciled = False

    async def setup_hook(self):
        """Called when the bot is starting up."""
        zone = self.config.zone
        logger.info(f"Setup: REMINDER_TIMEZONE={zone.zone}")
        logger.info(f"Setup: REMINDER_STORE={self.config.store_backend}")
        logger.info(f"Setup: DATABASE_URL={'set' if self.config.database_url else 'missing'}")

        store = await self._create_store()
        self.scheduler = ReminderScheduler(
            store,
            DiscordNotificationSink(self),
            zone,
            max_advance_iterations=self.config.max_advance_iterations,
        )
        await self.add_cog(ReminderCommands(self, self.scheduler))

        synced = await self.tree.sync()
        logger.info(f"Synced {len(synced)} slash command(s)")

    async def _create_store(self) -> ReminderStore:
        """Build the configured reminder store."""
        backend = self.config.store_backend
        zone = self.config.zone

        if backend == "postgres":
            if not self.config.database_url:
                raise RuntimeError("DATABASE_URL must be set when REMINDER_STORE=postgres")
            self.db_pool = await asyncpg.create_pool(self.config.database_url)
            store = PostgresReminderStore(self.db_pool, zone)
            await store.ensure_schema()
            return store

        if backend == "memory":
            logger.warning("Using in-memory reminder store, reminders will not survive a restart")
            return InMemoryReminderStore()

        if self.config.storage_channel_id is None:
            raise RuntimeError("REMINDER_STORAGE_CHANNEL_ID must be set when REMINDER_STORE=channel")
        return ChannelReminderStore(
            self, self.config.storage_channel_id, zone, scan_limit=self.config.scan_limit
        )

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        print(f"Logged in as {self.user} (ID: {self.user.id})")

        # on_ready fires again after reconnects; timers are still live then
        if self.scheduler is not None and not self._reconciled:
            self._reconciled = True
            await self.scheduler.reconcile()

    async def close(self):
        """Stop timers and release the database pool before disconnecting."""
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self.db_pool is not None:
            await self.db_pool.close()
        await super().close()


async def main():
    """Run the reminder bot."""
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        print("Error: DISCORD_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = ReminderBot()
    async with bot:
        await bot.start(token)


if __name__ == "__main__":
    asyncio.run(main())
