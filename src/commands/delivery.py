# rme - Discord Reminder Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Discord Reminder Delivery

Posts fired reminders to their channel with snooze/cancel buttons.
"""

import logging

import discord
from discord.ext import commands

from reminders import NotificationSink, ReminderAction

from .views import ReminderActionView

logger = logging.getLogger("rme.commands.delivery")


class DiscordNotificationSink(NotificationSink):
    """Delivers reminders as Discord channel messages."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def deliver(
        self, destination: str, text: str, actions: list[ReminderAction]
    ) -> None:
        """
        Send a reminder to a channel.

        Raises:
            LookupError: If the channel cannot be found
            discord.HTTPException: If sending fails
        """
        channel_id = int(destination)
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except discord.NotFound:
                raise LookupError(f"Channel {channel_id} not found") from None

        await channel.send(content=text, view=ReminderActionView(actions))
        logger.debug(f"Sent reminder message to channel {channel_id}")
