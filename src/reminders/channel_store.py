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
Channel Reminder Store

Keeps reminders as JSON messages in a private Discord storage channel, one
message per reminder. There is no index: every lookup scans the newest
`scan_limit` messages, so older reminders fall out of reach.
"""

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, AsyncIterator, Optional

import discord
import pytz

from .models import ReminderRecord, StoreError
from .store import ReminderStore

if TYPE_CHECKING:
    from discord.ext.commands import Bot

logger = logging.getLogger("rme.reminders.channel_store")

DEFAULT_SCAN_LIMIT = 100


class ChannelReminderStore(ReminderStore):
    """Reminder store backed by a Discord text channel."""

    def __init__(
        self,
        bot: "Bot",
        channel_id: int,
        zone: pytz.BaseTzInfo,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ):
        """
        Initialize the channel store.

        Args:
            bot: Connected Discord client
            channel_id: ID of the storage channel
            zone: Fixed zone records are rendered in
            scan_limit: How many recent messages a scan reads
        """
        self.bot = bot
        self.channel_id = channel_id
        self.zone = zone
        self.scan_limit = scan_limit

    async def _channel(self) -> discord.abc.Messageable:
        channel = self.bot.get_channel(self.channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(self.channel_id)
            except discord.HTTPException as e:
                raise StoreError(f"Storage channel {self.channel_id} unavailable: {e}") from e

        if not isinstance(channel, discord.abc.Messageable):
            raise StoreError(f"Storage channel {self.channel_id} is not text-based")
        return channel

    async def _scan(self) -> AsyncIterator[tuple[discord.Message, ReminderRecord]]:
        channel = await self._channel()
        try:
            async for message in channel.history(limit=self.scan_limit):
                try:
                    record = ReminderRecord.from_json(message.content, self.zone)
                except (ValueError, KeyError, TypeError):
                    logger.debug(f"Skipping non-reminder message {message.id}")
                    continue
                yield message, record
        except discord.HTTPException as e:
            raise StoreError(f"Failed to read storage channel: {e}") from e

    async def _find_message(
        self, reminder_id: str, owner_id: Optional[str] = None
    ) -> Optional[tuple[discord.Message, ReminderRecord]]:
        async with aclosing(self._scan()) as scan:
            async for message, record in scan:
                if record.id != reminder_id:
                    continue
                if owner_id is not None and record.owner_id != owner_id:
                    continue
                return message, record
        return None

    async def insert(self, record: ReminderRecord) -> None:
        channel = await self._channel()
        try:
            await channel.send(record.to_json())
        except discord.HTTPException as e:
            raise StoreError(f"Failed to store reminder {record.id}: {e}") from e

    async def find_by_id(
        self, reminder_id: str, owner_id: Optional[str] = None
    ) -> Optional[ReminderRecord]:
        found = await self._find_message(reminder_id, owner_id)
        return found[1] if found else None

    async def update(
        self, record: ReminderRecord, expected_revision: Optional[int] = None
    ) -> bool:
        found = await self._find_message(record.id)
        if found is None:
            return False

        message, stored = found
        # Scan-then-edit is not atomic; this narrows the race, it cannot close it
        if expected_revision is not None and stored.revision != expected_revision:
            return False

        try:
            await message.edit(content=record.to_json())
        except discord.NotFound:
            return False
        except discord.HTTPException as e:
            raise StoreError(f"Failed to update reminder {record.id}: {e}") from e
        return True

    async def delete(self, reminder_id: str) -> bool:
        found = await self._find_message(reminder_id)
        if found is None:
            return False

        try:
            await found[0].delete()
        except discord.NotFound:
            return False
        except discord.HTTPException as e:
            raise StoreError(f"Failed to delete reminder {reminder_id}: {e}") from e
        return True

    async def list_all(self) -> list[ReminderRecord]:
        return [record async for _, record in self._scan()]

