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

"""Tests for the reminder slash commands and button handling."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytz
from discord import app_commands

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commands.delivery import DiscordNotificationSink
from commands.reminder_commands import ReminderCommands, format_acknowledgement
from commands.views import ReminderActionView
from reminders import (
    InMemoryReminderStore,
    NotificationSink,
    RecurrenceKind,
    ReminderRecord,
    ReminderScheduler,
    build_actions,
)

IST = pytz.timezone("Asia/Kolkata")
START = IST.localize(datetime(2026, 3, 10, 14, 0))


class NullSink(NotificationSink):
    async def deliver(self, destination, text, actions):
        pass


def make_scheduler():
    return ReminderScheduler(InMemoryReminderStore(), NullSink(), IST, clock=lambda: START)


def make_interaction(user_id=42, channel_id=7, custom_id=None):
    interaction = MagicMock()
    interaction.user.id = user_id
    interaction.channel_id = channel_id
    interaction.response.send_message = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    if custom_id is not None:
        interaction.type = discord.InteractionType.component
        interaction.data = {"custom_id": custom_id}
    return interaction


class TestAcknowledgement:
    """Test the confirmation text."""

    def test_with_title(self):
        record = ReminderRecord("123", "42", "7", START, title="standup")
        text = format_acknowledgement(42, record)

        assert text == (
            f"Alright, <@42>, I will remind you <t:{int(START.timestamp())}:R> "
            "about **standup**. (Reminder ID: `123`)"
        )

    def test_recurring_without_title(self):
        record = ReminderRecord("123", "42", "7", START, recurrence=RecurrenceKind.WEEKDAY)
        text = format_acknowledgement(42, record)

        assert "about" not in text
        assert ", repeating weekday." in text


class TestReminderCommands:
    """Test the /rme and /delrme commands."""

    @pytest.mark.asyncio
    async def test_set_reminder(self):
        scheduler = make_scheduler()
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction()

        await cog.set_reminder.callback(cog, interaction, "tomorrow at 10am", "standup", None)

        [record] = await scheduler.store.list_all()
        reply = interaction.response.send_message.call_args[0][0]
        assert record.id in reply
        assert "**standup**" in reply
        assert record.destination == "7"
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_set_recurring_reminder(self):
        scheduler = make_scheduler()
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction()
        choice = app_commands.Choice(name="daily", value="daily")

        await cog.set_reminder.callback(cog, interaction, "in 10 minutes", None, choice)

        [record] = await scheduler.store.list_all()
        assert record.recurrence is RecurrenceKind.DAILY
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_unparsable_time(self):
        scheduler = make_scheduler()
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction()

        await cog.set_reminder.callback(cog, interaction, "qwertyuiop", None, None)

        args, kwargs = interaction.response.send_message.call_args
        assert args[0].startswith("Sorry, I could not understand that time")
        assert kwargs["ephemeral"] is True
        assert await scheduler.store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_reminder(self):
        scheduler = make_scheduler()
        record = await scheduler.create(42, 7, "in 10 minutes")
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction()

        await cog.delete_reminder.callback(cog, interaction, f" {record.id} ")

        interaction.response.send_message.assert_awaited_once_with(
            f"Your reminder with ID `{record.id}` has been deleted.", ephemeral=True
        )
        assert await scheduler.store.find_by_id(record.id) is None

    @pytest.mark.asyncio
    async def test_delete_someone_elses_reminder(self):
        scheduler = make_scheduler()
        record = await scheduler.create(42, 7, "in 10 minutes")
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction(user_id=99)

        await cog.delete_reminder.callback(cog, interaction, record.id)

        interaction.response.send_message.assert_awaited_once_with(
            f"No reminder found with ID `{record.id}` for you.", ephemeral=True
        )
        assert await scheduler.store.find_by_id(record.id) is not None
        await scheduler.stop()


class TestButtons:
    """Test snooze/cancel button routing."""

    @pytest.mark.asyncio
    async def test_snooze_button(self):
        scheduler = make_scheduler()
        record = await scheduler.create(42, 7, "in 10 minutes")
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction(custom_id=f"snooze_30_{record.id}")

        await cog.on_interaction(interaction)

        content = interaction.response.edit_message.call_args.kwargs["content"]
        assert "snoozed for 30 minutes" in content
        stored = await scheduler.store.find_by_id(record.id)
        assert stored.fire_at == START + timedelta(minutes=30)
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_cancel_button(self):
        scheduler = make_scheduler()
        record = await scheduler.create(42, 7, "in 10 minutes")
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction(custom_id=f"cancel_0_{record.id}")

        await cog.on_interaction(interaction)

        interaction.response.edit_message.assert_awaited_once_with(
            content="<@42> Reminder cancelled.", view=None
        )
        assert await scheduler.store.find_by_id(record.id) is None

    @pytest.mark.asyncio
    async def test_button_pressed_by_someone_else(self):
        scheduler = make_scheduler()
        record = await scheduler.create(42, 7, "in 10 minutes")
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction(user_id=99, custom_id=f"cancel_0_{record.id}")

        await cog.on_interaction(interaction)

        message = interaction.response.send_message.call_args[0][0]
        assert message.startswith("This reminder no longer exists")
        assert await scheduler.store.find_by_id(record.id) is not None
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_ignores_other_buttons(self):
        scheduler = make_scheduler()
        cog = ReminderCommands(MagicMock(), scheduler)
        interaction = make_interaction(custom_id="poll_vote_3")

        await cog.on_interaction(interaction)

        interaction.response.send_message.assert_not_awaited()
        interaction.response.edit_message.assert_not_awaited()


class TestDelivery:
    """Test posting fired reminders to Discord."""

    @pytest.mark.asyncio
    async def test_sends_message_with_buttons(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        bot = MagicMock()
        bot.get_channel.return_value = channel
        sink = DiscordNotificationSink(bot)

        await sink.deliver("7", "<@42> Reminder: It's time!", build_actions("123"))

        bot.get_channel.assert_called_once_with(7)
        kwargs = channel.send.call_args.kwargs
        assert kwargs["content"] == "<@42> Reminder: It's time!"
        view = kwargs["view"]
        assert isinstance(view, ReminderActionView)
        assert [item.custom_id for item in view.children] == [
            "snooze_30_123",
            "snooze_120_123",
            "snooze_1440_123",
            "cancel_0_123",
        ]
        assert view.children[-1].style == discord.ButtonStyle.danger
        assert view.timeout is None
