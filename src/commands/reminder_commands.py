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
Reminder Slash Commands

Discord slash commands and button handling for reminders.
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from reminders import (
    CreateError,
    RecurrenceKind,
    ReminderAction,
    ReminderError,
    ReminderNotFoundError,
    ReminderRecord,
    ReminderScheduler,
    StoreUnavailableError,
    TimeInPastError,
    UnparsableTimeError,
    describe_recurrence,
)

logger = logging.getLogger("rme.commands.reminder")

RECURRENCE_CHOICES = [
    app_commands.Choice(name=describe_recurrence(kind), value=kind.value)
    for kind in RecurrenceKind
    if kind is not RecurrenceKind.NONE
]


def relative_timestamp(record: ReminderRecord) -> str:
    """Discord relative timestamp markup ("in 10 minutes")."""
    return f"<t:{int(record.fire_at.timestamp())}:R>"


def format_acknowledgement(user_id: int, record: ReminderRecord) -> str:
    """Reply confirming a new reminder."""
    text = f"Alright, <@{user_id}>, I will remind you {relative_timestamp(record)}"
    if record.title:
        text += f" about **{record.title}**"
    if record.is_recurring:
        text += f", repeating {describe_recurrence(record.recurrence)}"
    return f"{text}. (Reminder ID: `{record.id}`)"


class ReminderCommands(commands.Cog):
    """
    Slash commands for reminder management.

    Commands:
    - /rme - Set a reminder
    - /delrme - Delete a reminder by its ID

    Also handles the snooze/cancel buttons on delivered reminders.
    """

    def __init__(self, bot: commands.Bot, scheduler: ReminderScheduler):
        self.bot = bot
        self.scheduler = scheduler

    # =========================================================================
    # /rme
    # =========================================================================

    @app_commands.command(name="rme", description='Set a reminder (e.g. "/rme at 22:45")')
    @app_commands.describe(
        time='When to be reminded (e.g. "at 22:45", "in 10 mins" or "tomorrow at 3pm")',
        title="Optional title for the reminder",
        recurrence="Optional: repeat the reminder",
    )
    @app_commands.choices(recurrence=RECURRENCE_CHOICES)
    async def set_reminder(
        self,
        interaction: discord.Interaction,
        time: str,
        title: Optional[str] = None,
        recurrence: Optional[app_commands.Choice[str]] = None,
    ):
        """Set a reminder."""
        try:
            record = await self.scheduler.create(
                owner_id=interaction.user.id,
                destination=interaction.channel_id,
                raw_time=time,
                title=title,
                recurrence=recurrence.value if recurrence else None,
            )
        except UnparsableTimeError:
            await interaction.response.send_message(
                "Sorry, I could not understand that time. Please try a different format.",
                ephemeral=True,
            )
            return
        except TimeInPastError:
            await interaction.response.send_message(
                "The time specified is in the past. Please enter a future time.",
                ephemeral=True,
            )
            return
        except StoreUnavailableError:
            await interaction.response.send_message(
                "Storage channel not available. Cannot set reminder.",
                ephemeral=True,
            )
            return
        except CreateError as e:
            await interaction.response.send_message(str(e), ephemeral=True)
            return

        await interaction.response.send_message(
            format_acknowledgement(interaction.user.id, record)
        )

    # =========================================================================
    # /delrme
    # =========================================================================

    @app_commands.command(name="delrme", description="Delete a reminder by its ID")
    @app_commands.describe(reminder_id="The reminder ID to delete")
    @app_commands.rename(reminder_id="id")
    async def delete_reminder(
        self,
        interaction: discord.Interaction,
        reminder_id: str,
    ):
        """Delete a reminder."""
        reminder_id = reminder_id.strip()
        try:
            await self.scheduler.cancel(reminder_id, interaction.user.id)
        except ReminderNotFoundError:
            await interaction.response.send_message(
                f"No reminder found with ID `{reminder_id}` for you.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"Your reminder with ID `{reminder_id}` has been deleted.",
            ephemeral=True,
        )

    # =========================================================================
    # Buttons
    # =========================================================================

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction):
        """Route snooze/cancel button presses to the scheduler."""
        if interaction.type != discord.InteractionType.component:
            return

        custom_id = (interaction.data or {}).get("custom_id", "")
        try:
            action = ReminderAction.parse(custom_id)
        except ValueError:
            return  # Someone else's button

        user_id = interaction.user.id
        try:
            new_time = await self.scheduler.handle_action(action, user_id)
        except ReminderNotFoundError:
            await interaction.response.send_message(
                "This reminder no longer exists or you are not authorized to change it.",
                ephemeral=True,
            )
            return
        except ReminderError as e:
            logger.error(f"Error handling reminder button {custom_id}: {e}", exc_info=True)
            await interaction.response.send_message(
                "An error occurred while updating your reminder. Please try again later.",
                ephemeral=True,
            )
            return

        if new_time is None:
            content = f"<@{user_id}> Reminder cancelled."
        else:
            content = (
                f"<@{user_id}> Reminder snoozed for {int(action.duration.total_seconds() // 60)} "
                f"minutes (<t:{int(new_time.timestamp())}:R>)."
            )
        await interaction.response.edit_message(content=content, view=None)

    async def cog_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ):
        """Last-resort reply for unexpected command failures."""
        command = interaction.command.name if interaction.command else "?"
        logger.error(f"Error handling /{command}: {error}", exc_info=error)
        message = "An error occurred while handling your reminder. Please try again later."
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
