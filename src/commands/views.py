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
Discord UI Components for Reminders

Buttons attached to a delivered reminder.
"""

import discord

from reminders import ReminderAction
from reminders.notifier import CANCEL


class ReminderActionView(discord.ui.View):
    """
    Snooze and cancel buttons for a fired reminder.

    Features:
    - No timeout, so the buttons keep working for as long as the message exists
    - No callbacks: presses are routed by custom ID in ReminderCommands,
      which also works for messages sent before a restart
    """

    def __init__(self, actions: list[ReminderAction]):
        """
        Initialize the view.

        Args:
            actions: One button per action, in order
        """
        super().__init__(timeout=None)
        for action in actions:
            style = (
                discord.ButtonStyle.danger
                if action.kind == CANCEL
                else discord.ButtonStyle.primary
            )
            self.add_item(
                discord.ui.Button(
                    label=action.label or action.kind.title(),
                    style=style,
                    custom_id=action.custom_id,
                )
            )
