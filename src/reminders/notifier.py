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
Reminder Notifications

The delivery interface the scheduler fires reminders through, and the
interactive actions (snooze/cancel) attached to every delivered reminder.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta

from .models import ReminderRecord

SNOOZE = "snooze"
CANCEL = "cancel"

# Snooze presets in minutes, with button labels
SNOOZE_PRESETS = [
    (30, "Snooze 30 mins"),
    (120, "Snooze 2 hours"),
    (1440, "Snooze 1 day"),
]


@dataclass(frozen=True)
class ReminderAction:
    """
    A button on a delivered reminder.

    Encoded as "<kind>_<magnitude>_<reminder id>" so the command layer can
    route a later press back to the scheduler, even after a restart.
    """

    kind: str
    magnitude: int  # minutes for snooze, 0 for cancel
    reminder_id: str
    label: str = ""
    seconds: bool = False  # magnitude counts seconds instead of minutes

    @property
    def custom_id(self) -> str:
        magnitude = f"{self.magnitude}s" if self.seconds else str(self.magnitude)
        return f"{self.kind}_{magnitude}_{self.reminder_id}"

    @property
    def duration(self) -> timedelta:
        if self.seconds:
            return timedelta(seconds=self.magnitude)
        return timedelta(minutes=self.magnitude)

    @classmethod
    def parse(cls, custom_id: str) -> "ReminderAction":
        """
        Decode a button custom ID.

        A trailing "s" on the magnitude means seconds ("snooze_45s_<id>").

        Raises:
            ValueError: If the ID is not a reminder action
        """
        parts = custom_id.split("_", 2)
        if len(parts) != 3 or parts[0] not in (SNOOZE, CANCEL) or not parts[2]:
            raise ValueError(f"Not a reminder action: '{custom_id}'")

        kind, magnitude, reminder_id = parts
        seconds = magnitude.endswith("s")
        if seconds:
            magnitude = magnitude[:-1]
        if not magnitude.isdigit():
            raise ValueError(f"Bad action magnitude in '{custom_id}'")
        return cls(kind, int(magnitude), reminder_id, seconds=seconds)


def build_actions(reminder_id: str) -> list[ReminderAction]:
    """The snooze presets plus cancel, for one reminder."""
    actions = [
        ReminderAction(SNOOZE, minutes, reminder_id, label)
        for minutes, label in SNOOZE_PRESETS
    ]
    actions.append(ReminderAction(CANCEL, 0, reminder_id, "Cancel"))
    return actions


def compose_message(record: ReminderRecord) -> str:
    """Text of a fired reminder, mentioning its owner."""
    if record.title:
        text = f"Reminder: **{record.title}**"
    else:
        text = "Reminder: It's time!"
    return f"<@{record.owner_id}> {text}"


class NotificationSink(ABC):
    """Delivers fired reminders."""

    @abstractmethod
    async def deliver(
        self, destination: str, text: str, actions: list[ReminderAction]
    ) -> None:
        """
        Deliver a reminder message.

        Args:
            destination: Where to post (a channel ID)
            text: Message text
            actions: Interactive buttons to attach
        """
