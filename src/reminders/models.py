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
Reminder Data Model

The persisted reminder record, its JSON wire shape, and the error types
raised by the scheduling core.
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import pytz


class RecurrenceKind(str, Enum):
    """How often a reminder repeats."""

    NONE = "none"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKDAY = "weekday"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ReminderError(Exception):
    """Base class for reminder errors surfaced to users."""

    pass


class CreateError(ReminderError):
    """A reminder could not be created."""

    pass


class UnparsableTimeError(CreateError):
    """The time phrase could not be understood."""

    pass


class TimeInPastError(CreateError):
    """The resolved time is not in the future."""

    pass


class StoreUnavailableError(CreateError):
    """The reminder store rejected the insert; nothing was persisted."""

    pass


class ReminderNotFoundError(ReminderError):
    """No reminder with that ID exists for the requesting user."""

    def __init__(self, reminder_id: str):
        super().__init__(f"No reminder found with ID `{reminder_id}`")
        self.reminder_id = reminder_id


class StoreError(ReminderError):
    """The backing store failed (network, permissions, missing channel)."""

    pass


@dataclass
class ReminderRecord:
    """A persisted reminder."""

    id: str
    owner_id: str
    destination: str
    fire_at: datetime  # aware, in the fixed zone
    title: Optional[str] = None
    recurrence: RecurrenceKind = RecurrenceKind.NONE
    triggered: bool = False
    revision: int = 0

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not RecurrenceKind.NONE

    def evolve(self, **changes: Any) -> "ReminderRecord":
        """Copy with changes applied and the revision bumped."""
        changes.setdefault("revision", self.revision + 1)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Wire shape, readable from records written by earlier releases."""
        return {
            "id": self.id,
            "userId": self.owner_id,
            "channelId": self.destination,
            "remindAt": self.fire_at.isoformat(),
            "title": self.title,
            "recurrence": (
                {"type": self.recurrence.value} if self.is_recurring else None
            ),
            "triggered": self.triggered,
            "revision": self.revision,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict, zone: pytz.BaseTzInfo) -> "ReminderRecord":
        """
        Build a record from its wire shape.

        Args:
            data: Decoded JSON object
            zone: Fixed zone the fire time is rendered in

        Raises:
            KeyError: A required field is missing
            ValueError: A field has an invalid value
        """
        recurrence = data.get("recurrence") or {}
        kind = recurrence.get("type") if isinstance(recurrence, dict) else recurrence
        return cls(
            id=str(data["id"]),
            owner_id=str(data["userId"]),
            destination=str(data["channelId"]),
            fire_at=parse_instant(data["remindAt"], zone),
            title=data.get("title") or None,
            recurrence=RecurrenceKind(kind or RecurrenceKind.NONE.value),
            triggered=bool(data.get("triggered", False)),
            revision=int(data.get("revision", 0)),
        )

    @classmethod
    def from_json(cls, raw: str, zone: pytz.BaseTzInfo) -> "ReminderRecord":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Reminder payload is not a JSON object")
        return cls.from_dict(data, zone)


def parse_instant(value: str, zone: pytz.BaseTzInfo) -> datetime:
    """Parse an ISO-8601 timestamp; naive and `Z` values are read as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed.astimezone(zone)
