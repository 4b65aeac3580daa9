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
Reminder Configuration

Configurable parameters for the reminder scheduler and its storage.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

import pytz

from .time_parser import get_zone

STORE_BACKENDS = ("channel", "postgres", "memory")


@dataclass
class ReminderConfig:
    """Configuration for the reminder system."""

    # All reminders are read and shown in this zone
    timezone: str = "Asia/Kolkata"

    # Storage backend: channel, postgres or memory
    store_backend: str = "channel"
    storage_channel_id: Optional[int] = None
    database_url: Optional[str] = None

    # Channel store: how many recent messages a lookup scans
    scan_limit: int = 100

    # Recurrence steps tried before a reminder counts as exhausted
    max_advance_iterations: int = 400

    @property
    def zone(self) -> pytz.BaseTzInfo:
        return get_zone(self.timezone)

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        """Create config from environment variables with defaults."""
        channel_id = os.getenv("REMINDER_STORAGE_CHANNEL_ID")
        backend = os.getenv("REMINDER_STORE", "channel").lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"REMINDER_STORE must be one of {', '.join(STORE_BACKENDS)}, got '{backend}'"
            )

        return cls(
            timezone=os.getenv("REMINDER_TIMEZONE", "Asia/Kolkata"),
            store_backend=backend,
            storage_channel_id=int(channel_id) if channel_id else None,
            database_url=os.getenv("DATABASE_URL"),
            scan_limit=int(os.getenv("REMINDER_SCAN_LIMIT", "100")),
            max_advance_iterations=int(os.getenv("REMINDER_MAX_ADVANCE", "400")),
        )
