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
Reminder Store

Interface for durable reminder storage, plus an in-memory implementation
used by tests and local runs.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from .models import ReminderRecord

logger = logging.getLogger("rme.reminders.store")


class ReminderStore(ABC):
    """
    Durable mapping of reminder ID to reminder record.

    Implementations raise StoreError when the backend fails.
    """

    @abstractmethod
    async def insert(self, record: ReminderRecord) -> None:
        """Persist a new record."""

    @abstractmethod
    async def find_by_id(
        self, reminder_id: str, owner_id: Optional[str] = None
    ) -> Optional[ReminderRecord]:
        """
        Look up a record.

        Args:
            reminder_id: Reminder ID
            owner_id: If given, only match a record owned by this user

        Returns:
            The record, or None if not found (or not owned)
        """

    @abstractmethod
    async def update(
        self, record: ReminderRecord, expected_revision: Optional[int] = None
    ) -> bool:
        """
        Overwrite a record by ID.

        Args:
            record: New record contents
            expected_revision: If given, only write when the stored record
                still carries this revision

        Returns:
            True if written, False if missing or the revision moved on
        """

    @abstractmethod
    async def delete(self, reminder_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""

    @abstractmethod
    async def list_all(self) -> list[ReminderRecord]:
        """All records the store can reach."""


class InMemoryReminderStore(ReminderStore):
    """Dict-backed store. Not durable across restarts."""

    def __init__(self, records: Optional[list[ReminderRecord]] = None):
        self._records: dict[str, ReminderRecord] = {}
        for record in records or []:
            self._records[record.id] = replace(record)

    async def insert(self, record: ReminderRecord) -> None:
        self._records[record.id] = replace(record)

    async def find_by_id(
        self, reminder_id: str, owner_id: Optional[str] = None
    ) -> Optional[ReminderRecord]:
        record = self._records.get(reminder_id)
        if record is None:
            return None
        if owner_id is not None and record.owner_id != owner_id:
            return None
        return replace(record)

    async def update(
        self, record: ReminderRecord, expected_revision: Optional[int] = None
    ) -> bool:
        stored = self._records.get(record.id)
        if stored is None:
            return False
        if expected_revision is not None and stored.revision != expected_revision:
            return False
        self._records[record.id] = replace(record)
        return True

    async def delete(self, reminder_id: str) -> bool:
        return self._records.pop(reminder_id, None) is not None

    async def list_all(self) -> list[ReminderRecord]:
        return [replace(record) for record in self._records.values()]

    def __len__(self) -> int:
        return len(self._records)
