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
PostgreSQL Reminder Store

Handles database operations for reminders. Lookups go through the primary
key, so nothing falls out of reach the way it does with the channel store.
"""

import logging
from typing import Optional

import asyncpg
import pytz

from .models import RecurrenceKind, ReminderRecord, StoreError
from .store import ReminderStore

logger = logging.getLogger("rme.reminders.pg_store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS reminders (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    destination TEXT NOT NULL,
    fire_at TIMESTAMPTZ NOT NULL,
    title TEXT,
    recurrence TEXT NOT NULL DEFAULT 'none',
    triggered BOOLEAN NOT NULL DEFAULT FALSE,
    revision INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS reminders_owner_idx ON reminders (owner_id);
"""

COLUMNS = "id, owner_id, destination, fire_at, title, recurrence, triggered, revision"

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgresReminderStore(ReminderStore):
    """
    Reminder store backed by PostgreSQL.

    The revision check for conditional updates happens inside the UPDATE
    statement, so it is atomic.
    """

    def __init__(self, db_pool: asyncpg.Pool, zone: pytz.BaseTzInfo):
        """
        Initialize the store.

        Args:
            db_pool: asyncpg connection pool
            zone: Fixed zone fire times are rendered in
        """
        self.db = db_pool
        self.zone = zone

    async def ensure_schema(self) -> None:
        """Create the reminders table if it does not exist."""
        try:
            await self.db.execute(SCHEMA)
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to create reminders schema: {e}") from e

    def _from_row(self, row) -> ReminderRecord:
        return ReminderRecord(
            id=row["id"],
            owner_id=row["owner_id"],
            destination=row["destination"],
            fire_at=row["fire_at"].astimezone(self.zone),
            title=row["title"],
            recurrence=RecurrenceKind(row["recurrence"]),
            triggered=row["triggered"],
            revision=row["revision"],
        )

    async def insert(self, record: ReminderRecord) -> None:
        try:
            await self.db.execute(
                """
                INSERT INTO reminders (
                    id, owner_id, destination, fire_at, title,
                    recurrence, triggered, revision
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                record.id,
                record.owner_id,
                record.destination,
                record.fire_at,
                record.title,
                record.recurrence.value,
                record.triggered,
                record.revision,
            )
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to insert reminder {record.id}: {e}") from e

        logger.info(f"Stored reminder {record.id} for user {record.owner_id}")

    async def find_by_id(
        self, reminder_id: str, owner_id: Optional[str] = None
    ) -> Optional[ReminderRecord]:
        try:
            row = await self.db.fetchrow(
                f"""
                SELECT {COLUMNS} FROM reminders
                WHERE id = $1 AND ($2::text IS NULL OR owner_id = $2)
                """,
                reminder_id,
                owner_id,
            )
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to fetch reminder {reminder_id}: {e}") from e

        return self._from_row(row) if row else None

    async def update(
        self, record: ReminderRecord, expected_revision: Optional[int] = None
    ) -> bool:
        try:
            result = await self.db.execute(
                """
                UPDATE reminders
                SET fire_at = $2,
                    triggered = $3,
                    revision = $4,
                    updated_at = NOW()
                WHERE id = $1 AND ($5::int IS NULL OR revision = $5)
                """,
                record.id,
                record.fire_at,
                record.triggered,
                record.revision,
                expected_revision,
            )
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to update reminder {record.id}: {e}") from e

        return result == "UPDATE 1"

    async def delete(self, reminder_id: str) -> bool:
        try:
            result = await self.db.execute(
                "DELETE FROM reminders WHERE id = $1",
                reminder_id,
            )
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to delete reminder {reminder_id}: {e}") from e

        return result == "DELETE 1"

    async def list_all(self) -> list[ReminderRecord]:
        try:
            rows = await self.db.fetch(
                f"SELECT {COLUMNS} FROM reminders ORDER BY fire_at ASC"
            )
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to list reminders: {e}") from e

        return [self._from_row(row) for row in rows]
