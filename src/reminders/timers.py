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
Timer Registry

In-memory map of reminder ID to its live, cancellable timer. Never
persisted; rebuilt from the reminder store on startup.
"""

import logging
from typing import Optional, Protocol


logger = logging.getLogger("rme.reminders.timers")


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TimerRegistry:
    """Holds at most one live timer per reminder ID."""

    def __init__(self):
        self._handles: dict[str, Cancellable] = {}

    def install(self, reminder_id: str, handle: Cancellable) -> None:
        """Store a timer, cancelling any timer already held for the ID."""
        previous = self._handles.pop(reminder_id, None)
        if previous is not None:
            previous.cancel()
            logger.debug(f"Replaced timer for reminder {reminder_id}")
        self._handles[reminder_id] = handle

    def cancel(self, reminder_id: str) -> bool:
        """Cancel and forget a timer. Returns False if none was held."""
        handle = self._handles.pop(reminder_id, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def remove(self, reminder_id: str) -> Optional[Cancellable]:
        """Forget a timer that has already fired, without cancelling it."""
        return self._handles.pop(reminder_id, None)

    def cancel_all(self) -> int:
        count = len(self._handles)
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        return count

    def get(self, reminder_id: str) -> Optional[Cancellable]:
        return self._handles.get(reminder_id)

    def __contains__(self, reminder_id: object) -> bool:
        return reminder_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
