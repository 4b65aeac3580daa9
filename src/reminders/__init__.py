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
Reminders Package

Natural-language reminders with recurrence, snooze and cancel, scheduled
in one fixed timezone.
"""

from .config import ReminderConfig
from .models import (
    CreateError,
    RecurrenceKind,
    ReminderError,
    ReminderNotFoundError,
    ReminderRecord,
    StoreError,
    StoreUnavailableError,
    TimeInPastError,
    UnparsableTimeError,
)
from .notifier import NotificationSink, ReminderAction, build_actions, compose_message
from .recurrence import (
    advance_to_future,
    describe_recurrence,
    next_occurrence,
    parse_recurrence,
)
from .scheduler import ReconcileResult, ReminderScheduler
from .store import InMemoryReminderStore, ReminderStore
from .time_parser import (
    TimeExpressionParser,
    TimeParseError,
    normalize_time_expression,
    validate_timezone,
)
from .timers import TimerRegistry

__all__ = [
    "ReminderConfig",
    "CreateError",
    "RecurrenceKind",
    "ReminderError",
    "ReminderNotFoundError",
    "ReminderRecord",
    "StoreError",
    "StoreUnavailableError",
    "TimeInPastError",
    "UnparsableTimeError",
    "NotificationSink",
    "ReminderAction",
    "build_actions",
    "compose_message",
    "advance_to_future",
    "describe_recurrence",
    "next_occurrence",
    "parse_recurrence",
    "ReconcileResult",
    "ReminderScheduler",
    "InMemoryReminderStore",
    "ReminderStore",
    "TimeExpressionParser",
    "TimeParseError",
    "normalize_time_expression",
    "validate_timezone",
    "TimerRegistry",
]
