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
Recurrence Module

Computes the next occurrence of a repeating reminder. Calendar steps (day,
week, month, year) keep the wall-clock time in the fixed zone; hourly steps
add an absolute hour.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Union

import pytz
from dateutil.relativedelta import relativedelta

from .models import RecurrenceKind

logger = logging.getLogger("rme.reminders.recurrence")

DEFAULT_MAX_ITERATIONS = 400
WEEKDAY_GUARD = 7

CALENDAR_STEPS = {
    RecurrenceKind.DAILY: relativedelta(days=1),
    RecurrenceKind.WEEKLY: relativedelta(weeks=1),
    # relativedelta clamps Jan 31 + 1 month to the end of February
    RecurrenceKind.MONTHLY: relativedelta(months=1),
    RecurrenceKind.YEARLY: relativedelta(years=1),
}

RECURRENCE_ALIASES = {
    "": RecurrenceKind.NONE,
    "once": RecurrenceKind.NONE,
    "weekdays": RecurrenceKind.WEEKDAY,
    "every day": RecurrenceKind.DAILY,
    "every hour": RecurrenceKind.HOURLY,
    "every week": RecurrenceKind.WEEKLY,
}

RECURRENCE_LABELS = {
    RecurrenceKind.NONE: "one-time",
    RecurrenceKind.HOURLY: "hourly",
    RecurrenceKind.DAILY: "daily",
    RecurrenceKind.WEEKDAY: "weekday",
    RecurrenceKind.WEEKLY: "weekly",
    RecurrenceKind.MONTHLY: "monthly",
    RecurrenceKind.YEARLY: "yearly",
}


def parse_recurrence(value: Union[str, RecurrenceKind, None]) -> RecurrenceKind:
    """
    Parse a recurrence option.

    Args:
        value: Kind name ("daily"), alias ("weekdays"), or None

    Returns:
        The matching RecurrenceKind

    Raises:
        ValueError: If the value names no known recurrence
    """
    if value is None:
        return RecurrenceKind.NONE
    if isinstance(value, RecurrenceKind):
        return value

    key = " ".join(value.lower().split())
    if key in RECURRENCE_ALIASES:
        return RECURRENCE_ALIASES[key]
    try:
        return RecurrenceKind(key)
    except ValueError:
        raise ValueError(f"Unknown recurrence: '{value}'") from None


def describe_recurrence(kind: RecurrenceKind) -> str:
    """Short human-readable label for a recurrence kind."""
    return RECURRENCE_LABELS[kind]


def _step_wall_clock(current: datetime, step, zone: pytz.BaseTzInfo) -> datetime:
    wall_clock = current.astimezone(zone).replace(tzinfo=None)
    return zone.localize(wall_clock + step)


def next_occurrence(
    current: datetime, kind: RecurrenceKind, zone: pytz.BaseTzInfo
) -> Optional[datetime]:
    """
    Compute the occurrence after `current`.

    Args:
        current: Aware datetime of the last occurrence
        kind: Recurrence kind
        zone: Fixed zone whose wall clock calendar steps preserve

    Returns:
        Next occurrence, or None if the kind does not repeat
    """
    if kind is RecurrenceKind.NONE:
        return None

    if kind is RecurrenceKind.HOURLY:
        return zone.normalize(current.astimezone(zone) + timedelta(hours=1))

    if kind is RecurrenceKind.WEEKDAY:
        candidate = current
        for _ in range(WEEKDAY_GUARD):
            candidate = _step_wall_clock(candidate, timedelta(days=1), zone)
            if candidate.weekday() < 5:
                return candidate
        logger.warning(f"No weekday found within {WEEKDAY_GUARD} days of {current}")
        return None

    return _step_wall_clock(current, CALENDAR_STEPS[kind], zone)


def advance_to_future(
    current: datetime,
    kind: RecurrenceKind,
    now: datetime,
    zone: pytz.BaseTzInfo,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Optional[datetime]:
    """
    Step a recurrence forward until it lands strictly after `now`.

    Missed occurrences are skipped, not replayed.

    Returns:
        First occurrence after `now`, or None when the recurrence is
        exhausted (no next occurrence, or more than `max_iterations` steps)
    """
    candidate = current
    for _ in range(max_iterations):
        candidate = next_occurrence(candidate, kind, zone)
        if candidate is None:
            return None
        if candidate > now:
            return candidate

    logger.warning(
        f"Recurrence {kind.value} from {current.isoformat()} did not reach "
        f"{now.isoformat()} within {max_iterations} steps"
    )
    return None
