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

"""Tests for recurrence advancement."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.models import RecurrenceKind
from reminders.recurrence import (
    advance_to_future,
    describe_recurrence,
    next_occurrence,
    parse_recurrence,
)

IST = pytz.timezone("Asia/Kolkata")
NEW_YORK = pytz.timezone("America/New_York")


class TestNextOccurrence:
    """Test single recurrence steps."""

    def test_simple_steps(self):
        start = IST.localize(datetime(2026, 3, 10, 9, 0))
        assert next_occurrence(start, RecurrenceKind.HOURLY, IST) == start + timedelta(hours=1)
        assert next_occurrence(start, RecurrenceKind.DAILY, IST) == start + timedelta(days=1)
        assert next_occurrence(start, RecurrenceKind.WEEKLY, IST) == start + timedelta(weeks=1)
        assert next_occurrence(start, RecurrenceKind.MONTHLY, IST) == IST.localize(datetime(2026, 4, 10, 9, 0))
        assert next_occurrence(start, RecurrenceKind.YEARLY, IST) == IST.localize(datetime(2027, 3, 10, 9, 0))

    def test_none_does_not_repeat(self):
        start = IST.localize(datetime(2026, 3, 10, 9, 0))
        assert next_occurrence(start, RecurrenceKind.NONE, IST) is None

    def test_weekday_skips_weekend(self):
        friday = IST.localize(datetime(2026, 3, 13, 9, 0))
        monday = next_occurrence(friday, RecurrenceKind.WEEKDAY, IST)
        assert monday == IST.localize(datetime(2026, 3, 16, 9, 0))
        assert monday.weekday() == 0

    def test_weekday_midweek(self):
        tuesday = IST.localize(datetime(2026, 3, 10, 9, 0))
        assert next_occurrence(tuesday, RecurrenceKind.WEEKDAY, IST) == IST.localize(
            datetime(2026, 3, 11, 9, 0)
        )

    def test_monthly_clamps_to_month_end(self):
        start = IST.localize(datetime(2026, 1, 31, 9, 0))
        assert next_occurrence(start, RecurrenceKind.MONTHLY, IST) == IST.localize(
            datetime(2026, 2, 28, 9, 0)
        )

    def test_yearly_from_leap_day(self):
        start = IST.localize(datetime(2028, 2, 29, 9, 0))
        assert next_occurrence(start, RecurrenceKind.YEARLY, IST) == IST.localize(
            datetime(2029, 2, 28, 9, 0)
        )

    def test_daily_keeps_wall_clock_across_dst(self):
        before = NEW_YORK.localize(datetime(2026, 3, 7, 9, 0))
        after = next_occurrence(before, RecurrenceKind.DAILY, NEW_YORK)
        assert (after.day, after.hour) == (8, 9)
        assert after - before == timedelta(hours=23)

    def test_hourly_is_absolute_across_dst(self):
        before = NEW_YORK.localize(datetime(2026, 3, 8, 1, 30))
        after = next_occurrence(before, RecurrenceKind.HOURLY, NEW_YORK)
        assert after - before == timedelta(hours=1)
        assert after.hour == 3


class TestAdvanceToFuture:
    """Test skipping past missed occurrences."""

    def test_skips_to_next_future_daily_boundary(self):
        fired = IST.localize(datetime(2026, 1, 1, 9, 0))
        now = fired + timedelta(days=50, hours=12)

        assert advance_to_future(fired, RecurrenceKind.DAILY, now, IST) == fired + timedelta(days=51)

    def test_strictly_after_now(self):
        fired = IST.localize(datetime(2026, 1, 1, 9, 0))
        now = fired + timedelta(days=3)

        assert advance_to_future(fired, RecurrenceKind.DAILY, now, IST) == fired + timedelta(days=4)

    def test_cap_exhausts(self):
        fired = IST.localize(datetime(2026, 1, 1, 9, 0))
        now = fired + timedelta(hours=10)

        assert advance_to_future(fired, RecurrenceKind.HOURLY, now, IST, max_iterations=3) is None

    def test_default_cap_covers_a_year_of_days(self):
        fired = IST.localize(datetime(2025, 1, 1, 9, 0))
        now = fired + timedelta(days=399, hours=1)

        assert advance_to_future(fired, RecurrenceKind.DAILY, now, IST) == fired + timedelta(days=400)
        assert advance_to_future(fired, RecurrenceKind.DAILY, now + timedelta(days=1), IST) is None

    def test_non_recurring_exhausts(self):
        fired = IST.localize(datetime(2026, 1, 1, 9, 0))
        assert advance_to_future(fired, RecurrenceKind.NONE, fired, IST) is None


class TestParseRecurrence:
    """Test recurrence option parsing."""

    def test_names_and_aliases(self):
        assert parse_recurrence("daily") is RecurrenceKind.DAILY
        assert parse_recurrence("Weekdays") is RecurrenceKind.WEEKDAY
        assert parse_recurrence("every  day") is RecurrenceKind.DAILY
        assert parse_recurrence(None) is RecurrenceKind.NONE
        assert parse_recurrence("") is RecurrenceKind.NONE
        assert parse_recurrence(RecurrenceKind.MONTHLY) is RecurrenceKind.MONTHLY

    def test_unknown_rejected(self):
        with pytest.raises(ValueError):
            parse_recurrence("fortnightly")

    def test_labels(self):
        assert describe_recurrence(RecurrenceKind.NONE) == "one-time"
        assert describe_recurrence(RecurrenceKind.WEEKDAY) == "weekday"
