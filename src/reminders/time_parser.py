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
Time Parser Module

Parses natural language time expressions ("in 10 mins", "tomorrow at 10am",
"tonight") into an aware datetime in the bot's fixed timezone.

Parsing happens in three steps:
1. Normalize the raw text (spacing, unit abbreviations, colloquial phrases)
2. Resolve the phrase with dateparser against the reference time
3. Fill in the time-of-day parts the user did not state, then express the
   result in the fixed zone
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import dateparser
import pytz

from .models import ReminderError

logger = logging.getLogger("rme.reminders.time_parser")

HOUR = "hour"
MINUTE = "minute"
SECOND = "second"
ALL_TIME_COMPONENTS = frozenset({HOUR, MINUTE, SECOND})

_WHITESPACE = re.compile(r"\s+")
_LETTER_THEN_DIGIT = re.compile(r"(?<=[a-z])(?=\d)")
# Ordinal suffixes ("5th", "21st") stay attached to their number
_DIGIT_THEN_LETTER = re.compile(r"(?<=\d)(?!(?:st|nd|rd|th)\b)(?=[a-z])")

# Abbreviations dateparser does not reliably understand
UNIT_ALIASES = [
    (re.compile(r"\bmins\b"), "minutes"),
    (re.compile(r"\bmin\b"), "minute"),
    (re.compile(r"\bhrs\b"), "hours"),
    (re.compile(r"\bhr\b"), "hour"),
    (re.compile(r"\bsecs\b"), "seconds"),
    (re.compile(r"\bsec\b"), "second"),
    (re.compile(r"(?<=\d) h\b"), " hours"),
]

# (phrase, day word, default time); longer phrases first
COLLOQUIAL_PHRASES = [
    ("tomorrow morning", "tomorrow", "9 am"),
    ("tomorrow afternoon", "tomorrow", "3 pm"),
    ("tomorrow evening", "tomorrow", "7 pm"),
    ("tomorrow night", "tomorrow", "9 pm"),
    ("this morning", "today", "9 am"),
    ("this afternoon", "today", "3 pm"),
    ("this evening", "today", "7 pm"),
    ("this night", "today", "9 pm"),
    ("tonight", "today", "9 pm"),
]

# Time following a colloquial phrase: clock reading, optional meridiem
_FOLLOWING_TIME = r"\s+(?:at\s+)?(\d{1,2}(?::\d{2}){0,2})(\s*(?:am|pm)\b)?"
_NOON_MIDNIGHT = re.compile(r"(?:\bat\s+)?\b(noon|midnight)\b")
# dateparser reads a bare "at 9" as a month
_BARE_AT_HOUR = re.compile(r"\bat\s+(\d{1,2})\b(?!:\d|\s*(?:am|pm)\b)")

_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
PHRASE_ALIASES = [
    (re.compile(rf"\bnext\s+({_WEEKDAYS})\b"), r"\1"),
    (re.compile(r"\bhalf an? hour\b"), "30 minutes"),
]

_CLOCK_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?(?::(\d{2}))?\s*(?:am|pm)\b")
_COLON_TIME = re.compile(r"\b\d{1,2}:\d{2}(:\d{2})?\b")
_RELATIVE_TIME = re.compile(
    r"\b(?:\d+|an?|one)\s+(?:hours?|minutes?|seconds?)\b"
)
_NOW = re.compile(r"\bnow\b")


class TimeParseError(ReminderError):
    """Raised when a time expression cannot be parsed."""

    pass


@dataclass(frozen=True)
class GrammarResult:
    """What the date grammar made of a phrase."""

    moment: datetime  # naive wall clock, or aware when offset_certain
    certain: frozenset  # time components stated in the text
    offset_certain: bool


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone name is valid.

    Args:
        tz_name: IANA timezone name (e.g., "Asia/Kolkata")

    Returns:
        True if valid, False otherwise
    """
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def get_zone(tz_name: str) -> pytz.BaseTzInfo:
    """Resolve a timezone name, falling back to UTC when it is unknown."""
    if not validate_timezone(tz_name):
        logger.warning(f"Invalid timezone '{tz_name}', falling back to UTC")
        return pytz.UTC
    return pytz.timezone(tz_name)


def _rewrite_noon_midnight(text: str) -> str:
    match = _NOON_MIDNIGHT.search(text)
    if match:
        clock = "12 pm" if match.group(1) == "noon" else "12 am"
        prefix = text[: match.start()].strip()
        replacement = f"at {clock}" if prefix else f"today at {clock}"
        text = text[: match.start()] + replacement + text[match.end():]
    return text


def _rewrite_colloquial(text: str) -> str:
    for phrase, day, default_time in COLLOQUIAL_PHRASES:
        pattern = r"\b" + phrase + r"\b"
        default_meridiem = default_time.split()[1]

        # An explicit time after the phrase wins over the default hour; a
        # 12-hour reading without am/pm borrows the phrase's meridiem
        def with_time(match: re.Match) -> str:
            clock, meridiem = match.group(1), match.group(2)
            if meridiem is None and 1 <= int(clock.split(":")[0]) <= 12:
                meridiem = f" {default_meridiem}"
            return f"{day} at {clock}{meridiem or ''}"

        text = re.sub(pattern + _FOLLOWING_TIME, with_time, text)
        text = re.sub(pattern, f"{day} at {default_time}", text)
    return text


def _rewrite_bare_hour(match: re.Match) -> str:
    hour = int(match.group(1))
    return f"at {hour}:00" if hour <= 23 else match.group(0)


def normalize_time_expression(raw_text: str) -> str:
    """
    Normalize a free-text time phrase before handing it to the grammar.

    "In10mins" becomes "in 10 minutes", "tonight" becomes "today at 9 pm",
    "tonight at 8" becomes "today at 8 pm" and a bare "at 9" becomes
    "at 9:00".
    """
    text = _WHITESPACE.sub(" ", raw_text.strip().lower())
    text = _LETTER_THEN_DIGIT.sub(" ", text)
    text = _DIGIT_THEN_LETTER.sub(" ", text)
    for pattern, replacement in UNIT_ALIASES + PHRASE_ALIASES:
        text = pattern.sub(replacement, text)
    text = _rewrite_noon_midnight(text)
    text = _rewrite_colloquial(text)
    text = _BARE_AT_HOUR.sub(_rewrite_bare_hour, text)
    return _WHITESPACE.sub(" ", text).strip()


def explicit_components(text: str) -> frozenset:
    """
    Work out which time-of-day components a normalized phrase states.

    Relative offsets in hours/minutes/seconds pin the whole time of day;
    a clock reading pins as much as it spells out ("9 am" pins the hour,
    "9:30 am" the hour and minute).
    """
    if _RELATIVE_TIME.search(text) or _NOW.search(text):
        return ALL_TIME_COMPONENTS

    match = _CLOCK_TIME.search(text)
    if match:
        certain = {HOUR}
        if match.group(2):
            certain.add(MINUTE)
        if match.group(3):
            certain.add(SECOND)
        return frozenset(certain)

    match = _COLON_TIME.search(text)
    if match:
        return ALL_TIME_COMPONENTS if match.group(1) else frozenset({HOUR, MINUTE})

    return frozenset()


class DateGrammar:
    """Natural-language date grammar backed by dateparser."""

    def __init__(self, languages: tuple = ("en",)):
        self.languages = list(languages)

    def resolve(self, text: str, reference: datetime) -> Optional[GrammarResult]:
        """
        Resolve a normalized phrase relative to a reference time.

        Args:
            text: Normalized time phrase
            reference: Aware reference time, already in the fixed zone

        Returns:
            GrammarResult, or None if the phrase holds no date
        """
        settings = {
            "PREFER_DATES_FROM": "future",
            # Relative phrases are computed on the fixed zone's wall clock
            "RELATIVE_BASE": reference.replace(tzinfo=None),
        }
        parsed = dateparser.parse(text, languages=self.languages, settings=settings)
        if parsed is None:
            return None

        return GrammarResult(
            moment=parsed,
            certain=explicit_components(text),
            offset_certain=parsed.tzinfo is not None,
        )


class TimeExpressionParser:
    """
    Turns time phrases into instants in a single fixed timezone.

    Date-only phrases ("next friday") keep the reference's time of day; a
    stated hour without minutes fires on the hour.
    """

    def __init__(self, zone: pytz.BaseTzInfo, grammar: Optional[DateGrammar] = None):
        self.zone = zone
        self.grammar = grammar or DateGrammar()

    def parse(self, raw_text: str, reference: datetime) -> datetime:
        """
        Parse a time phrase.

        Args:
            raw_text: What the user typed (e.g., "tomorrow at 10am")
            reference: Aware "now" the phrase is relative to

        Returns:
            Aware datetime in the fixed zone

        Raises:
            TimeParseError: If no date can be found in the phrase
        """
        text = normalize_time_expression(raw_text)
        if not text:
            raise TimeParseError("Empty time expression")

        local_reference = reference.astimezone(self.zone)
        result = self.grammar.resolve(text, local_reference)
        if result is None:
            raise TimeParseError(
                f"Could not parse time expression: '{raw_text}'. "
                "Try formats like 'in 10 mins', 'at 22:45' or 'tomorrow at 3pm'."
            )

        if result.offset_certain:
            # Absolute instant: fill in its own offset, then re-render it in
            # the zone so half-hour zones keep the stated instant
            moment_reference = local_reference.astimezone(result.moment.tzinfo)
            filled = self._fill_time_of_day(result.moment, result.certain, moment_reference)
            resolved = filled.astimezone(self.zone)
        else:
            # Naive reading: it is already the zone's wall clock
            wall_clock = self._fill_time_of_day(
                result.moment.replace(tzinfo=None), result.certain, local_reference
            )
            resolved = self.zone.localize(wall_clock)
        logger.debug(f"Parsed '{raw_text}' as '{text}' -> {resolved.isoformat()}")
        return resolved

    @staticmethod
    def _fill_time_of_day(
        wall_clock: datetime, certain: frozenset, reference: datetime
    ) -> datetime:
        if HOUR not in certain:
            return wall_clock.replace(
                hour=reference.hour,
                minute=reference.minute,
                second=reference.second,
            )
        if MINUTE not in certain:
            return wall_clock.replace(minute=0, second=0, microsecond=0)
        if SECOND not in certain:
            return wall_clock.replace(second=0, microsecond=0)
        return wall_clock
