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
Reminder Scheduler Module

Creates, fires, snoozes and cancels reminders, keeping the in-memory timers
consistent with the reminder store. Each live reminder owns one asyncio
timer; on startup `reconcile` rebuilds the timers from the store.

Concurrent writes are resolved with the record's revision: a fire handler
only commits its post-fire update when the stored revision still matches the
one its timer was scheduled with, so a snooze or cancel that lands while a
reminder is firing always wins.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

import pytz

from .models import (
    CreateError,
    RecurrenceKind,
    ReminderNotFoundError,
    ReminderRecord,
    StoreError,
    StoreUnavailableError,
    TimeInPastError,
    UnparsableTimeError,
)
from .notifier import SNOOZE, NotificationSink, ReminderAction, build_actions, compose_message
from .recurrence import DEFAULT_MAX_ITERATIONS, advance_to_future, parse_recurrence
from .store import ReminderStore
from .time_parser import TimeExpressionParser, TimeParseError
from .timers import TimerRegistry

logger = logging.getLogger("rme.reminders.scheduler")


@dataclass
class ReconcileResult:
    """What a startup reconciliation did."""

    scheduled: int = 0
    advanced: int = 0
    deleted: int = 0
    failed: int = 0


class ReminderScheduler:
    """
    The reminder state machine.

    A reminder is pending until its timer fires, then is either advanced to
    its next occurrence (recurring) or marked triggered (one-time). Cancel
    deletes it at any point; snooze moves it to a new time and re-arms it.
    """

    def __init__(
        self,
        store: ReminderStore,
        sink: NotificationSink,
        zone: pytz.BaseTzInfo,
        parser: Optional[TimeExpressionParser] = None,
        registry: Optional[TimerRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_advance_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        """
        Initialize the reminder scheduler.

        Args:
            store: Durable reminder storage
            sink: Delivers fired reminders
            zone: Fixed zone all reminder times live in
            parser: Time phrase parser (defaults to one for `zone`)
            registry: Live timer registry (defaults to a fresh one)
            clock: Returns the current aware time (defaults to the wall clock)
            max_advance_iterations: Recurrence steps before giving up
        """
        self.store = store
        self.sink = sink
        self.zone = zone
        self.parser = parser or TimeExpressionParser(zone)
        self.registry = registry if registry is not None else TimerRegistry()
        self._clock = clock or (lambda: datetime.now(zone))
        self.max_advance_iterations = max_advance_iterations
        self._fire_tasks: set[asyncio.Task] = set()
        self._last_id = 0

    def now(self) -> datetime:
        return self._clock().astimezone(self.zone)

    @property
    def live_timers(self) -> int:
        return len(self.registry)

    def _new_id(self) -> str:
        # Millisecond creation stamp, bumped if two reminders share a tick
        stamp = int(self.now().timestamp() * 1000)
        if stamp <= self._last_id:
            stamp = self._last_id + 1
        self._last_id = stamp
        return str(stamp)

    def _add_day(self, instant: datetime) -> datetime:
        wall_clock = instant.astimezone(self.zone).replace(tzinfo=None)
        return self.zone.localize(wall_clock + timedelta(days=1))

    # =========================================================================
    # Creation
    # =========================================================================

    def resolve_fire_time(self, raw_time: str, reference: datetime) -> datetime:
        """
        Resolve a time phrase to a future fire time.

        A time of day that already passed today ("9am" asked at 9:30am)
        rolls over to tomorrow.

        Raises:
            UnparsableTimeError: The phrase holds no time
            TimeInPastError: The time is in the past even after rolling over
        """
        try:
            fire_at = self.parser.parse(raw_time, reference)
        except TimeParseError as e:
            raise UnparsableTimeError(str(e)) from e

        if fire_at <= reference:
            fire_at = self._add_day(fire_at)

        if fire_at <= self.now():
            raise TimeInPastError(
                f"'{raw_time}' is in the past. Please enter a future time."
            )
        return fire_at

    async def create(
        self,
        owner_id: Union[int, str],
        destination: Union[int, str],
        raw_time: str,
        title: Optional[str] = None,
        recurrence: Union[str, RecurrenceKind, None] = None,
    ) -> ReminderRecord:
        """
        Create, persist and arm a reminder.

        Args:
            owner_id: Requesting user
            destination: Channel the reminder is delivered to
            raw_time: Time phrase ("in 10 mins", "tomorrow at 3pm")
            title: Optional label shown when it fires
            recurrence: Optional recurrence kind or alias

        Returns:
            The stored record (its ID and fire time feed the acknowledgement)

        Raises:
            UnparsableTimeError, TimeInPastError, StoreUnavailableError
        """
        try:
            kind = parse_recurrence(recurrence)
        except ValueError as e:
            raise CreateError(str(e)) from e

        reference = self.now()
        fire_at = self.resolve_fire_time(raw_time, reference)

        record = ReminderRecord(
            id=self._new_id(),
            owner_id=str(owner_id),
            destination=str(destination),
            fire_at=fire_at,
            title=title or None,
            recurrence=kind,
        )

        try:
            await self.store.insert(record)
        except StoreError as e:
            logger.error(f"Could not store reminder for user {owner_id}: {e}")
            raise StoreUnavailableError(
                "Storage is not available. Cannot set reminder."
            ) from e

        self.schedule(record)
        logger.info(
            f"Created reminder {record.id} for user {record.owner_id}: "
            f"fire_at={record.fire_at.isoformat()}, recurrence={kind.value}"
        )
        return record

    # =========================================================================
    # Timers
    # =========================================================================

    def schedule(self, record: ReminderRecord) -> bool:
        """
        Arm the timer for a record, replacing any timer it already has.

        Returns:
            False if the fire time is not in the future (nothing armed)
        """
        delay = (record.fire_at - self.now()).total_seconds()
        if delay <= 0:
            return False

        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._on_timer, record)
        self.registry.install(record.id, handle)
        logger.debug(f"Armed reminder {record.id} to fire in {delay:.1f}s")
        return True

    def _on_timer(self, record: ReminderRecord) -> None:
        # The handle has consumed itself; forget it before anything can re-arm
        self.registry.remove(record.id)
        task = asyncio.get_running_loop().create_task(self.fire(record))
        self._fire_tasks.add(task)
        task.add_done_callback(self._on_fire_done)

    def _on_fire_done(self, task: asyncio.Task) -> None:
        self._fire_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Reminder fire handler crashed: {error}", exc_info=error)

    async def fire(self, record: ReminderRecord) -> None:
        """
        Deliver a due reminder, then advance or retire it.

        Args:
            record: The record as it was when its timer was armed
        """
        try:
            await self.sink.deliver(
                record.destination, compose_message(record), build_actions(record.id)
            )
            logger.info(f"Delivered reminder {record.id} to {record.destination}")
        except Exception as e:
            # Best effort: the reminder still counts as fired
            logger.error(f"Failed to deliver reminder {record.id}: {e}", exc_info=True)

        try:
            current = await self.store.find_by_id(record.id)
        except StoreError as e:
            logger.error(f"Could not re-read reminder {record.id} after firing: {e}")
            return

        if current is None:
            logger.info(f"Reminder {record.id} was deleted before it fired")
            return

        if current.revision != record.revision:
            logger.info(
                f"Reminder {record.id} changed while firing "
                f"(revision {record.revision} -> {current.revision}), leaving it"
            )
            return

        settled, rearm = self._settle(current)
        try:
            written = await self.store.update(settled, expected_revision=current.revision)
        except StoreError as e:
            logger.error(f"Could not update reminder {record.id} after firing: {e}")
            return

        if not written:
            logger.info(f"Reminder {record.id} changed before its post-fire update")
            return

        if rearm:
            self.schedule(settled)
            logger.info(f"Reminder {record.id} rescheduled for {settled.fire_at.isoformat()}")

    def _settle(self, record: ReminderRecord) -> tuple[ReminderRecord, bool]:
        """Post-fire state of a record, and whether it needs a new timer."""
        if record.is_recurring:
            next_at = advance_to_future(
                record.fire_at,
                record.recurrence,
                self.now(),
                self.zone,
                self.max_advance_iterations,
            )
            if next_at is not None:
                return record.evolve(fire_at=next_at, triggered=False), True
            logger.info(f"Recurrence of reminder {record.id} is exhausted")

        return record.evolve(triggered=True), False

    # =========================================================================
    # User actions
    # =========================================================================

    async def get(
        self, reminder_id: str, owner_id: Union[int, str, None] = None
    ) -> Optional[ReminderRecord]:
        """Look up a reminder, optionally only if the user owns it."""
        owner = str(owner_id) if owner_id is not None else None
        return await self.store.find_by_id(reminder_id, owner_id=owner)

    async def snooze(
        self, reminder_id: str, owner_id: Union[int, str], duration: timedelta
    ) -> datetime:
        """
        Push a reminder to now + duration and re-arm it.

        Works on pending and already-fired reminders alike.

        Returns:
            The new fire time

        Raises:
            ReminderNotFoundError: No such reminder for this user
        """
        record = await self.get(reminder_id, owner_id)
        if record is None:
            raise ReminderNotFoundError(reminder_id)

        wall_clock = self.now().replace(tzinfo=None) + duration
        new_fire_at = self.zone.localize(wall_clock)

        updated = record.evolve(fire_at=new_fire_at, triggered=False)
        if not await self.store.update(updated):
            raise ReminderNotFoundError(reminder_id)

        self.schedule(updated)
        logger.info(
            f"Snoozed reminder {reminder_id} for user {owner_id} until {new_fire_at.isoformat()}"
        )
        return new_fire_at

    async def cancel(self, reminder_id: str, owner_id: Union[int, str]) -> None:
        """
        Cancel (delete) a reminder if the user owns it.

        Raises:
            ReminderNotFoundError: No such reminder for this user
            StoreError: The delete failed; the timer is left armed
        """
        record = await self.get(reminder_id, owner_id)
        if record is None:
            raise ReminderNotFoundError(reminder_id)

        # Delete first: if the store fails, the reminder keeps its timer
        await self.store.delete(reminder_id)
        self.registry.cancel(reminder_id)
        logger.info(f"Cancelled reminder {reminder_id} for user {owner_id}")

    async def handle_action(
        self, action: ReminderAction, owner_id: Union[int, str]
    ) -> Optional[datetime]:
        """
        Route a button press to snooze or cancel.

        Returns:
            The new fire time for a snooze, None for a cancel
        """
        if action.kind == SNOOZE:
            return await self.snooze(action.reminder_id, owner_id, action.duration)
        await self.cancel(action.reminder_id, owner_id)
        return None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def reconcile(self) -> ReconcileResult:
        """
        Rebuild timers from the store after a restart.

        Future reminders are re-armed. Recurring reminders that came due while
        the bot was down skip ahead to their next future occurrence; one-time
        reminders in the past are deleted.
        """
        result = ReconcileResult()
        try:
            records = await self.store.list_all()
        except StoreError as e:
            logger.error(f"Error fetching reminders from storage: {e}")
            return result

        now = self.now()
        for record in records:
            try:
                await self._reconcile_record(record, now, result)
            except StoreError as e:
                result.failed += 1
                logger.error(f"Failed to reconcile reminder {record.id}: {e}")

        logger.info(
            f"Reconciled {len(records)} reminder(s): {result.scheduled} scheduled, "
            f"{result.advanced} advanced, {result.deleted} deleted, {result.failed} failed"
        )
        return result

    async def _reconcile_record(
        self, record: ReminderRecord, now: datetime, result: ReconcileResult
    ) -> None:
        if record.fire_at > now:
            self.schedule(record)
            result.scheduled += 1
            return

        if record.is_recurring:
            next_at = advance_to_future(
                record.fire_at,
                record.recurrence,
                now,
                self.zone,
                self.max_advance_iterations,
            )
            if next_at is not None:
                advanced = record.evolve(fire_at=next_at, triggered=False)
                if await self.store.update(advanced, expected_revision=record.revision):
                    self.schedule(advanced)
                    result.advanced += 1
                else:
                    logger.info(f"Reminder {record.id} changed during reconcile, skipped")
                return

        await self.store.delete(record.id)
        result.deleted += 1
        logger.debug(f"Deleted elapsed reminder {record.id}")

    async def stop(self) -> None:
        """Cancel every live timer and any reminder still being delivered."""
        cancelled = self.registry.cancel_all()
        tasks = list(self._fire_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Reminder scheduler stopped ({cancelled} timer(s) cancelled)")
