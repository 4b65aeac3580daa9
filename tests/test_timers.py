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

"""Tests for the live timer registry."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.timers import TimerRegistry


class FakeHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class TestTimerRegistry:
    """Test per-reminder timer bookkeeping."""

    def test_install_replaces_and_cancels_previous(self):
        registry = TimerRegistry()
        first, second = FakeHandle(), FakeHandle()

        registry.install("1", first)
        registry.install("1", second)

        assert len(registry) == 1
        assert first.cancelled is True
        assert second.cancelled is False
        assert registry.get("1") is second

    def test_install_distinct_ids(self):
        registry = TimerRegistry()
        registry.install("1", FakeHandle())
        registry.install("2", FakeHandle())
        assert len(registry) == 2
        assert "1" in registry and "2" in registry

    def test_cancel(self):
        registry = TimerRegistry()
        handle = FakeHandle()
        registry.install("1", handle)

        assert registry.cancel("1") is True
        assert handle.cancelled is True
        assert "1" not in registry
        assert registry.cancel("1") is False

    def test_remove_does_not_cancel(self):
        registry = TimerRegistry()
        handle = FakeHandle()
        registry.install("1", handle)

        assert registry.remove("1") is handle
        assert handle.cancelled is False
        assert registry.remove("1") is None

    def test_cancel_all(self):
        registry = TimerRegistry()
        handles = [FakeHandle() for _ in range(3)]
        for i, handle in enumerate(handles):
            registry.install(str(i), handle)

        assert registry.cancel_all() == 3
        assert len(registry) == 0
        assert all(handle.cancelled for handle in handles)
