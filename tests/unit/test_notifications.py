"""Unit tests for familycal.notifications."""

from datetime import datetime, timedelta

import pytest

from familycal.instance_ids import make_instance_id
from familycal.notifications import (
    NotificationScanner,
    Reminder,
    due_reminders,
    reminder_key,
)
from familycal.notified_store import NotifiedStore

pytestmark = pytest.mark.unit


class TestDueReminders:
    def test_default_offset_fires_at_start(self, make_template) -> None:
        event = make_template()
        assert due_reminders([event], datetime(2025, 1, 6, 8, 59)) == []
        due = due_reminders([event], datetime(2025, 1, 6, 9, 0))
        assert [r.minutes_before for r in due] == [0]

    def test_configured_offsets(self, make_template) -> None:
        event = make_template(reminder_minutes=[30, 10, 10])
        due = due_reminders([event], datetime(2025, 1, 6, 8, 50))
        assert [r.minutes_before for r in due] == [10, 30]

    def test_started_events_are_not_reminded(self, make_template) -> None:
        assert due_reminders([make_template()], datetime(2025, 1, 6, 9, 1)) == []

    def test_negative_offsets_ignored(self, make_template) -> None:
        event = make_template(reminder_minutes=[-5])
        assert due_reminders([event], datetime(2025, 1, 6, 9, 0)) == []

    def test_reminder_key_and_trigger(self, make_template) -> None:
        reminder = Reminder(make_template(), 15)
        assert reminder.key == reminder_key("evt-1", 15) == "evt-1:15"
        assert reminder.trigger_at == datetime(2025, 1, 6, 8, 45)


class TestNotificationScanner:
    def test_announces_each_reminder_once(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [make_template(recurrence="daily", reminder_minutes=[15])]
        now = datetime(2025, 1, 20, 8, 50)

        first = scanner.scan(templates, now)
        assert [r.key for r in first] == [
            f"{make_instance_id('evt-1', datetime(2025, 1, 20, 9))}:15"
        ]
        assert scanner.scan(templates, now + timedelta(minutes=5)) == []

    def test_next_occurrence_is_announced_separately(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [make_template(recurrence="daily", reminder_minutes=[15])]
        scanner.scan(templates, datetime(2025, 1, 20, 8, 50))

        next_day = scanner.scan(templates, datetime(2025, 1, 21, 8, 50))
        assert len(next_day) == 1
        assert next_day[0].event.start == datetime(2025, 1, 21, 9)

    def test_deleted_templates_ignored(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [make_template(deleted_at=datetime(2025, 1, 1))]
        assert scanner.scan(templates, datetime(2025, 1, 6, 9, 0)) == []

    def test_pending_does_not_record(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [make_template()]
        now = datetime(2025, 1, 6, 9, 0)
        assert len(scanner.pending(templates, now)) == 1
        assert len(scanner.pending(templates, now)) == 1

    def test_results_ordered_by_trigger_time(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [
            make_template(id="late", start=datetime(2025, 1, 6, 9, 30), end=datetime(2025, 1, 6, 10), reminder_minutes=[40]),
            make_template(id="early", reminder_minutes=[60]),
        ]
        reminders = scanner.scan(templates, datetime(2025, 1, 6, 8, 55))
        assert [r.event.id for r in reminders] == ["early", "late"]

    def test_persistent_store_survives_restart(self, make_template, tmp_path) -> None:
        path = tmp_path / "notified.json"
        templates = [make_template()]
        now = datetime(2025, 1, 6, 9, 0)

        assert len(NotificationScanner(NotifiedStore(path)).scan(templates, now)) == 1
        assert NotificationScanner(NotifiedStore(path)).scan(templates, now) == []

    def test_from_settings(self, tmp_path) -> None:
        scanner = NotificationScanner.from_settings(
            {
                "notify_lookahead_hours": 6,
                "notified_store_path": str(tmp_path / "n.json"),
                "max_iterations": 50,
            }
        )
        assert scanner.lookahead == timedelta(hours=6)
        assert scanner.store.path == tmp_path / "n.json"
        assert scanner.config.max_iterations_per_template == 50


class TestLongReminderOffsets:
    def test_week_before_reminder_fires_on_time(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [
            make_template(start=datetime(2025, 1, 13, 9), end=datetime(2025, 1, 13, 10), reminder_minutes=[10080])
        ]

        assert scanner.scan(templates, datetime(2025, 1, 6, 8, 30)) == []
        due = scanner.scan(templates, datetime(2025, 1, 6, 9, 0))
        assert [r.key for r in due] == ["evt-1:10080"]
        assert due[0].trigger_at == datetime(2025, 1, 6, 9, 0)

    def test_week_before_reminder_is_not_repeated(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [
            make_template(start=datetime(2025, 1, 13, 9), end=datetime(2025, 1, 13, 10), reminder_minutes=[10080])
        ]
        scanner.scan(templates, datetime(2025, 1, 6, 9, 0))

        # Well past the default retention, but before and at the event start.
        assert scanner.scan(templates, datetime(2025, 1, 10, 9, 0)) == []
        assert scanner.scan(templates, datetime(2025, 1, 13, 9, 0)) == []

    def test_horizon_widens_to_longest_offset(self, make_template) -> None:
        scanner = NotificationScanner()
        templates = [make_template(reminder_minutes=[10, 2880]), make_template(id="b")]
        assert scanner.horizon(templates) == timedelta(days=2)
        assert scanner.horizon([make_template()]) == timedelta(hours=24)


class TestScannerSettings:
    @pytest.mark.parametrize("value,expected", [("soon", 24), (None, 24), (0, 1), ("12", 12)])
    def test_bad_lookahead_falls_back(self, value, expected: int) -> None:
        scanner = NotificationScanner.from_settings({"notify_lookahead_hours": value})
        assert scanner.lookahead == timedelta(hours=expected)
