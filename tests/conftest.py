"""Shared fixtures for familycal tests."""

from collections.abc import Generator
from datetime import datetime
from typing import Any, Callable

import pytest

from familycal.models import CalendarConfig, EventTemplate

_FAMILYCAL_ENV_KEYS = [
    "FAMILYCAL_DEBUG",
    "FAMILYCAL_LOG_LEVEL",
    "FAMILYCAL_MAX_ITERATIONS",
    "FAMILYCAL_SEARCH_WINDOW_DAYS",
    "FAMILYCAL_BROWSE_PADDING_DAYS",
    "FAMILYCAL_NOTIFY_LOOKAHEAD_HOURS",
    "FAMILYCAL_CACHE_SIZE",
    "FAMILYCAL_NOTIFIED_STORE",
]


def pytest_configure(config: Any) -> None:
    """Register markers used across the suite."""
    config.addinivalue_line("markers", "unit: Fast unit tests")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure familycal environment variables don't leak between tests."""
    for key in _FAMILYCAL_ENV_KEYS:
        # setenv first so teardown also removes values written by .env loading
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    yield


@pytest.fixture
def make_template() -> Callable[..., EventTemplate]:
    """Factory for event templates with sensible defaults.

    Defaults to a one-hour, non-repeating event on 2025-01-06 (a Monday)
    at 09:00 in the "family" calendar.
    """

    def _make(**overrides: Any) -> EventTemplate:
        fields: dict[str, Any] = {
            "id": "evt-1",
            "title": "Swimming lesson",
            "start": datetime(2025, 1, 6, 9, 0),
            "end": datetime(2025, 1, 6, 10, 0),
            "calendar_id": "family",
            "color": "#3b82f6",
        }
        fields.update(overrides)
        return EventTemplate(**fields)

    return _make


@pytest.fixture
def calendars() -> list[CalendarConfig]:
    return [
        CalendarConfig(id="family", label="Familia", color="#3b82f6"),
        CalendarConfig(id="school", label="Escuela", color="#22c55e"),
        CalendarConfig(id="work", label="Trabajo", color="#ef4444", visible=False),
    ]
