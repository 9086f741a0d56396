"""Shared fixtures for eventcal_lite tests."""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from typing import Any

import pytest

from eventcal_lite.calendar.lite_models import EventTemplate
from eventcal_lite.domain.event_store import InMemoryEventStore


def pytest_configure(config: Any) -> None:
    """Register markers used across the suite."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests spanning the HTTP layer")


@pytest.fixture
def make_template() -> Callable[..., EventTemplate]:
    """Factory for event templates with one-hour default duration.

    Keyword arguments override any template field; ``start`` and
    ``duration`` are shortcuts for start_date / end_date.
    """
    counter = {"n": 0}

    def _make(
        start: datetime = datetime(2025, 1, 1, 9, 0),
        duration: timedelta = timedelta(hours=1),
        **overrides: Any,
    ) -> EventTemplate:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"evt-{counter['n']}",
            "user_id": "user-1",
            "title": f"Event {counter['n']}",
            "start_date": start,
            "end_date": start + duration,
        }
        data.update(overrides)
        return EventTemplate.model_validate(data)

    return _make


@pytest.fixture
def memory_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear eventcal environment overrides before and after each test."""
    for key in ("EVENTCAL_TEST_TIME", "EVENTCAL_DEBUG", "EVENTCAL_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    yield
