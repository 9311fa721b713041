"""Fake clock for testing."""

from datetime import UTC, datetime, timedelta

from omnidev.gateway.time.abc import Time


class FakeTime(Time):
    """Clock frozen at a configurable instant.

    Tests advance it explicitly with advance() to observe timestamp changes.
    """

    def __init__(self, current: datetime | None = None) -> None:
        self._current = current or datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current = self._current + timedelta(seconds=seconds)
