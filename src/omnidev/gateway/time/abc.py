"""Abstract clock used for lock and manifest timestamps."""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract interface for reading the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...

    def now_iso(self) -> str:
        """Return the current time as an ISO-8601 string with a Z suffix."""
        return self.now().replace(microsecond=0).isoformat().replace("+00:00", "Z")
