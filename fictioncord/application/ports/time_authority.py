"""Time authority port.

Every deadline, reminder window and turn timestamp in a story session is
measured against this clock. Services receive it by injection and never
call datetime.now() themselves, so tests can drive the scheduler through
whole phases with a controllable clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract clock.

    For production:
        Use SystemTimeAuthority from fictioncord.application.services.

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime (UTC)."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return the current UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds.

        Only differences between values are meaningful. Used for
        measuring how long a scheduler tick took.
        """
        ...
