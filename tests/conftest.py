"""
Shared fixtures for Session Logger tests.
"""

from datetime import datetime, timedelta, timezone

import pytest


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock fixed at 2025-10-04T09:00:00Z."""
    return FixedClock(datetime(2025, 10, 4, 9, 0, 0, tzinfo=timezone.utc))
