from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from points_service.app.repositories.memory_store import InMemoryPointsStore


class FixedClock:
    """테스트용 시계. advance 로 시간을 앞으로 돌린다."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryPointsStore:
    return InMemoryPointsStore()
