from __future__ import annotations

from datetime import UTC, datetime

import pytest

from drive_log.models import UserContext
from drive_log.store import SessionStore
from helpers import CHICAGO


@pytest.fixture
def chicago_user() -> UserContext:
    return UserContext(user_id="u1", latitude=CHICAGO[0], longitude=CHICAGO[1], tz_name="America/Chicago")


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def store(tmp_path, clock) -> SessionStore:
    return SessionStore(tmp_path / "drive_log.json", clock=clock)
