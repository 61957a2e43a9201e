from datetime import date, datetime, timedelta

import pytest
import pytz

from models import MeasurementEntry
from storage import InMemoryEntryStore, JsonFileEntryStore


class StepClock:
    """Deterministic clock advancing a fixed step on every call."""

    def __init__(self, start=datetime(2024, 6, 1, 12, 0), step=timedelta(minutes=1)):
        self.now = pytz.utc.localize(start)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryEntryStore(clock=clock)


@pytest.fixture
def json_store(tmp_path, clock):
    return JsonFileEntryStore(str(tmp_path / "entries.json"), clock=clock)


@pytest.fixture
def make_entry():
    """Factory for entries on consecutive days starting 2024-01-01."""

    def _make(day, weight=80.0, fat=None, muscle=None, entry_id=None):
        return MeasurementEntry(
            id=entry_id or f"e{day}",
            entry_date=date(2024, 1, 1) + timedelta(days=day),
            last_modified=pytz.utc.localize(datetime(2024, 1, 1)),
            weight=weight,
            fat_percent=fat,
            muscle_percent=muscle,
        )

    return _make
