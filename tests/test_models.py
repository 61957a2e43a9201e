import re
from datetime import date, datetime

import pytest
import pytz

from models import MeasurementEntry, ensure_date, new_entry_id, validate_entry_date, validate_measurements


def test_validate_measurements_coerces_and_blanks():
    assert validate_measurements("81.5", "", None) == (81.5, None, None)
    assert validate_measurements(70, 0, 100) == (70.0, 0.0, 100.0)


@pytest.mark.parametrize(
    "args, message",
    [
        ((None,), "Weight is required."),
        ((0,), "Weight must be positive."),
        ((-3,), "Weight must be positive."),
        (("abc",), "Weight must be a number."),
        ((80, -1), "Fat % cannot be negative."),
        ((80, 101), "Fat % cannot exceed 100."),
        ((80, None, -0.5), "Muscle % cannot be negative."),
        ((80, None, 100.1), "Muscle % cannot exceed 100."),
    ],
)
def test_validate_measurements_messages(args, message):
    with pytest.raises(ValueError, match=re.escape(message)):
        validate_measurements(*args)


def test_validate_entry_date_range():
    today = date(2024, 6, 1)
    assert validate_entry_date("2024-05-31", today=today) == date(2024, 5, 31)
    with pytest.raises(ValueError, match="future"):
        validate_entry_date(date(2024, 6, 2), today=today)
    with pytest.raises(ValueError, match="before"):
        validate_entry_date(date(1899, 12, 31), today=today)


def test_ensure_date_accepts_iso_timestamps():
    assert ensure_date("2024-05-01T00:00:00.000Z") == date(2024, 5, 1)
    assert ensure_date(datetime(2024, 5, 1, 13, 30)) == date(2024, 5, 1)


def test_record_round_trip_omits_absent_metrics():
    entry = MeasurementEntry(
        id="2024-05-01-abc1234",
        entry_date=date(2024, 5, 1),
        last_modified=pytz.utc.localize(datetime(2024, 5, 2, 8, 15)),
        weight=80.4,
        fat_percent=21.0,
    )
    record = entry.to_record()
    assert record == {
        "id": "2024-05-01-abc1234",
        "date": "2024-05-01",
        "updatedAt": "2024-05-02T08:15:00+00:00",
        "currentWeight": 80.4,
        "fatPercentage": 21.0,
    }
    assert MeasurementEntry.from_record(record) == entry


def test_legacy_record_falls_back_to_entry_date():
    entry = MeasurementEntry.from_record({"id": "x", "date": "2023-12-24", "currentWeight": "77.5"})
    assert entry.last_modified == pytz.utc.localize(datetime(2023, 12, 24))
    assert entry.weight == 77.5
    assert entry.fat_percent is None


def test_non_legacy_record_requires_updated_at():
    with pytest.raises(ValueError, match="updatedAt"):
        MeasurementEntry.from_record({"id": "x", "date": "2023-12-24", "currentWeight": 77.5}, legacy=False)


def test_record_missing_weight_is_rejected():
    with pytest.raises(ValueError, match="currentWeight"):
        MeasurementEntry.from_record({"id": "x", "date": "2023-12-24"})


def test_new_entry_id_prefix():
    entry_id = new_entry_id(date(2024, 3, 9))
    assert entry_id.startswith("2024-03-09-")
    assert len(entry_id) == len("2024-03-09-") + 7
    assert entry_id != new_entry_id(date(2024, 3, 9))
