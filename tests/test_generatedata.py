import json
from datetime import date

from generatedata import generate_entries, main
from models import validate_measurements


def test_generate_entries_is_valid_and_ordered():
    rows = generate_entries(days=60, seed=7, start=date(2024, 1, 1))
    assert rows
    dates = [r["entry_date"] for r in rows]
    assert dates == sorted(dates)
    assert len(set(dates)) == len(dates)
    for r in rows:
        validate_measurements(r["weight"], r["fat_percent"], r["muscle_percent"])


def test_generate_entries_is_reproducible_with_seed():
    assert generate_entries(days=30, seed=3, start=date(2024, 1, 1)) == generate_entries(days=30, seed=3, start=date(2024, 1, 1))


def test_main_writes_store_file(tmp_path):
    out = tmp_path / "sample.json"
    main(["--days", "20", "--seed", "1", "--out", str(out)])
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["entries"]
    assert all("currentWeight" in r for r in payload["entries"])
