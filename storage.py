"""
Entry storage: an explicit store object held by the app, with an in-memory
implementation for tests/guests and a JSON-file implementation per user.

Every mutating call returns the resulting collection sorted by entry date.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import replace
from datetime import date, datetime, timedelta
from io import StringIO
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd
import pytz

from config import CSV_DATE_FORMAT, LOCAL_TZ, TABLE_DATE_FORMAT, TABLE_TIMESTAMP_FORMAT
from models import (
    MeasurementEntry,
    ensure_utc,
    new_entry_id,
    validate_entry_date,
    validate_measurements,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CSV_COLUMNS = ["Date", "Weight", "Fat %", "Muscle %"]


class EntryNotFoundError(KeyError):
    """Raised when an entry id is not in the store."""


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def sort_by_date(entries: Iterable[MeasurementEntry]) -> List[MeasurementEntry]:
    """Stable sort by entry date; returns a new list."""
    return sorted(entries, key=lambda e: e.entry_date)


class EntryStore:
    """
    Base store. Subclasses provide ``_load`` and ``_save``; everything else
    (validation, ids, timestamps, ordering) lives here.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    # Persistence hooks
    def _load(self) -> List[MeasurementEntry]:
        raise NotImplementedError

    def _save(self, entries: List[MeasurementEntry]) -> None:
        raise NotImplementedError

    def _timestamp(self, previous: Optional[datetime] = None) -> datetime:
        now = ensure_utc(self._clock())
        # Keep last_modified strictly increasing even if the clock stalls or steps back
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _write(self, entries: List[MeasurementEntry]) -> List[MeasurementEntry]:
        ordered = sort_by_date(entries)
        self._save(ordered)
        return ordered

    def read_all(self) -> List[MeasurementEntry]:
        return sort_by_date(self._load())

    def get(self, entry_id: str) -> MeasurementEntry:
        for entry in self._load():
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(entry_id)

    def create(self, entry_date, weight, fat_percent=None, muscle_percent=None) -> List[MeasurementEntry]:
        entry_date = validate_entry_date(entry_date)
        weight, fat_percent, muscle_percent = validate_measurements(weight, fat_percent, muscle_percent)
        entry = MeasurementEntry(
            id=new_entry_id(entry_date),
            entry_date=entry_date,
            last_modified=self._timestamp(),
            weight=weight,
            fat_percent=fat_percent,
            muscle_percent=muscle_percent,
        )
        logger.info("Created entry %s for %s", entry.id, entry_date)
        return self._write(self._load() + [entry])

    def update(self, entry_id: str, entry_date, weight, fat_percent=None, muscle_percent=None) -> List[MeasurementEntry]:
        entry_date = validate_entry_date(entry_date)
        weight, fat_percent, muscle_percent = validate_measurements(weight, fat_percent, muscle_percent)
        entries = self._load()
        for i, entry in enumerate(entries):
            if entry.id == entry_id:
                entries[i] = replace(
                    entry,
                    entry_date=entry_date,
                    last_modified=self._timestamp(entry.last_modified),
                    weight=weight,
                    fat_percent=fat_percent,
                    muscle_percent=muscle_percent,
                )
                break
        else:
            raise EntryNotFoundError(entry_id)
        logger.info("Updated entry %s", entry_id)
        return self._write(entries)

    def delete(self, entry_id: str) -> List[MeasurementEntry]:
        entries = self._load()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            logger.debug("Delete of unknown entry %s ignored", entry_id)
            return sort_by_date(entries)
        logger.info("Deleted entry %s", entry_id)
        return self._write(remaining)

    def replace_all(self, measurements: Iterable[Dict[str, object]]) -> List[MeasurementEntry]:
        """Replace the whole collection with freshly created entries (CSV import)."""
        entries = []
        for m in measurements:
            entry_date = validate_entry_date(m["entry_date"])
            weight, fat, muscle = validate_measurements(m["weight"], m.get("fat_percent"), m.get("muscle_percent"))
            entries.append(
                MeasurementEntry(
                    id=new_entry_id(entry_date),
                    entry_date=entry_date,
                    last_modified=self._timestamp(),
                    weight=weight,
                    fat_percent=fat,
                    muscle_percent=muscle,
                )
            )
        logger.info("Replaced store contents with %d entries", len(entries))
        return self._write(entries)


class InMemoryEntryStore(EntryStore):
    def __init__(self, entries: Iterable[MeasurementEntry] = (), clock: Optional[Clock] = None):
        super().__init__(clock)
        self._entries = list(entries)

    def _load(self) -> List[MeasurementEntry]:
        return list(self._entries)

    def _save(self, entries: List[MeasurementEntry]) -> None:
        self._entries = list(entries)


class JsonFileEntryStore(EntryStore):
    """Entries persisted as {"entries": [...], "saved_at": ...} in one JSON file."""

    def __init__(self, path: str, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.path = path

    def _load(self) -> List[MeasurementEntry]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                obj = json.load(f)
            # Bare lists are what the browser app kept under its storage key
            rows = obj if isinstance(obj, list) else obj.get("entries", [])
        except (OSError, ValueError, AttributeError):
            logger.exception("Could not read entries from %s; treating as empty", self.path)
            return []

        entries: List[MeasurementEntry] = []
        for row in rows:
            try:
                entries.append(MeasurementEntry.from_record(row, legacy=True))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping unreadable entry record in %s: %r (%s)", self.path, row, e)
        return entries

    def _save(self, entries: List[MeasurementEntry]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        payload = {
            "entries": [e.to_record() for e in entries],
            "saved_at": utc_now().isoformat(),
        }
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.info("Saved %d entries to %s", len(entries), self.path)


def sanitize_user_id(user_id: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_.-]", "_", str(user_id)).strip("._")
    return cleaned or "anonymous"


def store_for_user(user_id: str, data_dir: str, clock: Optional[Clock] = None) -> JsonFileEntryStore:
    return JsonFileEntryStore(os.path.join(data_dir, f"{sanitize_user_id(user_id)}.json"), clock=clock)


# -------------------------------
# Table and CSV helpers
# -------------------------------

def sort_entries(entries: Iterable[MeasurementEntry], key: str = "entry_date", descending: bool = False) -> List[MeasurementEntry]:
    """
    Order entries for the manage-entries table by entry date or last update.
    """
    if key not in ("entry_date", "last_modified"):
        raise ValueError(f"Cannot sort entries by {key!r}")
    return sorted(entries, key=lambda e: getattr(e, key), reverse=descending)


def _fmt_metric(x: Optional[float]) -> str:
    return "-" if x is None else f"{x:.1f}"


def entries_frame(entries: Iterable[MeasurementEntry]) -> pd.DataFrame:
    rows = [
        {
            "Date": e.entry_date.strftime(TABLE_DATE_FORMAT),
            "Weight": f"{e.weight:.1f}",
            "Fat %": _fmt_metric(e.fat_percent),
            "Muscle %": _fmt_metric(e.muscle_percent),
            "Last Updated": e.last_modified.astimezone(LOCAL_TZ).strftime(TABLE_TIMESTAMP_FORMAT),
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=["Date", "Weight", "Fat %", "Muscle %", "Last Updated"])


def export_csv(entries: Iterable[MeasurementEntry]) -> str:
    df = pd.DataFrame(
        [
            {
                "Date": e.entry_date.strftime(CSV_DATE_FORMAT),
                "Weight": e.weight,
                "Fat %": e.fat_percent,
                "Muscle %": e.muscle_percent,
            }
            for e in sort_by_date(entries)
        ],
        columns=CSV_COLUMNS,
    )
    return df.to_csv(index=False)


def parse_csv(csv_text: str, today: Optional[date] = None) -> List[Dict[str, object]]:
    """
    Parse an uploaded CSV into measurement dicts.

    Requires Date and Weight columns; Fat % and Muscle % are optional. Rows with
    an unparseable date, a missing weight or out-of-range values are dropped.
    """
    df = pd.read_csv(StringIO(csv_text))
    if "Date" not in df.columns or "Weight" not in df.columns:
        raise ValueError("CSV must contain 'Date' and 'Weight' columns")

    df = df.copy()
    df["Date"] = pd.to_datetime(df["Date"], errors="coerce").dt.date
    df["Weight"] = pd.to_numeric(df["Weight"], errors="coerce").astype(float)
    for col in ("Fat %", "Muscle %"):
        if col not in df.columns:
            df[col] = float("nan")
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df = df.dropna(subset=["Date", "Weight"]).reset_index(drop=True)

    measurements: List[Dict[str, object]] = []
    skipped = 0
    for _, row in df.iterrows():
        try:
            entry_date = validate_entry_date(row["Date"], today=today)
            weight, fat, muscle = validate_measurements(row["Weight"], row["Fat %"], row["Muscle %"])
        except ValueError:
            skipped += 1
            continue
        measurements.append({"entry_date": entry_date, "weight": weight, "fat_percent": fat, "muscle_percent": muscle})
    if skipped:
        logger.warning("Skipped %d invalid CSV rows", skipped)
    return measurements
