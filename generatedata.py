"""
Generate a synthetic entry history: a slow downward weight trend with logging
gaps, and body-composition readings on only some days.

    python generatedata.py --days 180 --out data/guest.json
"""
from __future__ import annotations

import argparse
import logging
import random
from datetime import date, timedelta
from typing import Dict, List, Optional

import numpy as np

from config import configure_logging
from storage import JsonFileEntryStore

logger = logging.getLogger(__name__)


def generate_entries(days: int = 90, seed: Optional[int] = None, start: Optional[date] = None) -> List[Dict[str, object]]:
    """Measurement dicts ready for EntryStore.replace_all, oldest first, never past today."""
    rng = random.Random(seed)
    noise = np.random.default_rng(seed)
    start = start or (date.today() - timedelta(days=days - 1))

    # Pick some gap start indices
    gap_starts = set(rng.sample(range(0, max(1, days - 15)), min(5, max(0, days - 15))))

    rows: List[Dict[str, object]] = []
    i = 0
    while i < days:
        if i in gap_starts:
            i += rng.randint(3, 7)  # skip a few days
            continue
        progress = i / days
        # About -8 weight units over the period, fat falling and muscle creeping up
        weight = 90.0 - 8.0 * progress + noise.uniform(-0.8, 0.8)
        row: Dict[str, object] = {
            "entry_date": start + timedelta(days=i),
            "weight": round(float(weight), 1),
            "fat_percent": None,
            "muscle_percent": None,
        }
        if rng.random() < 0.4:
            row["fat_percent"] = round(float(28.0 - 4.0 * progress + noise.uniform(-0.5, 0.5)), 1)
        if rng.random() < 0.3:
            row["muscle_percent"] = round(float(35.0 + 2.0 * progress + noise.uniform(-0.4, 0.4)), 1)
        rows.append(row)
        i += 1
    return [r for r in rows if r["entry_date"] <= date.today()]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Write a synthetic WeightWise entry file.")
    parser.add_argument("--days", type=int, default=180)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--out", default="guest_default_dataset.json")
    args = parser.parse_args(argv)

    configure_logging()
    entries = JsonFileEntryStore(args.out).replace_all(generate_entries(args.days, args.seed))
    logger.info("Wrote %d entries to %s", len(entries), args.out)


if __name__ == "__main__":
    main()
