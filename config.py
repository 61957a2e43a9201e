"""
Configuration and constants for WeightWise.

Values that vary per deployment come from environment variables; Supabase
credentials come from Streamlit secrets (see auth.py).
"""
from __future__ import annotations

import logging
import os
from datetime import date
from typing import Optional

import pytz

# -------------------------------
# Paths and locale
# -------------------------------
APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get("WEIGHTWISE_DATA_DIR", os.path.join(APP_DIR, "data"))
LOCAL_TZ = pytz.timezone(os.environ.get("WEIGHTWISE_TZ", "America/Chicago"))

# -------------------------------
# Formatting
# -------------------------------
DATE_LABEL_FORMAT = "%b %d"  # chart x-axis, e.g. "Jan 05"
TABLE_DATE_FORMAT = "%b %d, %Y"
TABLE_TIMESTAMP_FORMAT = "%b %d, %Y %H:%M"
CSV_DATE_FORMAT = "%Y-%m-%d"

# Slopes within +/- this band show no direction arrow
TREND_THRESHOLD = 0.01

# Earliest selectable entry date
MIN_ENTRY_DATE = date(1900, 1, 1)

# -------------------------------
# Authentication
# -------------------------------
GUEST_USER_IDS = ("guest", "demo@example.com")
OAUTH_REDIRECT_URL = os.environ.get("WEIGHTWISE_REDIRECT_URL", "http://localhost:8501")


def data_dir() -> str:
    """Directory for per-user entry files, re-read from the environment on each call."""
    return os.environ.get("WEIGHTWISE_DATA_DIR", DATA_DIR)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the app process."""
    level_name = (level or os.environ.get("WEIGHTWISE_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
