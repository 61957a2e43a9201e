#!/usr/bin/env python3
"""
Run instructions
- Install dependencies:
    pip install -e .
- Run the app:
    streamlit run app.py

Notes
- Entries are kept in one JSON file per signed-in user under ./data
  (override with WEIGHTWISE_DATA_DIR).
- Sign-in uses Supabase Auth when .streamlit/secrets.toml provides SUPABASE_URL and
  SUPABASE_ANON_KEY; without it the app runs in guest mode.

CSV import/export
- Columns: Date,Weight,Fat %,Muscle % (the two percentage columns are optional on import).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional

import streamlit as st

from auth import handle_oauth_callback, init_supabase, render_auth_ui
from chart_data import METRIC_LABELS, TREND_ARROWS, compute_chart_points, summarize_trends, trend_direction
from charts import VisibleMetrics, make_progress_chart
from config import MIN_ENTRY_DATE, TABLE_DATE_FORMAT, configure_logging, data_dir
from generatedata import generate_entries
from models import MeasurementEntry
from storage import (
    EntryNotFoundError,
    EntryStore,
    entries_frame,
    export_csv,
    parse_csv,
    sort_entries,
    store_for_user,
)

configure_logging()
logger = logging.getLogger(__name__)

supabase = init_supabase()

SORT_KEYS = {"Date": "entry_date", "Last Updated": "last_modified"}


# -------------------------------
# Helpers
# -------------------------------

def _get_store(user: Dict[str, str]) -> EntryStore:
    """One store per signed-in user, kept for the session."""
    key = f"store::{user['id']}"
    if key not in st.session_state:
        st.session_state[key] = store_for_user(user["id"], data_dir())
    return st.session_state[key]


def _flash(message: str) -> None:
    st.session_state["_flash"] = message


def _show_flash() -> None:
    message = st.session_state.pop("_flash", None)
    if message:
        st.success(message)


def _entry_label(entry: MeasurementEntry) -> str:
    return f"{entry.entry_date.strftime(TABLE_DATE_FORMAT)} · {entry.weight:.1f}"


def _format_slope(slope: Optional[float]) -> str:
    if slope is None:
        return "-"
    arrow = TREND_ARROWS.get(trend_direction(slope), "")
    return f"{slope:+.2f} / entry {arrow}".strip()


# -------------------------------
# Tabs
# -------------------------------

def render_entry_form(store: EntryStore) -> None:
    st.subheader("Log New Entry")
    st.caption("Enter your current metrics. Consistency is key!")
    with st.form("entry_form", clear_on_submit=True):
        entry_date = st.date_input("Date of Entry", value=date.today(), min_value=MIN_ENTRY_DATE, max_value=date.today())
        weight = st.number_input("Weight", min_value=0.0, value=None, step=0.1, format="%.1f")
        fat = st.number_input("Fat % (optional)", min_value=0.0, max_value=100.0, value=None, step=0.1, format="%.1f")
        muscle = st.number_input("Muscle % (optional)", min_value=0.0, max_value=100.0, value=None, step=0.1, format="%.1f")
        submitted = st.form_submit_button("Save Entry", use_container_width=True)

    if submitted:
        try:
            store.create(entry_date, weight, fat, muscle)
        except ValueError as e:
            st.error(str(e))
        except OSError as e:
            logger.exception("Failed to save entry")
            st.error(f"Failed to save entry: {e}")
        else:
            _flash("Entry saved!")
            st.rerun()


def render_manage_entries(store: EntryStore, entries: List[MeasurementEntry]) -> None:
    st.subheader("Manage Entries")
    if not entries:
        st.info("No entries yet. Log one in the first tab.")
        return

    c1, c2 = st.columns(2)
    with c1:
        sort_label = st.radio("Sort by", list(SORT_KEYS), horizontal=True, key="sort_by")
    with c2:
        order = st.radio("Order", ["Descending", "Ascending"], horizontal=True, key="sort_order")
    ordered = sort_entries(entries, SORT_KEYS[sort_label], descending=(order == "Descending"))
    st.dataframe(entries_frame(ordered), use_container_width=True, hide_index=True)

    st.markdown("### Edit / Delete")
    by_id = {e.id: e for e in ordered}
    selected_id = st.selectbox("Select entry", options=list(by_id), format_func=lambda i: _entry_label(by_id[i]))
    if selected_id is None:
        return
    selected = by_id[selected_id]

    with st.form(f"edit_{selected.id}"):
        new_date = st.date_input("Date of Entry", value=selected.entry_date, min_value=MIN_ENTRY_DATE, max_value=date.today())
        new_weight = st.number_input("Weight", min_value=0.0, value=selected.weight, step=0.1, format="%.1f")
        new_fat = st.number_input("Fat %", min_value=0.0, max_value=100.0, value=selected.fat_percent, step=0.1, format="%.1f")
        new_muscle = st.number_input("Muscle %", min_value=0.0, max_value=100.0, value=selected.muscle_percent, step=0.1, format="%.1f")
        save = st.form_submit_button("Save changes", use_container_width=True)

    if save:
        try:
            store.update(selected.id, new_date, new_weight, new_fat, new_muscle)
        except (ValueError, EntryNotFoundError) as e:
            st.error(str(e))
        except OSError as e:
            logger.exception("Failed to update entry %s", selected.id)
            st.error(f"Failed to save: {e}")
        else:
            _flash(f"Updated entry for {new_date:%b %d, %Y}")
            st.rerun()

    confirm_delete = st.checkbox("Confirm delete", value=False, key=f"confirm_delete_{selected.id}")
    if st.button("Delete", use_container_width=True):
        if not confirm_delete:
            st.warning("Please check 'Confirm delete' before deleting.")
        else:
            try:
                store.delete(selected.id)
            except OSError as e:
                logger.exception("Failed to delete entry %s", selected.id)
                st.error(f"Failed to delete: {e}")
            else:
                _flash(f"Deleted entry for {selected.entry_date:%b %d, %Y}")
                st.rerun()


def render_progress(entries: List[MeasurementEntry]) -> None:
    st.subheader("Progress Overview")
    cols = st.columns(3)
    visible = VisibleMetrics(
        weight=cols[0].toggle("Weight", value=True, key="show_weight"),
        fat=cols[1].toggle("Fat %", value=True, key="show_fat"),
        muscle=cols[2].toggle("Muscle %", value=True, key="show_muscle"),
    )

    points = compute_chart_points(entries)
    if not points:
        st.info("No data yet. Start by adding some entries!")
        return

    slopes = summarize_trends(points)
    cards = st.columns(3)
    for col, (metric, slope) in zip(cards, slopes.items()):
        col.metric(f"{METRIC_LABELS[metric]} trend", _format_slope(slope))

    st.plotly_chart(make_progress_chart(points, visible), key="progress_chart", use_container_width=True)
    st.caption("Dashed lines are least-squares trends; they need at least two readings of a metric.")


def render_import_export(store: EntryStore, entries: List[MeasurementEntry]) -> None:
    st.subheader("Import / Export")
    st.download_button(
        "Export CSV",
        data=export_csv(entries).encode("utf-8"),
        file_name="weightwise_export.csv",
        mime="text/csv",
        use_container_width=True,
    )

    uploaded = st.file_uploader("Import CSV (replaces all entries)", type=["csv"], accept_multiple_files=False)
    if uploaded is not None and st.button("Import", use_container_width=True):
        try:
            measurements = parse_csv(uploaded.read().decode("utf-8"))
            store.replace_all(measurements)
        except (ValueError, UnicodeDecodeError) as e:
            st.error(f"Failed to import CSV: {e}")
        except OSError as e:
            logger.exception("Failed to write imported entries")
            st.error(f"Failed to import CSV: {e}")
        else:
            _flash(f"Imported {len(measurements)} entries.")
            st.rerun()

    if not entries and st.button("Load sample data", use_container_width=True):
        store.replace_all(generate_entries(days=90))
        _flash("Sample data loaded.")
        st.rerun()


# Main UI
def main():
    st.set_page_config(page_title="WeightWise", layout="wide")
    st.title("WeightWise")
    st.caption("Log your weight and body composition, and see the trend.")

    handle_oauth_callback(supabase)
    user = render_auth_ui(supabase)
    if user is None:
        return

    store = _get_store(user)
    entries = store.read_all()
    _show_flash()

    tab_log, tab_manage, tab_progress, tab_data = st.tabs(["Log Entry", "Manage Entries", "Progress", "Import / Export"])
    with tab_log:
        render_entry_form(store)
    with tab_manage:
        render_manage_entries(store, entries)
    with tab_progress:
        render_progress(entries)
    with tab_data:
        render_import_export(store, entries)


# Call the Streamlit app entrypoint when the script is executed by Streamlit
main()
