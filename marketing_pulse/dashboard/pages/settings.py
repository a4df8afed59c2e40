"""
Settings - Cached data and connections
"""

import os
from datetime import datetime, timezone

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import CACHE_KEYS
from marketing_pulse.dashboard.client import DEFAULT_API_URL
from marketing_pulse.dashboard.components import get_cache
from marketing_pulse.dashboard.dates import format_relative


def cache_status_frame(cache, now: datetime) -> pd.DataFrame:
    rows = []
    for key in CACHE_KEYS:
        entry = cache.read_entry(key)
        rows.append({
            "Cache": key,
            "Period": f"{entry.start_date} to {entry.end_date}" if entry else "",
            "Updated": format_relative(now, entry.refreshed_at) if entry else "never",
        })
    return pd.DataFrame(rows)


def render():
    st.title("⚙️ Settings")

    cache = get_cache()

    st.subheader("💾 Cached Data")
    st.markdown(
        "Each page keeps its last load for 24 hours and reuses it while the "
        "selected period is unchanged."
    )
    if st.button("🗑️ Clear all cached data"):
        cache.purge(*CACHE_KEYS)
        st.session_state.pop("orchestrators", None)
        st.session_state.pop("comparisons", None)
        st.session_state.pop("insights", None)
        st.success("Cache cleared. Pages will fetch fresh data on next load.")

    st.dataframe(cache_status_frame(cache, datetime.now(timezone.utc)), hide_index=True, use_container_width=True)

    st.markdown("---")
    st.subheader("🔌 Backend")
    st.code(os.getenv("MARKETING_API_URL", DEFAULT_API_URL))
    st.caption("Set MARKETING_API_URL to point the dashboard at another backend.")
