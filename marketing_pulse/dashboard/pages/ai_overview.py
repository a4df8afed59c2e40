"""
AI Overview - Cross-channel insights from Claude

Loads every source for the period and asks the backend for a narrative
analysis of the combined data.
"""

import streamlit as st

from marketing_pulse.dashboard.cache import MARKETING_DASHBOARD_CACHE
from marketing_pulse.dashboard.components import insights_panel, load_page, page_controls
from marketing_pulse.dashboard.fetcher import EMAIL, GA4, GOOGLE_ADS, META_ADS, SUBBLY
from marketing_pulse.dashboard.markets import COUNTRY_LABELS, CountryCode

SOURCES = [GA4, GOOGLE_ADS, META_ADS, SUBBLY, EMAIL]


def render():
    st.title("🤖 AI Overview")
    st.markdown("**Insights and recommendations** across every channel")

    controls = page_controls("ai_overview", show_market=True)
    result = load_page(MARKETING_DASHBOARD_CACHE, SOURCES, "marketing", controls)

    if result.failed_sources:
        st.warning(
            "The analysis will include placeholder data for: "
            + ", ".join(result.failed_sources)
        )

    country = CountryCode(controls.country)
    body = {key: payload.to_wire() for key, payload in result.data.items()}
    body["country"] = country.value

    st.markdown("---")
    st.caption(f"Market: {COUNTRY_LABELS[country]}")

    insights_panel(
        "overview",
        body,
        key=f"overview_{country.value}_{controls.date_range.start_str}_{controls.date_range.end_str}",
    )
