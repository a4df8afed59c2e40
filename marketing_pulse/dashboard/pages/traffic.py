"""
Traffic Analysis - GA4 users, sessions and channels
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import TRAFFIC_ANALYSIS_CACHE
from marketing_pulse.dashboard.components import (
    compare_label,
    load_compare_data,
    load_page,
    metric_card,
    page_controls,
)
from marketing_pulse.dashboard.fetcher import GA4
from marketing_pulse.dashboard.metrics import compare, format_number, format_percent


def format_duration(seconds: float) -> str:
    minutes, seconds = divmod(int(seconds), 60)
    return f"{minutes}m {seconds:02d}s"


def render():
    st.title("🌐 Traffic Analysis")
    st.markdown("**Website traffic** from Google Analytics 4")

    controls = page_controls("traffic", show_compare=True)
    result = load_page(TRAFFIC_ANALYSIS_CACHE, [GA4], "traffic", controls)

    data = result.data["ga4"]
    overview = data.overview

    previous_data = load_compare_data(GA4, controls)
    previous = previous_data.overview if previous_data is not None else None
    label = compare_label(controls)

    def delta(field):
        if previous is None:
            return None
        return compare(getattr(overview, field), getattr(previous, field), label)

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Users", format_number(overview.total_users), delta("total_users"))
    with col2:
        metric_card("New Users", format_number(overview.new_users), delta("new_users"))
    with col3:
        metric_card("Sessions", format_number(overview.sessions), delta("sessions"))
    with col4:
        metric_card("Page Views", format_number(overview.page_views), delta("page_views"))

    col1, col2, col3 = st.columns(3)
    with col1:
        metric_card("Engagement Rate", format_percent(overview.engagement_rate, 1), delta("engagement_rate"))
    with col2:
        metric_card("Bounce Rate", format_percent(overview.bounce_rate, 1), delta("bounce_rate"), inverted=True)
    with col3:
        metric_card("Avg. Session", format_duration(overview.avg_session_duration), delta("avg_session_duration"))

    st.markdown("---")
    st.subheader("📈 Trends")

    if data.trends_over_time:
        trends = pd.DataFrame([p.model_dump() for p in data.trends_over_time]).set_index("date")
        trends = trends.rename(columns={"users": "Users", "new_users": "New Users", "sessions": "Sessions"})
        st.line_chart(trends[["Users", "New Users", "Sessions"]])
    else:
        st.info("No trend data for this period.")

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Traffic by Channel")
        if data.traffic_by_source:
            channels = pd.DataFrame([s.model_dump() for s in data.traffic_by_source])
            st.bar_chart(channels.set_index("name")["sessions"])
            st.dataframe(
                channels.rename(columns={"name": "Channel", "sessions": "Sessions", "users": "Users", "percentage": "Share"})
                .style.format({"Sessions": "{:,.0f}", "Users": "{:,.0f}", "Share": "{:.1f}%"}),
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No channel data for this period.")

    with col2:
        st.subheader("Top Countries")
        if data.country_breakdown:
            countries = pd.DataFrame([
                {
                    "Country": row.country,
                    "Users": row.users,
                    "Sessions": row.sessions,
                    "Engagement": row.engagement_rate,
                }
                for row in data.country_breakdown
            ])
            st.dataframe(
                countries.style.format({"Users": "{:,.0f}", "Sessions": "{:,.0f}", "Engagement": "{:.1f}%"}),
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No geographic data for this period.")
