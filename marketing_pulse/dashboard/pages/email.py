"""
Email - Campaign engagement
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import EMAIL_PERFORMANCE_CACHE
from marketing_pulse.dashboard.components import (
    compare_label,
    load_compare_data,
    load_page,
    metric_card,
    page_controls,
)
from marketing_pulse.dashboard.fetcher import EMAIL
from marketing_pulse.dashboard.metrics import compare, format_number, format_percent


def render():
    st.title("✉️ Email")
    st.markdown("**Newsletter and campaign engagement**")

    controls = page_controls("email", show_compare=True)
    result = load_page(EMAIL_PERFORMANCE_CACHE, [EMAIL], "email", controls)

    data = result.data["email"]
    overview = data.overview

    previous_data = load_compare_data(EMAIL, controls)
    previous = previous_data.overview if previous_data is not None else None
    label = compare_label(controls)

    def delta(field):
        if previous is None:
            return None
        return compare(getattr(overview, field), getattr(previous, field), label)

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Emails Sent", format_number(overview.total_sent), delta("total_sent"))
    with col2:
        metric_card("Opens", format_number(overview.email_opens), delta("email_opens"))
    with col3:
        metric_card("Clicks", format_number(overview.email_clicks), delta("email_clicks"))
    with col4:
        metric_card(
            "Subscribers",
            format_number(overview.total_subscribers),
            help=f"{format_number(overview.active_subscribers)} active",
        )

    col1, col2, col3 = st.columns(3)
    with col1:
        metric_card("Open Rate", format_percent(overview.open_rate, 1), delta("open_rate"))
    with col2:
        metric_card("Click-through Rate", format_percent(overview.click_through_rate, 1), delta("click_through_rate"))
    with col3:
        metric_card("Click-to-open Rate", format_percent(overview.click_to_open_rate, 1), delta("click_to_open_rate"))

    st.markdown("---")

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Recent Campaigns")
        if data.campaign_performance:
            perf = pd.DataFrame([p.model_dump() for p in data.campaign_performance]).set_index("date")
            st.bar_chart(perf[["opens", "clicks"]])
        else:
            st.info("No campaigns sent in this period.")

    with col2:
        st.subheader("Top Campaigns by Opens")
        if data.top_campaigns:
            top = pd.DataFrame([
                {"Campaign": c.name, "Opens": c.opens, "Clicks": c.clicks, "Open Rate": c.open_rate}
                for c in data.top_campaigns
            ])
            st.dataframe(
                top.style.format({"Opens": "{:,.0f}", "Clicks": "{:,.0f}", "Open Rate": "{:.1f}%"}),
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No campaigns sent in this period.")

    if data.campaigns:
        st.markdown("---")
        st.subheader("All Campaigns")
        campaigns = pd.DataFrame([
            {
                "Sent": c.sent_at or "",
                "Campaign": c.name,
                "Subject": c.subject,
                "Recipients": c.sent,
                "Open Rate": c.open_rate,
                "Click Rate": c.click_rate,
                "Bounced": c.bounced,
                "Unsubscribed": c.unsubscribed,
            }
            for c in data.campaigns
        ])
        st.dataframe(
            campaigns.style.format({
                "Recipients": "{:,.0f}",
                "Open Rate": "{:.1f}%",
                "Click Rate": "{:.1f}%",
            }),
            hide_index=True,
            use_container_width=True,
        )
