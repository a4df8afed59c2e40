"""
Consolidated View - All channels at a glance

Traffic, paid media, subscriptions and email blended into one set of KPIs,
with the funnel from site users to email clicks.
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import CONSOLIDATED_VIEW_CACHE
from marketing_pulse.dashboard.components import load_page, metric_card, page_controls
from marketing_pulse.dashboard.fetcher import EMAIL, GA4, GOOGLE_ADS, META_ADS, SUBBLY
from marketing_pulse.dashboard.markets import COUNTRY_LABELS
from marketing_pulse.dashboard.metrics import (
    EMAIL_CONVERSION_ESTIMATE,
    consolidated_metrics,
    currency_symbol,
    format_currency,
    format_number,
    format_percent,
    funnel_stages,
    market_snapshot,
)

SOURCES = [GA4, GOOGLE_ADS, META_ADS, SUBBLY, EMAIL]


def render():
    st.title("📊 Consolidated View")
    st.markdown("**Performance across every channel** for the selected period")

    controls = page_controls("consolidated", show_market=True)
    result = load_page(CONSOLIDATED_VIEW_CACHE, SOURCES, "consolidated", controls)

    data = result.data
    country = controls.country
    kpis = consolidated_metrics(
        data["ga4"], data["google_ads"], data["meta_ads"], data["subbly"], data["email"],
        country=country,
    )

    if result.failed_sources:
        st.caption(f"Placeholder data shown for: {', '.join(result.failed_sources)}")

    st.markdown("---")
    st.subheader("📈 Key Metrics")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Total Users", format_number(kpis["total_users"]))
    with col2:
        metric_card(
            "Leads",
            format_number(kpis["leads"]),
            help=f"{format_percent(kpis['user_to_lead_pct'])} of users",
        )
    with col3:
        metric_card(
            "Subscriptions",
            format_number(kpis["total_subscriptions"]),
            help=f"Cumulative CVR {format_percent(kpis['cumulative_cvr'])}",
        )
    with col4:
        metric_card("ROAS", f"{kpis['roas']:.2f}x", help="Subscription revenue / total ad spend")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Total Ad Spend", format_currency(kpis["total_spend"], country))
    with col2:
        metric_card("Ad Conversions", format_number(kpis["total_conversions"]))
    with col3:
        metric_card("Blended CPA", format_currency(kpis["cumulative_cpa"], country, decimals=2))
    with col4:
        metric_card(
            "Email Conversions (est.)",
            format_number(kpis["email_conversions"]),
            help=f"Estimated at {EMAIL_CONVERSION_ESTIMATE:.0%} of {format_number(kpis['email_traffic'])} email clicks",
        )

    st.markdown("---")

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Funnel")
        funnel_df = pd.DataFrame(funnel_stages(
            data["ga4"], data["google_ads"], data["meta_ads"], data["subbly"], data["email"],
            country=country,
        ))
        st.bar_chart(funnel_df.set_index("stage")["value"])
        st.dataframe(
            funnel_df.rename(columns={"stage": "Stage", "value": "Value", "percentage": "% of Users"})
            .style.format({"Value": "{:,.0f}", "% of Users": "{:.2f}%"}),
            hide_index=True,
            use_container_width=True,
        )

    with col2:
        st.subheader(f"Paid Media ({COUNTRY_LABELS[country]})")
        rows = []
        for label, key in (("Google Ads", "google_ads"), ("Meta Ads", "meta_ads")):
            snapshot = market_snapshot(data[key], country)
            row = snapshot.to_dict()
            # Account and geo rows carry no conversion value
            del row["conversions_value"], row["roas"]
            rows.append({"Channel": label, **row})
        channel_df = pd.DataFrame(rows).rename(columns={
            "spend": "Spend",
            "clicks": "Clicks",
            "impressions": "Impressions",
            "conversions": "Conversions",
            "cpc": "CPC",
            "ctr": "CTR",
            "cost_per_conversion": "Cost / Conv.",
        })
        symbol = currency_symbol(country)
        st.dataframe(
            channel_df.style.format({
                "Spend": symbol + "{:,.0f}",
                "Clicks": "{:,.0f}",
                "Impressions": "{:,.0f}",
                "Conversions": "{:,.0f}",
                "CPC": symbol + "{:.2f}",
                "CTR": "{:.2f}%",
                "Cost / Conv.": symbol + "{:.2f}",
            }),
            hide_index=True,
            use_container_width=True,
        )
