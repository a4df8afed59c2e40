"""
Meta Ads - Facebook and Instagram performance
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import META_PERFORMANCE_CACHE
from marketing_pulse.dashboard.components import (
    compare_label,
    insights_panel,
    load_compare_data,
    load_page,
    metric_card,
    page_controls,
)
from marketing_pulse.dashboard.fetcher import META_ADS
from marketing_pulse.dashboard.markets import CountryCode, filter_campaigns_by_country
from marketing_pulse.dashboard.metrics import (
    compare,
    format_currency,
    format_number,
    format_percent,
    market_snapshot,
)


def render():
    st.title("📘 Meta Ads")
    st.markdown("**Facebook & Instagram** campaign performance")

    controls = page_controls("meta_ads", show_market=True, show_compare=True)
    result = load_page(META_PERFORMANCE_CACHE, [META_ADS], "Meta Ads", controls)

    data = result.data["meta_ads"]
    country = controls.country
    current = market_snapshot(data, country)

    previous_data = load_compare_data(META_ADS, controls)
    previous = market_snapshot(previous_data, country) if previous_data is not None else None
    label = compare_label(controls)

    def delta(field):
        if previous is None:
            return None
        return compare(getattr(current, field), getattr(previous, field), label)

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Ad Spend", format_currency(current.spend, country, decimals=2), delta("spend"))
    with col2:
        metric_card("Impressions", format_number(current.impressions), delta("impressions"))
    with col3:
        metric_card("Clicks", format_number(current.clicks), delta("clicks"))
    with col4:
        metric_card("Conversions", format_number(current.conversions), delta("conversions"))

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("CPC", format_currency(current.cpc, country, decimals=2), delta("cpc"), inverted=True)
    with col2:
        metric_card("CTR", format_percent(current.ctr), delta("ctr"))
    with col3:
        metric_card(
            "Cost / Conversion",
            format_currency(current.cost_per_conversion, country, decimals=2),
            delta("cost_per_conversion"),
            inverted=True,
        )
    with col4:
        # Reach and engagement are only reported account-wide
        overview = data.overview
        metric_card(
            "Reach",
            format_number(overview.reach),
            help=f"{format_number(overview.engagements)} engagements, "
                 f"{format_number(overview.thruplays)} ThruPlays, "
                 f"CPE {format_currency(overview.cpe, decimals=2)}",
        )

    st.markdown("---")
    st.subheader("📈 Daily Performance")

    if data.performance_over_time:
        trend = pd.DataFrame([
            {"Date": p.date, "Spend": p.spend, "Clicks": p.clicks, "Conversions": p.conversions}
            for p in data.performance_over_time
        ]).set_index("Date")
        st.line_chart(trend)
    else:
        st.info("No daily data for this period.")

    st.markdown("---")
    st.subheader("🎯 Active Campaigns")

    campaigns = filter_campaigns_by_country(data.campaigns, country)
    if not campaigns:
        st.info("No active campaigns match the selected market.")
        return

    for campaign in sorted(campaigns, key=lambda c: c.spend, reverse=True):
        with st.expander(f"{campaign.name} | {format_currency(campaign.spend, country, decimals=2)}"):
            col1, col2, col3, col4 = st.columns(4)
            col1.metric("CPC", format_currency(campaign.cpc, country, decimals=2))
            col2.metric("CTR", format_percent(campaign.ctr))
            col3.metric("Conversions", format_number(campaign.conversions))
            col4.metric("ROAS", f"{campaign.roas:.2f}x" if campaign.roas else "N/A")

            insights_panel(
                "meta-campaign",
                {"campaign": campaign.to_wire(), "country": CountryCode(country).value},
                key=f"meta_campaign_{campaign.id or campaign.name}",
                button_label="✨ Analyse campaign",
            )
