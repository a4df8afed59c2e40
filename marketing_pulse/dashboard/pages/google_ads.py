"""
Google Ads - Paid search performance

Account totals with optional period comparison, daily trend, campaign table
filtered by market, and an AI review of the account.
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import GOOGLE_ADS_PERFORMANCE_CACHE
from marketing_pulse.dashboard.components import (
    compare_label,
    insights_panel,
    load_compare_data,
    load_page,
    metric_card,
    page_controls,
)
from marketing_pulse.dashboard.fetcher import GOOGLE_ADS
from marketing_pulse.dashboard.markets import CountryCode, filter_campaigns_by_country
from marketing_pulse.dashboard.metrics import (
    aggregate,
    compare,
    currency_symbol,
    format_currency,
    format_number,
    format_percent,
    market_snapshot,
)


def campaigns_frame(campaigns) -> pd.DataFrame:
    """Campaign table with derived rates, highest spend first."""
    rows = [
        {
            "Campaign": c.name,
            "Status": c.status or "",
            "Spend": c.spend,
            "Clicks": c.clicks,
            "Impressions": c.impressions,
            "Conversions": c.conversions,
            "CPC": c.cpc,
            "CTR": c.ctr,
            "ROAS": c.roas,
        }
        for c in campaigns
    ]
    df = pd.DataFrame(rows, columns=["Campaign", "Status", "Spend", "Clicks", "Impressions",
                                     "Conversions", "CPC", "CTR", "ROAS"])
    return df.sort_values("Spend", ascending=False)


def render():
    st.title("🔍 Google Ads")
    st.markdown("**Paid search performance** by campaign and market")

    controls = page_controls("google_ads", show_market=True, show_compare=True)
    result = load_page(GOOGLE_ADS_PERFORMANCE_CACHE, [GOOGLE_ADS], "Google Ads", controls)

    data = result.data["google_ads"]
    country = controls.country
    current = market_snapshot(data, country)

    previous = None
    previous_data = load_compare_data(GOOGLE_ADS, controls)
    if previous_data is not None:
        previous = market_snapshot(previous_data, country)
    label = compare_label(controls)

    def delta(field):
        if previous is None:
            return None
        return compare(getattr(current, field), getattr(previous, field), label)

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Spend", format_currency(current.spend, country, decimals=2), delta("spend"))
    with col2:
        metric_card("Clicks", format_number(current.clicks), delta("clicks"))
    with col3:
        metric_card("Impressions", format_number(current.impressions), delta("impressions"))
    with col4:
        metric_card("Conversions", format_number(current.conversions), delta("conversions"))

    col1, col2, col3 = st.columns(3)
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

    if CountryCode(country) != CountryCode.ALL and not current.impressions:
        st.info("No geographic data reported for this market in the selected period.")

    st.markdown("---")
    st.subheader("📈 Daily Performance")

    if data.performance_over_time:
        trend = pd.DataFrame([
            {"Date": p.date, "Spend": p.spend, "Clicks": p.clicks, "Conversions": p.conversions}
            for p in data.performance_over_time
        ]).set_index("Date")
        st.line_chart(trend[["Spend", "Clicks"]])
    else:
        st.info("No daily data for this period.")

    st.markdown("---")
    st.subheader("🎯 Campaigns")

    campaigns = filter_campaigns_by_country(data.campaigns, country)
    if campaigns:
        symbol = currency_symbol(country)
        st.dataframe(
            campaigns_frame(campaigns).style.format({
                "Spend": symbol + "{:,.2f}",
                "Clicks": "{:,.0f}",
                "Impressions": "{:,.0f}",
                "Conversions": "{:,.1f}",
                "CPC": symbol + "{:.2f}",
                "CTR": "{:.2f}%",
                "ROAS": "{:.2f}x",
            }),
            hide_index=True,
            use_container_width=True,
        )
        totals = aggregate(campaigns)
        st.caption(
            f"Listed campaigns: {format_currency(totals.conversions_value, country, decimals=2)} "
            f"conversion value, ROAS {totals.roas:.2f}x"
        )
    else:
        st.info("No campaigns match the selected market.")

    st.markdown("---")
    st.subheader("🤖 AI Account Review")

    filtered = data.model_copy(update={"campaigns": campaigns})
    insights_panel(
        "google-ads",
        {"data": filtered.to_wire(), "country": CountryCode(country).value},
        key=f"google_ads_{CountryCode(country).value}",
    )
