"""
Shopify - Store orders and revenue
"""

import pandas as pd
import streamlit as st

from marketing_pulse.dashboard.cache import SHOPIFY_PERFORMANCE_CACHE
from marketing_pulse.dashboard.components import load_page, metric_card, page_controls
from marketing_pulse.dashboard.fetcher import SHOPIFY
from marketing_pulse.dashboard.metrics import (
    currency_symbol,
    format_currency,
    format_number,
    shopify_market,
)


def render():
    st.title("🛒 Shopify")
    st.markdown("**Store orders and revenue**")

    controls = page_controls("shopify", show_market=True)
    result = load_page(SHOPIFY_PERFORMANCE_CACHE, [SHOPIFY], "Shopify", controls)

    data = result.data["shopify"]
    country = controls.country
    market = shopify_market(data, country)
    symbol = currency_symbol(country)

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        metric_card("Orders", format_number(market["total_orders"]))
    with col2:
        metric_card("Revenue", format_currency(market["total_revenue"], country, decimals=2))
    with col3:
        metric_card("Average Order Value", format_currency(market["average_order_value"], country, decimals=2))
    with col4:
        metric_card("Products", format_number(data.overview.total_products))

    st.markdown("---")
    st.subheader("📈 Orders Over Time")

    if market["orders_over_time"]:
        orders = pd.DataFrame([p.model_dump() for p in market["orders_over_time"]])
        # Merged markets report the same day once per ISO code
        orders = orders.groupby("date", sort=False)[["orders", "revenue"]].sum()
        st.bar_chart(orders["orders"])
        st.line_chart(orders["revenue"])
    else:
        st.info("No orders in this period.")

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Top Products")
        if market["top_products"]:
            products = pd.DataFrame([p.model_dump() for p in market["top_products"]])
            products = (
                products.groupby("name", as_index=False)[["quantity", "revenue"]].sum()
                .sort_values("revenue", ascending=False)
                .head(10)
                .rename(columns={"name": "Product", "quantity": "Quantity", "revenue": "Revenue"})
            )
            st.dataframe(
                products.style.format({"Quantity": "{:,.0f}", "Revenue": symbol + "{:,.2f}"}),
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No product sales in this period.")

    with col2:
        st.subheader("Orders by Status")
        if data.orders_by_status:
            status = pd.DataFrame([s.model_dump() for s in data.orders_by_status]).set_index("status")
            st.bar_chart(status["count"])
        else:
            st.info("No orders in this period.")
