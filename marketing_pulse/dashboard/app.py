"""
Marketing Pulse Dashboard

Multi-source marketing dashboard: traffic, paid media, email, e-commerce and
subscriptions with market segmentation and AI insights.

Run with: streamlit run marketing_pulse/dashboard/app.py
"""

import importlib
import logging

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

st.set_page_config(
    page_title="Marketing Pulse",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Custom CSS
st.markdown("""
<style>
    [data-testid="stSidebarNav"] { display: none; }
    .positive { color: #10B981; }
    .negative { color: #EF4444; }
    .neutral { color: #6B7280; }
</style>
""", unsafe_allow_html=True)

PAGES = {
    "📊 Consolidated View": "consolidated_view",
    "🔍 Google Ads": "google_ads",
    "📣 Meta Ads": "meta_ads",
    "✉️ Email": "email",
    "🛒 Shopify": "shopify",
    "🌐 Traffic Analysis": "traffic",
    "🤖 AI Overview": "ai_overview",
    "⚙️ Settings": "settings",
}


def load_page_module(page_name: str):
    """Load a page module by name."""
    return importlib.import_module(f"marketing_pulse.dashboard.pages.{page_name}")


def main():
    st.sidebar.title("Marketing Pulse")

    page = st.sidebar.radio("Navigate", list(PAGES), index=0)

    st.sidebar.markdown("---")
    st.sidebar.markdown("**Data freshness**")
    st.sidebar.markdown("Views are cached for 24 hours per date range. Use Refresh to fetch live data.")

    module = load_page_module(PAGES[page])
    module.render()


if __name__ == "__main__":
    main()
