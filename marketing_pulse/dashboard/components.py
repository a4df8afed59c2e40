"""
Shared Streamlit building blocks for dashboard pages.

Page header controls, orchestrated loading with notices, and metric cards
with period comparison.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import streamlit as st

from marketing_pulse.dashboard.cache import CacheManager
from marketing_pulse.dashboard.client import BackendClient, SourceUnavailable
from marketing_pulse.dashboard.dates import (
    COMPARE_MODES,
    PRESETS,
    DateRange,
    comparison_range,
    format_relative,
    preset_range,
)
from marketing_pulse.dashboard.fetcher import (
    DataFetchOrchestrator,
    FetchResult,
    Source,
    load_comparison,
)
from marketing_pulse.dashboard.markets import COUNTRY_OPTIONS, CountryCode
from marketing_pulse.dashboard.metrics import (
    CompareResult,
    format_change,
    streamlit_delta_color,
)


@dataclass
class PageControls:
    date_range: DateRange
    country: CountryCode = CountryCode.ALL
    compare_mode: str = "off"
    refresh: bool = False


@st.cache_resource
def get_cache() -> CacheManager:
    """One cache manager per server process."""
    return CacheManager()


def get_orchestrator(cache_key: str, sources: list[Source], page_label: str) -> DataFetchOrchestrator:
    """Per-session orchestrator for a page, created on first use."""
    orchestrators = st.session_state.setdefault("orchestrators", {})
    if cache_key not in orchestrators:
        orchestrators[cache_key] = DataFetchOrchestrator(
            cache_key,
            sources,
            cache=get_cache(),
            page_label=page_label,
        )
    return orchestrators[cache_key]


def page_controls(page: str, show_market: bool = False, show_compare: bool = False) -> PageControls:
    """Date preset, optional market and comparison selectors, refresh button."""
    columns = st.columns([2, 2, 2, 1])

    with columns[0]:
        preset = st.selectbox(
            "Date range",
            list(PRESETS),
            index=1,
            format_func=PRESETS.get,
            key=f"{page}_preset",
        )

    if preset == "custom":
        today = date.today()
        picked = st.date_input(
            "Custom range",
            value=(today - timedelta(days=30), today),
            max_value=today,
            key=f"{page}_custom_range",
        )
        if isinstance(picked, (list, tuple)) and len(picked) == 2:
            date_range = DateRange(picked[0], picked[1])
        else:
            st.info("Select an end date to load data.")
            st.stop()
    else:
        date_range = preset_range(preset)

    country = CountryCode.ALL
    if show_market:
        with columns[1]:
            country, _ = st.selectbox(
                "Market",
                COUNTRY_OPTIONS,
                format_func=lambda option: option[1],
                key=f"{page}_market",
            )

    compare_mode = "off"
    if show_compare:
        with columns[2]:
            compare_mode = st.selectbox(
                "Compare",
                list(COMPARE_MODES),
                format_func=COMPARE_MODES.get,
                key=f"{page}_compare",
            )

    with columns[3]:
        st.write("")
        refresh = st.button("🔄 Refresh", key=f"{page}_refresh", use_container_width=True)

    st.caption(f"{date_range.start:%d %b %Y} to {date_range.end:%d %b %Y}")

    return PageControls(date_range=date_range, country=country, compare_mode=compare_mode, refresh=refresh)


def show_notice(result: FetchResult):
    notice = result.notice
    if notice is None:
        return

    if notice.variant == "error":
        st.error(f"**{notice.title}**: {notice.description}")
    elif notice.variant == "warning":
        st.warning(f"**{notice.title}**: {notice.description}")
    else:
        st.toast(f"{notice.title}: {notice.description}")


def last_updated_caption(result: FetchResult):
    label = format_relative(datetime.now(timezone.utc), result.refreshed_at)
    if label:
        suffix = " (cached)" if result.from_cache else ""
        st.caption(f"Updated {label}{suffix}")


def load_page(cache_key: str, sources: list[Source], page_label: str, controls: PageControls) -> FetchResult:
    """Load the page's data and render the resulting notice and freshness line."""
    orchestrator = get_orchestrator(cache_key, sources, page_label)

    with st.spinner(f"Loading {page_label} data..."):
        result = asyncio.run(orchestrator.load(controls.date_range, force_refresh=controls.refresh))

    show_notice(result)
    last_updated_caption(result)
    return result


def load_compare_data(source: Source, controls: PageControls, client_factory=BackendClient):
    """
    Comparison-period payload for `source`, or None when comparison is off
    or unavailable. Kept in the session so widget reruns reuse it; the
    refresh button fetches it again.
    """
    compare_range = comparison_range(controls.date_range, controls.compare_mode)
    if compare_range is None:
        return None
    memo = st.session_state.setdefault("comparisons", {})
    return asyncio.run(load_comparison(
        source,
        compare_range,
        client_factory=client_factory,
        memo=memo,
        force_refresh=controls.refresh,
    ))


def compare_label(controls: PageControls) -> str:
    return COMPARE_MODES.get(controls.compare_mode, "")


def metric_card(
    label: str,
    value: str,
    compare: Optional[CompareResult] = None,
    inverted: bool = False,
    help: Optional[str] = None,
):
    """st.metric with an optional period comparison as its delta."""
    st.metric(
        label=label,
        value=value,
        delta=format_change(compare),
        delta_color=streamlit_delta_color(inverted),
        help=help,
    )


async def _request_insights(path: str, body: dict) -> dict:
    async with BackendClient() as client:
        return await client.insights(path, body)


def insights_panel(path: str, body: dict, key: str, button_label: str = "✨ Generate AI Insights"):
    """Button that requests an analysis and keeps it in the session until regenerated."""
    results = st.session_state.setdefault("insights", {})

    if st.button(button_label, key=f"{key}_insights_button"):
        with st.spinner("Analysing..."):
            try:
                results[key] = asyncio.run(_request_insights(path, body))
            except SourceUnavailable as e:
                results.pop(key, None)
                st.error(f"Could not generate insights: {e.reason}")

    result = results.get(key)
    if result:
        st.markdown(result.get("insights", ""))
        st.caption(f"Generated {result.get('generated_at', '')} by {result.get('model', '')}")
