import importlib
from datetime import timedelta

import httpx
import pytest
import streamlit as st

from marketing_pulse.dashboard.cache import CACHE_KEYS, CONSOLIDATED_VIEW_CACHE
from marketing_pulse.dashboard.client import BackendClient
from marketing_pulse.dashboard.fetcher import GOOGLE_ADS
from marketing_pulse.dashboard.markets import CountryCode
from marketing_pulse.schemas import CampaignRecord

PAGE_MODULES = [
    "consolidated_view",
    "google_ads",
    "meta_ads",
    "email",
    "shopify",
    "traffic",
    "ai_overview",
    "settings",
]


@pytest.mark.parametrize("name", PAGE_MODULES)
def test_pages_expose_render(name):
    module = importlib.import_module(f"marketing_pulse.dashboard.pages.{name}")
    assert callable(module.render)


def test_campaigns_frame_sorted_by_spend():
    from marketing_pulse.dashboard.pages.google_ads import campaigns_frame

    frame = campaigns_frame([
        CampaignRecord(name="IE Search", spend=10, clicks=5),
        CampaignRecord(name="UK Search", spend=30, clicks=10),
    ])
    assert list(frame["Campaign"]) == ["UK Search", "IE Search"]
    assert list(frame["CPC"]) == [3, 2]


def test_campaigns_frame_empty():
    from marketing_pulse.dashboard.pages.google_ads import campaigns_frame

    assert campaigns_frame([]).empty


def test_cache_status_frame(cache, clock, january):
    from marketing_pulse.dashboard.pages.settings import cache_status_frame

    cache.write(CONSOLIDATED_VIEW_CACHE, january, {})
    frame = cache_status_frame(cache, clock.now + timedelta(minutes=5))

    assert len(frame) == len(CACHE_KEYS)
    row = frame[frame["Cache"] == CONSOLIDATED_VIEW_CACHE].iloc[0]
    assert row["Period"] == "2024-01-01 to 2024-01-31"
    assert row["Updated"] == "5 minutes ago"
    assert (frame["Updated"] == "never").sum() == len(CACHE_KEYS) - 1


def test_format_duration():
    from marketing_pulse.dashboard.pages.traffic import format_duration

    assert format_duration(185) == "3m 05s"


class TestCompareData:

    @pytest.fixture
    def requests_made(self, monkeypatch):
        monkeypatch.setattr(st, "session_state", {})
        return []

    @pytest.fixture
    def factory(self, requests_made):
        def handler(request):
            requests_made.append(request.url.path)
            return httpx.Response(200, json={"data": {"overview": {"adSpend": 40, "clicks": 8}}})

        return lambda: BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler))

    def test_market_change_reuses_comparison(self, january, factory, requests_made):
        from marketing_pulse.dashboard.components import PageControls, load_compare_data

        for country in (CountryCode.ALL, CountryCode.IE, CountryCode.UK):
            controls = PageControls(date_range=january, country=country, compare_mode="mom")
            previous = load_compare_data(GOOGLE_ADS, controls, client_factory=factory)
            assert previous.overview.spend == 40

        assert requests_made == ["/api/sources/google-ads"]

    def test_refresh_fetches_again(self, january, factory, requests_made):
        from marketing_pulse.dashboard.components import PageControls, load_compare_data

        load_compare_data(GOOGLE_ADS, PageControls(date_range=january, compare_mode="yoy"), client_factory=factory)
        load_compare_data(GOOGLE_ADS, PageControls(date_range=january, compare_mode="yoy", refresh=True), client_factory=factory)

        assert len(requests_made) == 2

    def test_off_makes_no_request(self, january, factory, requests_made):
        from marketing_pulse.dashboard.components import PageControls, load_compare_data

        assert load_compare_data(GOOGLE_ADS, PageControls(date_range=january), client_factory=factory) is None
        assert requests_made == []
