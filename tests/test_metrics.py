import pytest

from marketing_pulse.dashboard import placeholder_data
from marketing_pulse.dashboard.markets import CountryCode
from marketing_pulse.dashboard.metrics import (
    CompareResult,
    MetricSnapshot,
    aggregate,
    change_type,
    compare,
    consolidated_metrics,
    currency_symbol,
    format_change,
    format_currency,
    funnel_stages,
    market_snapshot,
    safe_ratio,
    shopify_market,
    streamlit_delta_color,
)
from marketing_pulse.schemas import (
    AdsOverview,
    AdsPayload,
    CampaignRecord,
    CountryRow,
    ShopifyCountry,
    ShopifyOverview,
    ShopifyPayload,
)


class TestAggregate:

    def test_empty_input(self):
        snapshot = aggregate([])
        assert snapshot.to_dict() == {
            "spend": 0,
            "clicks": 0,
            "impressions": 0,
            "conversions": 0,
            "conversions_value": 0,
            "cpc": 0,
            "ctr": 0,
            "cost_per_conversion": 0,
            "roas": 0,
        }

    def test_zero_clicks_record_still_counts_spend(self):
        snapshot = aggregate([{"spend": 100, "clicks": 10}, {"spend": 50, "clicks": 0}])
        assert snapshot.spend == 150
        assert snapshot.clicks == 10
        assert snapshot.cpc == 15

    def test_missing_and_none_fields_are_zero(self):
        snapshot = aggregate([{"spend": None}, {"impressions": 200, "clicks": 5}, {}])
        assert snapshot == MetricSnapshot(spend=0, clicks=5, impressions=200, conversions=0)
        assert snapshot.ctr == pytest.approx(2.5)

    def test_order_does_not_matter(self):
        records = [
            {"spend": 12.5, "clicks": 3, "impressions": 90, "conversions": 1},
            {"spend": 40, "clicks": 7, "impressions": 410, "conversions": 0},
            {"spend": 7.5, "clicks": 0, "impressions": 0, "conversions": 2},
        ]
        assert aggregate(records) == aggregate(list(reversed(records)))

    def test_objects_and_snapshots(self):
        records = [
            CampaignRecord(name="a", spend=20, clicks=4, impressions=100, conversions=2),
            MetricSnapshot(spend=10, clicks=1, impressions=50, conversions=0),
        ]
        snapshot = aggregate(records)
        assert snapshot.spend == 30
        assert snapshot.cost_per_conversion == 15
        assert snapshot.ctr == pytest.approx(5 / 150 * 100)

    def test_conversion_value_gives_market_roas(self):
        campaigns = [
            CampaignRecord(name="IE Search", spend=100, conversions=2, conversions_value=250, roas=2.5),
            CampaignRecord(name="IE Display", spend=50, conversions=1, conversions_value=50, roas=1),
            {"spend": 50},
        ]
        snapshot = aggregate(campaigns)
        assert snapshot.conversions_value == 300
        assert snapshot.roas == 1.5

    def test_roas_without_spend_is_zero(self):
        assert aggregate([{"conversions_value": 80}]).roas == 0


def test_safe_ratio():
    assert safe_ratio(10, 0) == 0
    assert safe_ratio(10, 4) == 2.5


class TestCompare:

    @pytest.mark.parametrize("previous", [None, 0, 0.0])
    @pytest.mark.parametrize("current", [0, 5, -3, 120])
    def test_no_baseline(self, current, previous):
        assert compare(current, previous, "MoM") is None

    def test_increase(self):
        assert compare(120, 100, "MoM") == CompareResult(percent_change=20, label="MoM")

    def test_decrease(self):
        assert compare(80, 100, "MoM") == CompareResult(percent_change=-20, label="MoM")

    def test_negative_previous_uses_magnitude(self):
        assert compare(-50, -100, "YoY").percent_change == 50


class TestChangeType:

    def test_direction(self):
        assert change_type(compare(120, 100, "MoM")) == "positive"
        assert change_type(compare(80, 100, "MoM")) == "negative"
        assert change_type(compare(100, 100, "MoM")) == "neutral"
        assert change_type(None) == "neutral"

    def test_inverted(self):
        assert change_type(compare(120, 100, "MoM"), inverted=True) == "negative"
        assert change_type(compare(80, 100, "MoM"), inverted=True) == "positive"


def test_format_change():
    assert format_change(compare(120, 100, "MoM")) == "+20.0% vs MoM"
    assert format_change(compare(80, 100, "YoY")) == "-20.0% vs YoY"
    assert format_change(None) is None


def test_streamlit_delta_color():
    assert streamlit_delta_color() == "normal"
    assert streamlit_delta_color(inverted=True) == "inverse"


def test_currency():
    assert currency_symbol(CountryCode.ALL) == "€"
    assert currency_symbol(CountryCode.IE) == "€"
    assert currency_symbol("UK") == "£"
    assert format_currency(1234.5, CountryCode.UK, decimals=2) == "£1,234.50"
    assert format_currency(1234.5) == "€1,234"


# =============================================================================
# Cross-source metrics
# =============================================================================

ADS = AdsPayload(
    overview=AdsOverview(spend=300, clicks=60, impressions=6000, conversions=6),
    country_breakdown=[
        CountryRow(country="Ireland", spend=100, clicks=20, impressions=2000, conversions=4),
        CountryRow(country="United Kingdom", spend=150, clicks=30, impressions=3000, conversions=2),
        CountryRow(country="Germany", spend=50, clicks=10, impressions=1000, conversions=0),
    ],
)


class TestMarketSnapshot:

    def test_all_uses_overview(self):
        assert market_snapshot(ADS).spend == 300

    def test_single_market_sums_breakdown(self):
        ireland = market_snapshot(ADS, CountryCode.IE)
        assert ireland.spend == 100
        assert ireland.cost_per_conversion == 25

    def test_market_without_rows_is_empty(self):
        assert market_snapshot(AdsPayload(), CountryCode.UK) == MetricSnapshot()


class TestConsolidatedMetrics:

    def sources(self):
        return (
            placeholder_data.GA4_DATA,
            placeholder_data.GOOGLE_ADS_DATA,
            placeholder_data.META_ADS_DATA,
            placeholder_data.SUBBLY_DATA,
            placeholder_data.EMAIL_DATA,
        )

    def test_totals(self):
        ga4, google_ads, meta_ads, subbly, email = self.sources()
        kpis = consolidated_metrics(ga4, google_ads, meta_ads, subbly, email)

        spend = google_ads.overview.spend + meta_ads.overview.spend
        assert kpis["total_users"] == ga4.overview.total_users
        assert kpis["total_spend"] == pytest.approx(spend)
        assert kpis["roas"] == pytest.approx(subbly.overview.revenue / spend)
        assert kpis["email_conversions"] == round(email.overview.email_clicks * 0.15)

    def test_market_narrows_only_ad_totals(self):
        ga4, _, _, subbly, email = self.sources()
        kpis = consolidated_metrics(ga4, ADS, ADS, subbly, email, country=CountryCode.UK)

        assert kpis["total_spend"] == 300
        assert kpis["total_conversions"] == 4
        assert kpis["total_users"] == ga4.overview.total_users

    def test_zero_users_and_spend(self):
        _, _, _, subbly, email = self.sources()
        empty_ga4 = placeholder_data.GA4_DATA.model_copy(
            update={"overview": placeholder_data.GA4_DATA.overview.model_copy(update={"total_users": 0})}
        )
        kpis = consolidated_metrics(empty_ga4, AdsPayload(), AdsPayload(), subbly, email)
        assert kpis["user_to_lead_pct"] == 0
        assert kpis["roas"] == 0
        assert kpis["cumulative_cpa"] == 0

    def test_funnel(self):
        ga4, _, _, subbly, email = self.sources()
        stages = funnel_stages(ga4, ADS, ADS, subbly, email)

        assert [s["stage"] for s in stages] == ["Total Users", "Total Conversions", "Subscriptions", "Email Clicks"]
        assert stages[0]["percentage"] == 100
        assert stages[1]["value"] == 12


class TestShopifyMarket:

    payload = ShopifyPayload(
        overview=ShopifyOverview(total_orders=5, total_revenue=500, average_order_value=100),
        country_breakdown=[
            ShopifyCountry(country_code="IE", total_orders=2, total_revenue=150),
            ShopifyCountry(country_code="GB", total_orders=1, total_revenue=90),
            ShopifyCountry(country_code="UK", total_orders=1, total_revenue=60),
            ShopifyCountry(country_code="US", total_orders=1, total_revenue=200),
        ],
    )

    def test_all(self):
        assert shopify_market(self.payload)["total_revenue"] == 500

    def test_uk_merges_iso_codes(self):
        uk = shopify_market(self.payload, CountryCode.UK)
        assert uk["total_orders"] == 2
        assert uk["total_revenue"] == 150
        assert uk["average_order_value"] == 75

    def test_ireland(self):
        assert shopify_market(self.payload, CountryCode.IE)["average_order_value"] == 75
