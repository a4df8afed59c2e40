from datetime import date
from types import SimpleNamespace

import pytest

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.connectors.ga4 import GA4Connector
from marketing_pulse.connectors.google_ads import GoogleAdsConnector, micros_to_currency
from marketing_pulse.connectors.mailchimp import MailchimpConnector
from marketing_pulse.connectors.mailerlite import (
    MailerLiteConnector,
    build_email_payload,
    in_range,
    rate,
)
from marketing_pulse.connectors.meta_ads import MetaAdsConnector, action_value
from marketing_pulse.connectors.shopify import (
    ShopifyConnector,
    order_country,
    orders_by_status,
    summarize_orders,
    top_products,
)
from marketing_pulse.connectors.subbly import (
    SubblyConnector,
    churn_rate,
    estimated_revenue,
    plan_name,
    summarize_subscriptions,
)


def test_missing_settings():
    assert missing_settings({"A": "x", "B": "", "C": None}) == ["B", "C"]


def test_not_configured_is_value_error():
    error = SourceNotConfigured("ga4", ["GA4_PROPERTY_ID"])
    assert isinstance(error, ValueError)
    assert str(error) == "ga4: Missing credentials: GA4_PROPERTY_ID"


# =============================================================================
# GA4
# =============================================================================

@pytest.fixture
def ga4(monkeypatch):
    monkeypatch.setenv("GA4_PROPERTY_ID", "123")
    monkeypatch.setenv("GOOGLE_ADS_CLIENT_ID", "id")
    monkeypatch.setenv("GOOGLE_ADS_CLIENT_SECRET", "secret")
    monkeypatch.setenv("GA4_REFRESH_TOKEN", "refresh")
    return GA4Connector()


class TestGA4:

    def test_missing_credentials(self, monkeypatch):
        for name in ("GA4_PROPERTY_ID", "GA4_REFRESH_TOKEN", "GOOGLE_ADS_REFRESH_TOKEN"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("GOOGLE_ADS_CLIENT_ID", "id")
        monkeypatch.setenv("GOOGLE_ADS_CLIENT_SECRET", "secret")

        with pytest.raises(SourceNotConfigured) as excinfo:
            GA4Connector().get_dashboard_data("2024-01-01", "2024-01-31")
        assert excinfo.value.missing == ["GA4_PROPERTY_ID", "GA4_REFRESH_TOKEN"]

    def test_overview_rates_are_percentages(self, ga4, monkeypatch):
        monkeypatch.setattr(ga4, "run_report", lambda *args, **kwargs: [
            ([], [1000, 400, 0.6234, 0.3766, 1500, 4200, 95.4, 935])
        ])
        overview = ga4.get_overview("2024-01-01", "2024-01-31")

        assert overview.total_users == 1000
        assert overview.engagement_rate == 62.3
        assert overview.bounce_rate == 37.7
        assert overview.avg_session_duration == 95

    def test_traffic_sources_sorted_with_share(self, ga4, monkeypatch):
        monkeypatch.setattr(ga4, "run_report", lambda *args, **kwargs: [
            (["Direct"], [250, 200]),
            (["Organic Search"], [750, 600]),
        ])
        sources = ga4.get_traffic_sources("2024-01-01", "2024-01-31")

        assert [s.name for s in sources] == ["Organic Search", "Direct"]
        assert sources[0].percentage == 75.0

    def test_short_range_trends_are_daily(self, ga4, monkeypatch):
        monkeypatch.setattr(ga4, "run_report", lambda *args, **kwargs: [
            (["20240102"], [20, 5, 25, 60]),
            (["20240101"], [10, 4, 12, 30]),
        ])
        trends = ga4.get_trends("2024-01-01", "2024-01-07")

        assert [t.date for t in trends] == ["Jan 1", "Jan 2"]
        assert trends[1].sessions == 25

    def test_long_range_trends_are_weekly(self, ga4, monkeypatch):
        monkeypatch.setattr(ga4, "run_report", lambda *args, **kwargs: [
            (["20240101"], [10, 1, 10, 10]),
            (["20240103"], [10, 1, 10, 10]),
            (["20240110"], [5, 1, 5, 5]),
        ])
        trends = ga4.get_trends("2024-01-01", "2024-01-31")

        assert [(t.date, t.users) for t in trends] == [("Jan 1", 20), ("Jan 8", 5)]

    def test_retries_once_after_401(self, ga4, monkeypatch):
        responses = [
            SimpleNamespace(status_code=401, text="expired"),
            SimpleNamespace(status_code=200, json=lambda: {"rows": []}),
        ]
        refreshes = []
        monkeypatch.setattr(ga4, "_refresh_access_token", lambda: refreshes.append(1) or setattr(ga4, "access_token", "t"))
        monkeypatch.setattr("marketing_pulse.connectors.ga4.requests.post", lambda *args, **kwargs: responses.pop(0))

        assert ga4.run_report("2024-01-01", "2024-01-31", ["sessions"]) == []
        assert len(refreshes) == 2


# =============================================================================
# Google Ads
# =============================================================================

def ads_row(**fields):
    metrics = SimpleNamespace(
        impressions=fields.get("impressions", 0),
        clicks=fields.get("clicks", 0),
        cost_micros=fields.get("cost_micros", 0),
        conversions=fields.get("conversions", 0.0),
        conversions_value=fields.get("conversions_value", 0.0),
    )
    return SimpleNamespace(
        metrics=metrics,
        campaign=SimpleNamespace(
            id=fields.get("campaign_id", 1),
            name=fields.get("name", ""),
            status=SimpleNamespace(name=fields.get("status", "ENABLED")),
        ),
        segments=SimpleNamespace(date=fields.get("date", "2024-01-01")),
        geographic_view=SimpleNamespace(country_criterion_id=fields.get("criterion", 2372)),
    )


@pytest.fixture
def google_ads():
    return GoogleAdsConnector()


class TestGoogleAds:

    def test_micros(self):
        assert micros_to_currency(12_340_000) == 12.34
        assert micros_to_currency(None) == 0

    def test_campaigns_are_summed_per_id(self, google_ads, monkeypatch):
        rows = [
            ads_row(campaign_id=1, name="IE Search", clicks=10, cost_micros=20_000_000, conversions=1.0, conversions_value=80.0),
            ads_row(campaign_id=1, name="IE Search", clicks=5, cost_micros=20_000_000, conversions=1.0, conversions_value=40.0),
            ads_row(campaign_id=2, name="", status="PAUSED", cost_micros=0),
        ]
        monkeypatch.setattr(google_ads, "_search", lambda query: iter(rows))

        campaigns = google_ads.get_campaign_performance("2024-01-01", "2024-01-31")

        assert campaigns[0].id == "1"
        assert campaigns[0].spend == 40
        assert campaigns[0].clicks == 15
        assert campaigns[0].roas == 3
        assert campaigns[0].cpc == pytest.approx(40 / 15)
        assert campaigns[1].name == "Unknown Campaign"
        assert campaigns[1].status == "PAUSED"
        assert campaigns[1].roas == 0

    def test_overview_reach_is_impressions(self, google_ads, monkeypatch):
        monkeypatch.setattr(google_ads, "_search", lambda query: iter([
            ads_row(impressions=500, clicks=20, cost_micros=10_000_000, conversions=2.4),
        ]))
        overview = google_ads.get_overview("2024-01-01", "2024-01-31")

        assert overview.reach == 500
        assert overview.conversions == 2
        assert overview.spend == 10

    def test_country_breakdown_names(self, google_ads, monkeypatch):
        monkeypatch.setattr(google_ads, "_search", lambda query: iter([
            ads_row(criterion=2372, clicks=1),
            ads_row(criterion=2826, clicks=2),
            ads_row(criterion=2826, clicks=3),
            ads_row(criterion=9999, clicks=4),
        ]))
        rows = google_ads.get_country_breakdown("2024-01-01", "2024-01-31")

        assert [(r.country, r.clicks) for r in rows] == [
            ("Ireland", 1),
            ("United Kingdom", 5),
            ("Country 9999", 4),
        ]


# =============================================================================
# Meta Ads
# =============================================================================

@pytest.fixture
def meta(monkeypatch):
    monkeypatch.setenv("META_ACCESS_TOKEN", "token")
    monkeypatch.setenv("META_AD_ACCOUNT_ID", "42")
    connector = MetaAdsConnector()
    connector._check_credentials()
    return connector


class TestMetaAds:

    def test_account_prefix(self, meta):
        assert meta.ad_account_id == "act_42"

    def test_action_value_priority(self):
        actions = [
            {"action_type": "lead", "value": "7"},
            {"action_type": "subscribe_website", "value": "3"},
        ]
        assert action_value(actions, ["purchase", "subscribe_website", "lead"]) == 3
        assert action_value(actions, ["purchase"]) == 0
        assert action_value(None, ["purchase"]) == 0

    def test_overview(self, meta, monkeypatch):
        monkeypatch.setattr(meta, "_get_paged", lambda endpoint, params: [{
            "spend": "120.50",
            "clicks": "40",
            "impressions": "8000",
            "reach": "5000",
            "post_engagement": "300",
            "actions": [{"action_type": "lead", "value": "6"}],
            "video_thruplay_watched_actions": [{"action_type": "video_view", "value": "900"}],
        }])
        overview = meta.get_overview("2024-01-01", "2024-01-31")

        assert overview.spend == 120.5
        assert overview.conversions == 6
        assert overview.thruplays == 900
        assert overview.cpe == pytest.approx(120.5 / 300)

    def test_overview_without_rows(self, meta, monkeypatch):
        monkeypatch.setattr(meta, "_get_paged", lambda endpoint, params: [])
        assert meta.get_overview("2024-01-01", "2024-01-31").spend == 0

    def test_daily_labels(self, meta, monkeypatch):
        monkeypatch.setattr(meta, "_get_paged", lambda endpoint, params: [
            {"date_start": "2024-01-05", "spend": "10", "clicks": "2", "impressions": "100"},
        ])
        assert meta.get_daily_performance("2024-01-01", "2024-01-31")[0].date == "5 Jan"

    def test_active_campaigns_skip_failures(self, meta, monkeypatch):
        monkeypatch.setattr(meta, "_get_paged", lambda endpoint, params: [
            {"id": 1, "name": "IE Prospecting", "effective_status": "ACTIVE"},
            {"id": 2, "name": "UK Retargeting", "effective_status": "ACTIVE"},
        ])

        def make_request(endpoint, params=None):
            if endpoint.startswith("2/"):
                raise SourceAPIError("meta-ads", 400, "Unsupported get request")
            return {"data": [{
                "spend": "50",
                "clicks": "10",
                "impressions": "1000",
                "actions": [{"action_type": "purchase", "value": "2"}],
                "action_values": [{"action_type": "purchase", "value": "150"}],
                "purchase_roas": [{"action_type": "omni_purchase", "value": "3.0"}],
            }]}

        monkeypatch.setattr(meta, "_make_request", make_request)
        campaigns = meta.get_active_campaigns("2024-01-01", "2024-01-31")

        assert [c.name for c in campaigns] == ["IE Prospecting"]
        assert campaigns[0].id == "1"
        assert campaigns[0].conversions == 2
        assert campaigns[0].conversions_value == 150
        assert campaigns[0].roas == 3

    def test_invalid_token_without_app_credentials_is_kept(self, meta, monkeypatch):
        monkeypatch.setattr(meta, "is_token_valid", lambda: False)
        meta.app_id = None
        meta.ensure_token()
        assert meta.access_token == "token"


# =============================================================================
# Email
# =============================================================================

def test_rate():
    assert rate(1, 3) == 33.3
    assert rate(5, 0) == 0


def test_in_range_is_inclusive_by_day():
    assert in_range("2024-01-31T23:10:00Z", "2024-01-01", "2024-01-31")
    assert not in_range("2024-02-01T00:10:00Z", "2024-01-01", "2024-01-31")
    assert not in_range(None, "2024-01-01", "2024-01-31")


def mailerlite_campaign(id, name, finished_at, sent=100, opens=50, clicks=10):
    return {
        "id": id,
        "name": name,
        "status": "sent",
        "finished_at": finished_at,
        "emails": [{"subject": f"{name} subject"}],
        "stats": {"sent": sent, "opens_count": opens, "clicks_count": clicks},
    }


class TestMailerLite:

    def test_dashboard_data(self, monkeypatch):
        monkeypatch.setenv("MAILERLITE_API_KEY", "key")
        connector = MailerLiteConnector()

        def make_request(endpoint, params=None):
            if endpoint == "campaigns":
                return {"data": [
                    mailerlite_campaign(1, "January News", "2024-01-10 09:00:00", opens=40),
                    mailerlite_campaign(2, "Offer", "2024-01-20 09:00:00", opens=70, clicks=20),
                    mailerlite_campaign(3, "December News", "2023-12-20 09:00:00"),
                ]}
            if params.get("filter[status]") == "active":
                return {"total": 800}
            return {"total": 1000}

        monkeypatch.setattr(connector, "_make_request", make_request)
        payload = connector.get_dashboard_data("2024-01-01", "2024-01-31")

        assert [c.name for c in payload.campaigns] == ["Offer", "January News"]
        assert payload.overview.email_opens == 110
        assert payload.overview.total_sent == 200
        assert payload.overview.open_rate == 55.0
        assert payload.overview.click_to_open_rate == 27.3
        assert payload.overview.total_subscribers == 1000
        assert payload.overview.active_subscribers == 800
        assert payload.top_campaigns[0].name == "Offer"
        assert payload.campaigns[0].subject == "Offer subject"

    def test_subscriber_counts_fall_back_to_zero(self, monkeypatch):
        monkeypatch.setenv("MAILERLITE_API_KEY", "key")
        connector = MailerLiteConnector()

        def make_request(endpoint, params=None):
            raise SourceAPIError("mailerlite", 403, "forbidden")

        monkeypatch.setattr(connector, "_make_request", make_request)
        assert connector.get_subscriber_counts() == (0, 0)

    def test_top_campaigns_ranked_by_opens(self):
        campaigns = [
            MailerLiteConnector.to_campaign(mailerlite_campaign(i, f"C{i}", f"2024-01-{i + 1:02d}T09:00:00Z", opens=i * 10))
            for i in range(6)
        ]
        payload = build_email_payload(campaigns)
        assert [c.name for c in payload.top_campaigns] == ["C5", "C4", "C3", "C2"]


class TestMailchimp:

    def test_base_url_uses_data_center(self, monkeypatch):
        monkeypatch.setenv("MAILCHIMP_API_KEY", "abc123-us21")
        assert MailchimpConnector().base_url == "https://us21.api.mailchimp.com/3.0"

    def test_report_mapping(self):
        campaign = MailchimpConnector.to_campaign({
            "id": "c1",
            "campaign_title": "Spring",
            "subject_line": "Spring is here",
            "send_time": "2024-03-01T10:00:00+00:00",
            "emails_sent": 200,
            "opens": {"unique_opens": 80},
            "clicks": {"unique_subscriber_clicks": 20},
            "bounces": {"hard_bounces": 3},
        })
        assert campaign.open_rate == 40.0
        assert campaign.click_to_open_rate == 25.0
        assert campaign.bounced == 3


# =============================================================================
# Shopify
# =============================================================================

def order(id, total, created_at, country="IE", status="paid", items=()):
    return {
        "id": id,
        "total_price": str(total),
        "created_at": created_at,
        "financial_status": status,
        "shipping_address": {"country_code": country} if country else None,
        "line_items": [{"title": title, "quantity": qty, "price": str(price)} for title, qty, price in items],
    }


ORDERS = [
    order(1, 60, "2024-01-02T10:00:00Z", "IE", items=[("Box", 2, 30)]),
    order(2, 40, "2024-01-02T12:00:00Z", "gb", items=[("Mug", 1, 40)]),
    order(3, 100, "2024-01-03T09:00:00Z", None, status="refunded", items=[("Box", 1, 30), ("Mug", 2, 35)]),
]


class TestShopify:

    def test_order_country_falls_back_to_billing(self):
        assert order_country({"billing_address": {"country_code": "ie"}}) == "IE"
        assert order_country({}) == ""

    def test_summary(self):
        summary = summarize_orders(ORDERS)

        assert summary["total_orders"] == 3
        assert summary["total_revenue"] == 200
        assert summary["average_order_value"] == 66.67
        assert [(p.date, p.orders) for p in summary["orders_over_time"]] == [("2 Jan", 2), ("3 Jan", 1)]

    def test_top_products_by_revenue(self):
        products = top_products(ORDERS)
        assert [(p.name, p.quantity, p.revenue) for p in products] == [("Mug", 3, 110), ("Box", 3, 90)]

    def test_status_share(self):
        statuses = {s.status: s.percentage for s in orders_by_status(ORDERS)}
        assert statuses == {"Paid": 67, "Refunded": 33}

    def test_empty(self):
        assert summarize_orders([])["average_order_value"] == 0

    def test_store_url_normalised(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_STORE_URL", "example.myshopify.com/")
        monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "token")
        assert ShopifyConnector().base_url == "https://example.myshopify.com/admin/api/2024-01"

    def test_dashboard_data_breaks_down_by_country(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_STORE_URL", "example.myshopify.com")
        monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "token")
        connector = ShopifyConnector()

        def make_request(endpoint, params=None):
            if endpoint == "orders.json":
                return {"orders": ORDERS}
            return {"count": 12}

        monkeypatch.setattr(connector, "_make_request", make_request)
        payload = connector.get_dashboard_data("2024-01-01", "2024-01-31")

        assert payload.overview.total_products == 12
        assert {c.country_code: c.total_revenue for c in payload.country_breakdown} == {"IE": 60, "GB": 40}


# =============================================================================
# Subbly
# =============================================================================

def subscription(created_at, status="active", updated_at=None, **extra):
    return {"created_at": created_at, "status": status, "updated_at": updated_at or created_at, **extra}


class TestSubbly:

    def test_plan_and_revenue_defaults(self):
        assert plan_name({}) == "Standard Plan"
        assert plan_name({"product": {"name": "Deluxe"}}) == "Deluxe"
        assert estimated_revenue({}) == 30
        assert estimated_revenue({"price": 25, "successful_charges_count": 3}) == 75

    def test_churn_rate(self):
        subscriptions = [
            subscription("2023-11-01", "active"),
            subscription("2023-11-01", "cancelled", updated_at="2024-01-15"),
            subscription("2023-12-01", "expired", updated_at="2023-12-20"),
            subscription("2023-12-15", "paused"),
        ]
        assert churn_rate(subscriptions, date(2024, 1, 1), date(2024, 1, 31)) == pytest.approx(100 / 3)

    def test_churn_rate_without_existing_subscriptions(self):
        assert churn_rate([subscription("2024-01-05", "cancelled")], date(2024, 1, 1), date(2024, 1, 31)) == 0

    def test_summary(self):
        subscriptions = [
            subscription("2024-01-01T10:00:00Z", product={"name": "Deluxe"}, price=40),
            subscription("2024-01-03T10:00:00Z"),
            subscription("2024-01-03T18:00:00Z", status="cancelled"),
            subscription("2023-12-01T10:00:00Z"),
        ]
        payload = summarize_subscriptions(subscriptions, "2024-01-01", "2024-01-03")

        assert payload.overview.subscriptions == 3
        assert payload.overview.revenue == 100
        assert [(p.date, p.subscriptions) for p in payload.subscriptions_over_time] == [
            ("1 Jan", 1), ("2 Jan", 0), ("3 Jan", 2),
        ]
        assert {p.plan: p.percentage for p in payload.plan_distribution} == {"Deluxe": 33, "Standard Plan": 67}
        assert payload.status_breakdown == {"active": 2, "cancelled": 1}

    def test_pagination(self, monkeypatch):
        monkeypatch.setenv("SUBBLY_API_KEY", "key")
        connector = SubblyConnector()
        pages = {
            1: {"data": [subscription("2024-01-01")], "current_page": 1, "last_page": 2},
            2: {"data": [subscription("2024-01-02")], "current_page": 2, "last_page": 2},
        }
        monkeypatch.setattr(connector, "_make_request", lambda endpoint, params: pages[params["page"]])

        assert len(connector.get_all_subscriptions()) == 2
