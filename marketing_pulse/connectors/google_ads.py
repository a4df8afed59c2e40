"""
Google Ads Connector for Marketing Pulse

Pulls account, daily, campaign and country performance for the dashboard.
"""

import logging
import os
from collections import OrderedDict
from datetime import datetime, timedelta

from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.schemas import (
    AdsOverview,
    AdsPayload,
    CampaignRecord,
    CountryRow,
    PerformancePoint,
)

load_dotenv()

logger = logging.getLogger(__name__)

# Geo target criterion ids for the countries we advertise in
COUNTRY_CRITERIA = {
    "2372": "Ireland",
    "2826": "United Kingdom",
    "2840": "United States",
    "2276": "Germany",
    "2250": "France",
    "2724": "Spain",
    "2380": "Italy",
    "2528": "Netherlands",
    "2056": "Belgium",
    "2040": "Austria",
}


def micros_to_currency(micros) -> float:
    return (micros or 0) / 1_000_000


def _enum_name(value) -> str:
    return getattr(value, "name", value)


class GoogleAdsConnector:
    """Connector for Google Ads API."""

    SOURCE = "google-ads"

    def __init__(self):
        self.client_id = os.getenv("GOOGLE_ADS_CLIENT_ID")
        self.client_secret = os.getenv("GOOGLE_ADS_CLIENT_SECRET")
        self.developer_token = os.getenv("GOOGLE_ADS_DEVELOPER_TOKEN")
        self.customer_id = os.getenv("GOOGLE_ADS_CUSTOMER_ID")
        self.refresh_token = os.getenv("GOOGLE_ADS_REFRESH_TOKEN")
        self.login_customer_id = os.getenv("GOOGLE_ADS_LOGIN_CUSTOMER_ID")

        self.client = None

    def _check_credentials(self):
        """Verify all required credentials are present."""
        missing = missing_settings({
            "GOOGLE_ADS_CLIENT_ID": self.client_id,
            "GOOGLE_ADS_CLIENT_SECRET": self.client_secret,
            "GOOGLE_ADS_DEVELOPER_TOKEN": self.developer_token,
            "GOOGLE_ADS_CUSTOMER_ID": self.customer_id,
            "GOOGLE_ADS_REFRESH_TOKEN": self.refresh_token,
        })
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def connect(self):
        """Initialize the Google Ads client."""
        self._check_credentials()

        from google.ads.googleads.client import GoogleAdsClient

        credentials = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "developer_token": self.developer_token,
            "refresh_token": self.refresh_token,
            "use_proto_plus": True,
        }

        if self.login_customer_id:
            credentials["login_customer_id"] = self.login_customer_id.replace("-", "")

        self.client = GoogleAdsClient.load_from_dict(credentials)
        logger.info("Connected to Google Ads for customer %s", self.customer_id)
        return True

    def _search(self, query: str):
        """Run a GAQL query and yield result rows."""
        if self.client is None:
            self.connect()

        from google.ads.googleads.errors import GoogleAdsException

        ga_service = self.client.get_service("GoogleAdsService")
        customer_id = self.customer_id.replace("-", "")

        try:
            for batch in ga_service.search_stream(customer_id=customer_id, query=query):
                yield from batch.results
        except GoogleAdsException as e:
            message = "; ".join(error.message for error in e.failure.errors)
            raise SourceAPIError(self.SOURCE, 502, message) from e

    def get_overview(self, start_date: str, end_date: str) -> AdsOverview:
        query = f"""
            SELECT
                metrics.impressions,
                metrics.clicks,
                metrics.cost_micros,
                metrics.conversions
            FROM customer
            WHERE segments.date BETWEEN '{start_date}' AND '{end_date}'
        """
        impressions = clicks = 0
        spend = conversions = 0.0
        for row in self._search(query):
            impressions += row.metrics.impressions
            clicks += row.metrics.clicks
            spend += micros_to_currency(row.metrics.cost_micros)
            conversions += row.metrics.conversions

        return AdsOverview(
            spend=round(spend, 2),
            clicks=clicks,
            impressions=impressions,
            conversions=round(conversions),
            # Google Ads has no reach metric
            reach=impressions,
        )

    def get_daily_performance(self, start_date: str, end_date: str) -> list[PerformancePoint]:
        query = f"""
            SELECT
                segments.date,
                metrics.impressions,
                metrics.clicks,
                metrics.cost_micros,
                metrics.conversions
            FROM customer
            WHERE segments.date BETWEEN '{start_date}' AND '{end_date}'
            ORDER BY segments.date
        """
        days = OrderedDict()
        for row in self._search(query):
            day = days.setdefault(row.segments.date, {"impressions": 0, "clicks": 0, "spend": 0.0, "conversions": 0.0})
            day["impressions"] += row.metrics.impressions
            day["clicks"] += row.metrics.clicks
            day["spend"] += micros_to_currency(row.metrics.cost_micros)
            day["conversions"] += row.metrics.conversions

        return [
            PerformancePoint(
                date=date,
                impressions=day["impressions"],
                clicks=day["clicks"],
                spend=round(day["spend"], 2),
                conversions=round(day["conversions"]),
            )
            for date, day in days.items()
        ]

    def get_campaign_performance(self, start_date: str, end_date: str) -> list[CampaignRecord]:
        """Per-campaign totals over the range; removed campaigns excluded."""
        query = f"""
            SELECT
                campaign.id,
                campaign.name,
                campaign.status,
                metrics.impressions,
                metrics.clicks,
                metrics.cost_micros,
                metrics.conversions,
                metrics.conversions_value
            FROM campaign
            WHERE segments.date BETWEEN '{start_date}' AND '{end_date}'
                AND campaign.status != 'REMOVED'
        """
        campaigns = OrderedDict()
        for row in self._search(query):
            campaign_id = str(row.campaign.id)
            totals = campaigns.setdefault(campaign_id, {
                "name": row.campaign.name or "Unknown Campaign",
                "status": _enum_name(row.campaign.status),
                "impressions": 0,
                "clicks": 0,
                "spend": 0.0,
                "conversions": 0.0,
                "conversions_value": 0.0,
            })
            totals["impressions"] += row.metrics.impressions
            totals["clicks"] += row.metrics.clicks
            totals["spend"] += micros_to_currency(row.metrics.cost_micros)
            totals["conversions"] += row.metrics.conversions
            totals["conversions_value"] += row.metrics.conversions_value

        records = []
        for campaign_id, totals in campaigns.items():
            spend = totals["spend"]
            records.append(CampaignRecord(
                id=campaign_id,
                name=totals["name"],
                status=totals["status"],
                impressions=totals["impressions"],
                clicks=totals["clicks"],
                spend=round(spend, 2),
                conversions=round(totals["conversions"]),
                conversions_value=round(totals["conversions_value"], 2),
                roas=round(totals["conversions_value"] / spend, 2) if spend > 0 else 0,
            ))
        return records

    def get_country_breakdown(self, start_date: str, end_date: str) -> list[CountryRow]:
        query = f"""
            SELECT
                geographic_view.country_criterion_id,
                metrics.impressions,
                metrics.clicks,
                metrics.cost_micros,
                metrics.conversions
            FROM geographic_view
            WHERE segments.date BETWEEN '{start_date}' AND '{end_date}'
        """
        countries = OrderedDict()
        for row in self._search(query):
            criterion_id = str(row.geographic_view.country_criterion_id)
            if not criterion_id:
                continue
            totals = countries.setdefault(criterion_id, {"impressions": 0, "clicks": 0, "spend": 0.0, "conversions": 0.0})
            totals["impressions"] += row.metrics.impressions
            totals["clicks"] += row.metrics.clicks
            totals["spend"] += micros_to_currency(row.metrics.cost_micros)
            totals["conversions"] += row.metrics.conversions

        return [
            CountryRow(
                country=COUNTRY_CRITERIA.get(criterion_id, f"Country {criterion_id}"),
                impressions=totals["impressions"],
                clicks=totals["clicks"],
                spend=round(totals["spend"], 2),
                conversions=round(totals["conversions"]),
            )
            for criterion_id, totals in countries.items()
        ]

    def get_dashboard_data(self, start_date: str, end_date: str) -> AdsPayload:
        self._check_credentials()
        logger.info("Fetching Google Ads data for %s..%s", start_date, end_date)

        return AdsPayload(
            overview=self.get_overview(start_date, end_date),
            performance_over_time=self.get_daily_performance(start_date, end_date),
            campaigns=self.get_campaign_performance(start_date, end_date),
            country_breakdown=self.get_country_breakdown(start_date, end_date),
        )


def main():
    """Test the connector."""
    connector = GoogleAdsConnector()

    end_date = datetime.now().strftime("%Y-%m-%d")
    start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

    try:
        data = connector.get_dashboard_data(start_date, end_date)
        print(f"Spend: {data.overview.spend:,.2f}")
        print(f"Conversions: {data.overview.conversions:,.0f}")
        print(f"\nCampaigns ({len(data.campaigns)}):")
        for campaign in sorted(data.campaigns, key=lambda c: c.spend, reverse=True)[:10]:
            print(f"  {campaign.name}: {campaign.spend:,.2f} spend, ROAS {campaign.roas:.2f}")
    except SourceNotConfigured as e:
        print(f"Configuration error: {e}")
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
