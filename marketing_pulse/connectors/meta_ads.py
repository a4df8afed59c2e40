"""
Meta (Facebook) Ads Connector for Marketing Pulse

Pulls account, daily, country and active-campaign insights for the dashboard.
"""

import json
import logging
import os
from datetime import datetime, timedelta

import requests
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

# Action types counted as a conversion, in order of priority
CONVERSION_ACTION_TYPES = [
    "purchase",
    "offsite_conversion.fb_pixel_purchase",
    "subscribe_website",
    "subscribe_total",
    "lead",
    "complete_registration",
    "offsite_conversion.fb_pixel_lead",
    "offsite_conversion.fb_pixel_complete_registration",
    "omni_purchase",
    "onsite_conversion.purchase",
]

BREAKDOWN_ACTION_TYPES = CONVERSION_ACTION_TYPES[:4]
PURCHASE_ACTION_TYPES = CONVERSION_ACTION_TYPES[:2]
ROAS_ACTION_TYPES = ["omni_purchase", "purchase"]


def action_value(actions: list, action_types: list) -> float:
    """Value of the first action type in `action_types` present in `actions`."""
    by_type = {a.get("action_type"): a.get("value", 0) for a in actions or []}
    for action_type in action_types:
        if action_type in by_type:
            return float(by_type[action_type] or 0)
    return 0


def _day_label(date_str: str) -> str:
    day = datetime.strptime(date_str, "%Y-%m-%d")
    return f"{day.day} {day:%b}"


class MetaAdsConnector:
    """Connector for Meta Marketing API."""

    SOURCE = "meta-ads"
    API_VERSION = "v21.0"
    BASE_URL = f"https://graph.facebook.com/{API_VERSION}"
    TIMEOUT = 30

    def __init__(self):
        self.access_token = os.getenv("META_ACCESS_TOKEN")
        self.ad_account_id = (os.getenv("META_AD_ACCOUNT_ID") or "").strip()
        self.app_id = os.getenv("FB_APP_ID")
        self.app_secret = os.getenv("FB_APP_SECRET")

    def _check_credentials(self):
        """Verify all required credentials are present."""
        missing = missing_settings({
            "META_ACCESS_TOKEN": self.access_token,
            "META_AD_ACCOUNT_ID": self.ad_account_id,
        })
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)

        # Ensure ad_account_id has act_ prefix
        if not self.ad_account_id.startswith("act_"):
            self.ad_account_id = f"act_{self.ad_account_id}"

        return True

    def _make_request(self, endpoint: str, params: dict = None) -> dict:
        """Make authenticated request to Meta API."""
        params = dict(params or {})
        params["access_token"] = self.access_token

        url = f"{self.BASE_URL}/{endpoint}"
        response = requests.get(url, params=params, timeout=self.TIMEOUT)

        if response.status_code != 200:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            raise SourceAPIError(self.SOURCE, response.status_code, message)

        return response.json()

    def _get_paged(self, endpoint: str, params: dict) -> list[dict]:
        """Follow `paging.next` until every row is collected."""
        data = self._make_request(endpoint, params)
        rows = list(data.get("data", []))

        while data.get("paging", {}).get("next"):
            response = requests.get(data["paging"]["next"], timeout=self.TIMEOUT)
            if response.status_code != 200:
                raise SourceAPIError(self.SOURCE, response.status_code, response.text)
            data = response.json()
            rows.extend(data.get("data", []))

        return rows

    # -------------------------------------------------------------------------
    # Token handling
    # -------------------------------------------------------------------------

    def is_token_valid(self) -> bool:
        try:
            data = self._make_request("debug_token", {"input_token": self.access_token})
        except SourceAPIError:
            return False
        return data.get("data", {}).get("is_valid") is True

    def exchange_long_lived_token(self):
        """
        Swap the configured token for a long-lived one.

        Returns the new token, or None when no app credentials are set or the
        exchange is refused.
        """
        if not (self.app_id and self.app_secret):
            return None

        response = requests.get(
            f"{self.BASE_URL}/oauth/access_token",
            params={
                "grant_type": "fb_exchange_token",
                "client_id": self.app_id,
                "client_secret": self.app_secret,
                "fb_exchange_token": self.access_token,
            },
            timeout=self.TIMEOUT,
        )
        if response.status_code != 200:
            logger.warning("Failed to get long-lived Meta token: %s", response.text)
            return None

        return response.json().get("access_token")

    def ensure_token(self):
        if self.is_token_valid():
            return
        token = self.exchange_long_lived_token()
        if token:
            logger.info("Exchanged Meta access token for a long-lived token")
            self.access_token = token
        else:
            logger.warning("Meta access token looks invalid and could not be exchanged")

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    def _insights(self, start_date: str, end_date: str, fields: list, **extra) -> list[dict]:
        params = {
            "fields": ",".join(fields),
            "time_range": json.dumps({"since": start_date, "until": end_date}),
            "level": "account",
            **extra,
        }
        return self._get_paged(f"{self.ad_account_id}/insights", params)

    def get_overview(self, start_date: str, end_date: str) -> AdsOverview:
        rows = self._insights(
            start_date,
            end_date,
            fields=[
                "impressions", "clicks", "spend", "cpc", "ctr", "actions",
                "cost_per_action_type", "reach", "frequency",
                "video_thruplay_watched_actions", "post_engagement",
            ],
        )
        account = rows[0] if rows else {}

        return AdsOverview(
            spend=float(account.get("spend", 0)),
            clicks=int(account.get("clicks", 0)),
            impressions=int(account.get("impressions", 0)),
            conversions=int(action_value(account.get("actions"), CONVERSION_ACTION_TYPES)),
            reach=int(account.get("reach", 0)),
            thruplays=int(action_value(account.get("video_thruplay_watched_actions"), ["video_view"])),
            engagements=int(account.get("post_engagement", 0)),
        )

    def get_daily_performance(self, start_date: str, end_date: str) -> list[PerformancePoint]:
        rows = self._insights(
            start_date,
            end_date,
            fields=["impressions", "clicks", "spend", "actions"],
            time_increment=1,
        )
        return [
            PerformancePoint(
                date=_day_label(row["date_start"]),
                spend=float(row.get("spend", 0)),
                impressions=int(row.get("impressions", 0)),
                clicks=int(row.get("clicks", 0)),
                conversions=int(action_value(row.get("actions"), BREAKDOWN_ACTION_TYPES)),
            )
            for row in rows
        ]

    def get_country_breakdown(self, start_date: str, end_date: str) -> list[CountryRow]:
        rows = self._insights(
            start_date,
            end_date,
            fields=["impressions", "clicks", "spend", "actions"],
            breakdowns="country",
        )
        return [
            CountryRow(
                country=row.get("country", "Unknown"),
                spend=float(row.get("spend", 0)),
                impressions=int(row.get("impressions", 0)),
                clicks=int(row.get("clicks", 0)),
                conversions=int(action_value(row.get("actions"), BREAKDOWN_ACTION_TYPES)),
            )
            for row in rows
        ]

    def get_active_campaigns(self, start_date: str, end_date: str) -> list[CampaignRecord]:
        """Insights for each currently active campaign."""
        campaigns = self._get_paged(
            f"{self.ad_account_id}/campaigns",
            {
                "fields": "name,status,effective_status",
                "filtering": json.dumps([{"field": "effective_status", "operator": "IN", "value": ["ACTIVE"]}]),
            },
        )

        records = []
        for campaign in campaigns:
            try:
                data = self._make_request(
                    f"{campaign['id']}/insights",
                    {
                        "fields": "impressions,clicks,spend,actions,action_values,purchase_roas",
                        "time_range": json.dumps({"since": start_date, "until": end_date}),
                    },
                )
            except SourceAPIError as e:
                logger.warning("Skipping Meta campaign %s: %s", campaign.get("id"), e)
                continue

            insights = (data.get("data") or [{}])[0]
            records.append(CampaignRecord(
                id=str(campaign["id"]),
                name=campaign.get("name", ""),
                status=campaign.get("effective_status"),
                spend=float(insights.get("spend", 0)),
                impressions=int(insights.get("impressions", 0)),
                clicks=int(insights.get("clicks", 0)),
                conversions=int(action_value(insights.get("actions"), PURCHASE_ACTION_TYPES)),
                conversions_value=action_value(insights.get("action_values"), PURCHASE_ACTION_TYPES),
                roas=action_value(insights.get("purchase_roas"), ROAS_ACTION_TYPES),
            ))

        return records

    def get_dashboard_data(self, start_date: str, end_date: str) -> AdsPayload:
        self._check_credentials()
        logger.info("Fetching Meta Ads data for %s..%s", start_date, end_date)
        self.ensure_token()

        return AdsPayload(
            overview=self.get_overview(start_date, end_date),
            performance_over_time=self.get_daily_performance(start_date, end_date),
            campaigns=self.get_active_campaigns(start_date, end_date),
            country_breakdown=self.get_country_breakdown(start_date, end_date),
        )


def main():
    """Test the connector."""
    connector = MetaAdsConnector()

    end_date = datetime.now().strftime("%Y-%m-%d")
    start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

    try:
        data = connector.get_dashboard_data(start_date, end_date)
        print(f"Spend: {data.overview.spend:,.2f}")
        print(f"Conversions: {data.overview.conversions:,.0f}")
        print(f"\nActive campaigns ({len(data.campaigns)}):")
        for campaign in data.campaigns[:10]:
            print(f"  {campaign.name}: {campaign.spend:,.2f} spend, ROAS {campaign.roas:.2f}")
    except SourceNotConfigured as e:
        print(f"Configuration error: {e}")
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
