"""
MailerLite Connector for Marketing Pulse

Pulls sent campaigns and subscriber counts. MailerLite's campaign date filter
is unreliable, so sent campaigns are fetched and filtered by send date here.
"""

import logging
import os
from datetime import date, datetime, timedelta
from typing import Optional

import requests
from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.schemas import (
    EmailCampaign,
    EmailOverview,
    EmailPayload,
    EmailPerformancePoint,
    EmailTopCampaign,
)

load_dotenv()

logger = logging.getLogger(__name__)

TOP_CAMPAIGNS = 4
PERFORMANCE_POINTS = 7


def rate(numerator: float, denominator: float) -> float:
    """Percentage rounded to one decimal, 0 for an empty denominator."""
    if not denominator:
        return 0
    return round(numerator / denominator * 100, 1)


def parse_sent_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unrecognised send time: %s", value)
        return None


def in_range(sent_at: Optional[str], start_date: str, end_date: str) -> bool:
    """True when `sent_at` falls on a day within the inclusive range."""
    moment = parse_sent_at(sent_at)
    if moment is None:
        return False
    return date.fromisoformat(start_date) <= moment.date() <= date.fromisoformat(end_date)


def build_email_payload(
    campaigns: list[EmailCampaign],
    total_subscribers: int = 0,
    active_subscribers: int = 0,
) -> EmailPayload:
    """Overview, timeline and top campaigns from per-campaign stats."""
    total_opens = sum(c.opens for c in campaigns)
    total_clicks = sum(c.clicks for c in campaigns)
    total_sent = sum(c.sent for c in campaigns)

    timeline = []
    for campaign in campaigns:
        moment = parse_sent_at(campaign.sent_at)
        if moment is None:
            continue
        timeline.append(EmailPerformancePoint(
            date=f"{moment.day} {moment:%b}",
            opens=campaign.opens,
            clicks=campaign.clicks,
            open_rate=campaign.open_rate,
            ctr=campaign.click_rate,
        ))

    top = sorted(campaigns, key=lambda c: c.opens, reverse=True)[:TOP_CAMPAIGNS]

    # Most recent first; campaigns without a send time last
    ordered = sorted(
        campaigns,
        key=lambda c: (parse_sent_at(c.sent_at) is not None, c.sent_at or ""),
        reverse=True,
    )

    return EmailPayload(
        overview=EmailOverview(
            email_opens=total_opens,
            email_clicks=total_clicks,
            open_rate=rate(total_opens, total_sent),
            click_through_rate=rate(total_clicks, total_sent),
            click_to_open_rate=rate(total_clicks, total_opens),
            total_subscribers=total_subscribers,
            active_subscribers=active_subscribers,
            total_sent=total_sent,
        ),
        campaign_performance=timeline[:PERFORMANCE_POINTS],
        top_campaigns=[
            EmailTopCampaign(name=c.name, opens=c.opens, clicks=c.clicks, open_rate=c.open_rate)
            for c in top
        ],
        campaigns=ordered,
    )


class MailerLiteConnector:
    """Connector for MailerLite API."""

    SOURCE = "mailerlite"
    BASE_URL = "https://connect.mailerlite.com/api"
    TIMEOUT = 30

    def __init__(self):
        self.api_key = os.getenv("MAILERLITE_API_KEY")
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _check_credentials(self):
        """Verify credentials are present."""
        missing = missing_settings({"MAILERLITE_API_KEY": self.api_key})
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def _make_request(self, endpoint: str, params: dict = None) -> dict:
        """Make authenticated request to MailerLite API."""
        url = f"{self.BASE_URL}/{endpoint}"
        response = requests.get(url, headers=self.headers, params=params, timeout=self.TIMEOUT)

        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, response.text)

        return response.json()

    def get_sent_campaigns(self) -> list[dict]:
        data = self._make_request("campaigns", {"filter[status]": "sent", "limit": 100})
        return data.get("data", [])

    def get_subscriber_counts(self) -> tuple[int, int]:
        """Account-wide (total, active) subscriber counts, not date-filtered."""
        try:
            total = self._make_request("subscribers", {"limit": 0}).get("total", 0)
            active = self._make_request("subscribers", {"filter[status]": "active", "limit": 0}).get("total", 0)
        except SourceAPIError as e:
            logger.warning("Could not fetch MailerLite subscriber counts: %s", e)
            return 0, 0
        return total, active

    @staticmethod
    def to_campaign(raw: dict) -> EmailCampaign:
        stats = raw.get("stats") or {}
        sent = stats.get("sent") or 0
        opens = stats.get("opens_count") or stats.get("unique_opens_count") or 0
        clicks = stats.get("clicks_count") or stats.get("unique_clicks_count") or 0
        emails = raw.get("emails") or [{}]

        return EmailCampaign(
            id=str(raw["id"]),
            name=raw.get("name") or "Untitled",
            subject=emails[0].get("subject") or raw.get("name") or "No subject",
            status=raw.get("status") or "sent",
            sent_at=raw.get("finished_at") or raw.get("scheduled_for"),
            sent=sent,
            opens=opens,
            clicks=clicks,
            bounced=stats.get("hard_bounces_count") or 0,
            unsubscribed=stats.get("unsubscribes_count") or 0,
            open_rate=rate(opens, sent),
            click_rate=rate(clicks, sent),
            click_to_open_rate=rate(clicks, opens),
        )

    def get_dashboard_data(self, start_date: str, end_date: str) -> EmailPayload:
        self._check_credentials()
        logger.info("Fetching MailerLite data for %s..%s", start_date, end_date)

        campaigns = [
            self.to_campaign(raw)
            for raw in self.get_sent_campaigns()
            if in_range(raw.get("finished_at") or raw.get("scheduled_for"), start_date, end_date)
        ]
        total, active = self.get_subscriber_counts()

        return build_email_payload(campaigns, total_subscribers=total, active_subscribers=active)


def main():
    """Test the connector."""
    connector = MailerLiteConnector()

    end_date = datetime.now().strftime("%Y-%m-%d")
    start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

    try:
        data = connector.get_dashboard_data(start_date, end_date)
        print(f"Subscribers: {data.overview.total_subscribers:,} ({data.overview.active_subscribers:,} active)")
        print(f"Open rate: {data.overview.open_rate}%")
        print(f"\nCampaigns ({len(data.campaigns)}):")
        for campaign in data.campaigns[:10]:
            print(f"  {campaign.name}: {campaign.opens:,} opens, {campaign.clicks:,} clicks")
    except SourceNotConfigured as e:
        print(f"Configuration error: {e}")
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
