"""
Mailchimp Connector for Marketing Pulse

Legacy email source. Campaign reports sent within the range are reshaped
into the same email payload MailerLite produces.
"""

import logging
import os

import requests
from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.connectors.mailerlite import build_email_payload, rate
from marketing_pulse.schemas import EmailCampaign, EmailPayload

load_dotenv()

logger = logging.getLogger(__name__)


class MailchimpConnector:
    """Connector for Mailchimp Marketing API (reports)."""

    SOURCE = "mailchimp"
    TIMEOUT = 30

    def __init__(self):
        self.api_key = os.getenv("MAILCHIMP_API_KEY")

    @property
    def base_url(self) -> str:
        # Data centre is the suffix of the key, e.g. "...-us21"
        data_center = self.api_key.rsplit("-", 1)[-1]
        return f"https://{data_center}.api.mailchimp.com/3.0"

    def _check_credentials(self):
        missing = missing_settings({"MAILCHIMP_API_KEY": self.api_key})
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def _make_request(self, endpoint: str, params: dict = None) -> dict:
        response = requests.get(
            f"{self.base_url}/{endpoint}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            params=params,
            timeout=self.TIMEOUT,
        )
        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, response.text)
        return response.json()

    def get_reports(self, start_date: str, end_date: str) -> list[dict]:
        data = self._make_request(
            "reports",
            {
                "since_send_time": f"{start_date}T00:00:00+00:00",
                "before_send_time": f"{end_date}T23:59:59+00:00",
                "count": 100,
            },
        )
        return data.get("reports", [])

    @staticmethod
    def to_campaign(report: dict) -> EmailCampaign:
        sent = report.get("emails_sent") or 0
        opens = (report.get("opens") or {}).get("unique_opens") or 0
        clicks = (report.get("clicks") or {}).get("unique_subscriber_clicks") or 0
        bounces = report.get("bounces") or {}

        return EmailCampaign(
            id=str(report["id"]),
            name=report.get("campaign_title") or "Untitled",
            subject=report.get("subject_line") or "No subject",
            sent_at=report.get("send_time"),
            sent=sent,
            opens=opens,
            clicks=clicks,
            bounced=bounces.get("hard_bounces") or 0,
            unsubscribed=report.get("unsubscribed") or 0,
            open_rate=rate(opens, sent),
            click_rate=rate(clicks, sent),
            click_to_open_rate=rate(clicks, opens),
        )

    def get_dashboard_data(self, start_date: str, end_date: str) -> EmailPayload:
        self._check_credentials()
        logger.info("Fetching Mailchimp data for %s..%s", start_date, end_date)

        campaigns = [self.to_campaign(report) for report in self.get_reports(start_date, end_date)]
        return build_email_payload(campaigns)
