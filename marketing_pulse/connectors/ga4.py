"""
Google Analytics 4 Connector for Marketing Pulse

Pulls site traffic for the dashboard:
- Overview totals (users, sessions, engagement)
- Sessions by default channel group
- Traffic trend over the range
- Country breakdown

Uses the GA4 Data API with OAuth 2.0 (refresh token).
"""

import logging
import os
from collections import OrderedDict
from datetime import datetime, timedelta

import requests
from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.schemas import (
    GA4CountryRow,
    GA4Overview,
    GA4Payload,
    TrafficSource,
    TrafficTrendPoint,
)

load_dotenv()

logger = logging.getLogger(__name__)

# Ranges up to this many days are charted daily, longer ones weekly
DAILY_TREND_MAX_DAYS = 14


def _label(day) -> str:
    return f"{day:%b} {day.day}"


class GA4Connector:
    """Connector for Google Analytics 4 Data API."""

    SOURCE = "ga4"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    API_BASE = "https://analyticsdata.googleapis.com/v1beta"
    TIMEOUT = 30

    def __init__(self):
        self.client_id = os.getenv("GOOGLE_ADS_CLIENT_ID")
        self.client_secret = os.getenv("GOOGLE_ADS_CLIENT_SECRET")
        self.refresh_token = os.getenv("GA4_REFRESH_TOKEN") or os.getenv("GOOGLE_ADS_REFRESH_TOKEN")
        self.property_id = os.getenv("GA4_PROPERTY_ID")

        self.access_token = None

    def _check_credentials(self):
        """Verify all required credentials are present."""
        missing = missing_settings({
            "GA4_PROPERTY_ID": self.property_id,
            "GOOGLE_ADS_CLIENT_ID": self.client_id,
            "GOOGLE_ADS_CLIENT_SECRET": self.client_secret,
            "GA4_REFRESH_TOKEN": self.refresh_token,
        })
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def _refresh_access_token(self):
        """Get a new access token using refresh token."""
        response = requests.post(
            self.TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.TIMEOUT,
        )

        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, f"Failed to refresh token: {response.text}")

        self.access_token = response.json()["access_token"]

    def _api_request(self, endpoint: str, data: dict) -> dict:
        """Make API request to GA4 Data API."""
        self._check_credentials()
        if self.access_token is None:
            self._refresh_access_token()

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        url = f"{self.API_BASE}/{endpoint}"

        response = requests.post(url, headers=headers, json=data, timeout=self.TIMEOUT)

        if response.status_code == 401:
            # Token expired, refresh and retry
            self._refresh_access_token()
            headers["Authorization"] = f"Bearer {self.access_token}"
            response = requests.post(url, headers=headers, json=data, timeout=self.TIMEOUT)

        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, response.text)

        return response.json()

    def run_report(
        self,
        start_date: str,
        end_date: str,
        metrics: list,
        dimensions: list = None,
        limit: int = 10000,
    ) -> list[tuple[list[str], list[float]]]:
        """
        Run a GA4 report.

        Args:
            start_date: YYYY-MM-DD
            end_date: YYYY-MM-DD
            metrics: metric names like ["sessions", "totalUsers"]
            dimensions: dimension names like ["date", "country"]

        Returns:
            (dimension values, metric values) per row
        """
        data = {
            "dateRanges": [{"startDate": start_date, "endDate": end_date}],
            "metrics": [{"name": m} for m in metrics],
            "limit": limit,
        }
        if dimensions:
            data["dimensions"] = [{"name": d} for d in dimensions]

        result = self._api_request(f"properties/{self.property_id}:runReport", data)

        rows = []
        for row in result.get("rows", []):
            rows.append((
                [d["value"] for d in row.get("dimensionValues", [])],
                [float(m["value"]) for m in row.get("metricValues", [])],
            ))
        return rows

    def get_overview(self, start_date: str, end_date: str) -> GA4Overview:
        rows = self.run_report(
            start_date,
            end_date,
            metrics=[
                "totalUsers", "newUsers", "engagementRate", "bounceRate",
                "sessions", "screenPageViews", "averageSessionDuration", "engagedSessions",
            ],
        )
        if not rows:
            return GA4Overview()

        values = rows[0][1]
        return GA4Overview(
            total_users=int(values[0]),
            new_users=int(values[1]),
            engagement_rate=round(values[2] * 100, 1),
            bounce_rate=round(values[3] * 100, 1),
            sessions=int(values[4]),
            page_views=int(values[5]),
            avg_session_duration=round(values[6]),
            engaged_sessions=int(values[7]),
        )

    def get_traffic_sources(self, start_date: str, end_date: str) -> list[TrafficSource]:
        """Sessions by default channel group, largest first."""
        rows = self.run_report(
            start_date,
            end_date,
            metrics=["sessions", "totalUsers"],
            dimensions=["sessionDefaultChannelGroup"],
        )

        total_sessions = sum(values[0] for _, values in rows)
        sources = [
            TrafficSource(
                name=dims[0],
                sessions=int(values[0]),
                users=int(values[1]),
                percentage=round(values[0] / total_sessions * 100, 1) if total_sessions else 0,
            )
            for dims, values in rows
        ]
        return sorted(sources, key=lambda s: s.sessions, reverse=True)

    def get_trends(self, start_date: str, end_date: str) -> list[TrafficTrendPoint]:
        """Daily points for short ranges, weekly (Monday) buckets otherwise."""
        rows = self.run_report(
            start_date,
            end_date,
            metrics=["totalUsers", "newUsers", "sessions", "screenPageViews"],
            dimensions=["date"],
        )

        span = (datetime.strptime(end_date, "%Y-%m-%d") - datetime.strptime(start_date, "%Y-%m-%d")).days + 1
        weekly = span > DAILY_TREND_MAX_DAYS

        buckets = OrderedDict()
        for dims, values in sorted(rows, key=lambda r: r[0][0]):
            day = datetime.strptime(dims[0], "%Y%m%d").date()
            if weekly:
                day = day - timedelta(days=day.weekday())
            bucket = buckets.setdefault(day, [0, 0, 0, 0])
            for i, value in enumerate(values):
                bucket[i] += value

        return [
            TrafficTrendPoint(
                date=_label(day),
                users=int(totals[0]),
                new_users=int(totals[1]),
                sessions=int(totals[2]),
                page_views=int(totals[3]),
            )
            for day, totals in buckets.items()
        ]

    def get_country_breakdown(self, start_date: str, end_date: str, limit: int = 10) -> list[GA4CountryRow]:
        rows = self.run_report(
            start_date,
            end_date,
            metrics=["totalUsers", "sessions", "screenPageViews", "engagementRate"],
            dimensions=["country"],
        )

        countries = [
            GA4CountryRow(
                country=dims[0],
                users=int(values[0]),
                sessions=int(values[1]),
                page_views=int(values[2]),
                engagement_rate=round(values[3] * 100, 1),
            )
            for dims, values in rows
        ]
        countries.sort(key=lambda c: c.users, reverse=True)
        return countries[:limit]

    def get_dashboard_data(self, start_date: str, end_date: str) -> GA4Payload:
        """Everything the traffic views need for one date range."""
        self._check_credentials()
        logger.info("Fetching GA4 data for %s..%s", start_date, end_date)

        return GA4Payload(
            overview=self.get_overview(start_date, end_date),
            traffic_by_source=self.get_traffic_sources(start_date, end_date),
            trends_over_time=self.get_trends(start_date, end_date),
            country_breakdown=self.get_country_breakdown(start_date, end_date),
        )


def main():
    """Test the connector."""
    connector = GA4Connector()

    end_date = datetime.now().strftime("%Y-%m-%d")
    start_date = (datetime.now() - timedelta(days=30)).strftime("%Y-%m-%d")

    try:
        data = connector.get_dashboard_data(start_date, end_date)
        print(f"Users: {data.overview.total_users:,}")
        print(f"Sessions: {data.overview.sessions:,}")
        print("\nTop channels:")
        for source in data.traffic_by_source[:5]:
            print(f"  {source.name}: {source.sessions:,} sessions ({source.percentage}%)")
    except SourceNotConfigured as e:
        print(f"Configuration error: {e}")
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
