"""
Subbly Connector for Marketing Pulse

Pulls every subscription (paginated) and derives new subscriptions, churn,
estimated revenue and plan mix for the date range.
"""

import logging
import os
from collections import Counter, OrderedDict
from datetime import date, datetime, timedelta
from typing import Optional

import requests
from dotenv import load_dotenv

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured, missing_settings
from marketing_pulse.schemas import PlanShare, SubblyOverview, SubblyPayload, SubscriptionsPoint

load_dotenv()

logger = logging.getLogger(__name__)

# Price assumed for a subscription that reports none
DEFAULT_PRICE = 30
DEFAULT_PLAN = "Standard Plan"
CHURNED_STATUSES = {"cancelled", "expired"}
COUNTED_STATUSES = {"active"} | CHURNED_STATUSES


def parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def plan_name(subscription: dict) -> str:
    product = subscription.get("product") or {}
    return product.get("name") or subscription.get("product_name") or DEFAULT_PLAN


def estimated_revenue(subscription: dict) -> float:
    price = subscription.get("price") or subscription.get("amount") or DEFAULT_PRICE
    charges = subscription.get("successful_charges_count") or 1
    return float(price) * charges


def churn_rate(subscriptions: list[dict], start: date, end: date) -> float:
    """
    Churned during the range as a share of those existing before it.

    Capped at 100; 0 when nothing existed before the range.
    """
    existing = []
    churned = []
    for subscription in subscriptions:
        status = subscription.get("status")
        created = parse_day(subscription.get("created_at"))
        if created and created < start and status in COUNTED_STATUSES:
            existing.append(subscription)

        changed = parse_day(subscription.get("updated_at")) or created
        if status in CHURNED_STATUSES and changed and start <= changed <= end:
            churned.append(subscription)

    if not existing:
        return 0
    return min(len(churned) / len(existing) * 100, 100)


def summarize_subscriptions(subscriptions: list[dict], start_date: str, end_date: str) -> SubblyPayload:
    start = date.fromisoformat(start_date)
    end = date.fromisoformat(end_date)

    in_range = []
    for subscription in subscriptions:
        created = parse_day(subscription.get("created_at"))
        if created and start <= created <= end:
            in_range.append(subscription)

    # Every day in the range, including days without signups
    per_day = OrderedDict()
    day = start
    while day <= end:
        per_day[day] = 0
        day += timedelta(days=1)
    for subscription in in_range:
        per_day[parse_day(subscription["created_at"])] += 1

    plans = Counter(plan_name(s) for s in in_range)
    total = len(in_range)

    return SubblyPayload(
        overview=SubblyOverview(
            subscriptions=total,
            churn_rate=round(churn_rate(subscriptions, start, end), 2),
            revenue=sum(estimated_revenue(s) for s in in_range),
        ),
        subscriptions_over_time=[
            SubscriptionsPoint(date=f"{d.day} {d:%b}", subscriptions=count, revenue=count * DEFAULT_PRICE)
            for d, count in per_day.items()
        ],
        plan_distribution=[
            PlanShare(plan=plan, subscribers=count, percentage=round(count / total * 100) if total else 0)
            for plan, count in plans.items()
        ],
        status_breakdown=dict(Counter(s.get("status") or "unknown" for s in in_range)),
    )


class SubblyConnector:
    """Connector for Subbly private API."""

    SOURCE = "subbly"
    BASE_URL = "https://api.subbly.co/private/v1"
    TIMEOUT = 30

    def __init__(self):
        self.api_key = os.getenv("SUBBLY_API_KEY")
        self.headers = {
            "X-API-KEY": self.api_key or "",
            "Content-Type": "application/json",
        }

    def _check_credentials(self):
        missing = missing_settings({"SUBBLY_API_KEY": self.api_key})
        if missing:
            raise SourceNotConfigured(self.SOURCE, missing)
        return True

    def _make_request(self, endpoint: str, params: dict = None) -> dict:
        url = f"{self.BASE_URL}/{endpoint}"
        response = requests.get(url, headers=self.headers, params=params, timeout=self.TIMEOUT)

        if response.status_code != 200:
            raise SourceAPIError(self.SOURCE, response.status_code, response.text)

        return response.json()

    def get_all_subscriptions(self) -> list[dict]:
        subscriptions = []
        page = 1
        last_page = 1

        while page <= last_page:
            data = self._make_request("subscriptions", {"page": page})
            subscriptions.extend(data.get("data") or [])
            page = (data.get("current_page") or page) + 1
            last_page = data.get("last_page") or 1

        logger.info("Fetched %d Subbly subscriptions", len(subscriptions))
        return subscriptions

    def get_dashboard_data(self, start_date: str, end_date: str) -> SubblyPayload:
        self._check_credentials()
        logger.info("Fetching Subbly data for %s..%s", start_date, end_date)

        return summarize_subscriptions(self.get_all_subscriptions(), start_date, end_date)
