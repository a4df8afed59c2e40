"""
Metric aggregation and period comparison for the dashboard.

Counters (spend, clicks, impressions, conversions, conversion value) are
summed; rates are
always derived from the summed counters so filtered views never drift from
their totals.
"""

from dataclasses import dataclass, asdict
from typing import Any, Iterable, Literal, Optional

from marketing_pulse.dashboard.markets import SHOPIFY_COUNTRY_CODES, CountryCode, filter_rows_by_country

ChangeType = Literal["positive", "negative", "neutral"]

COUNTER_FIELDS = ("spend", "clicks", "impressions", "conversions", "conversions_value")

# Share of email clicks assumed to convert when no attribution is available
EMAIL_CONVERSION_ESTIMATE = 0.15


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    if not denominator:
        return 0
    return numerator / denominator


@dataclass(frozen=True)
class MetricSnapshot:
    """Summed ad counters with rates derived on access."""
    spend: float = 0
    clicks: float = 0
    impressions: float = 0
    conversions: float = 0
    conversions_value: float = 0

    @property
    def cpc(self) -> float:
        return safe_ratio(self.spend, self.clicks)

    @property
    def ctr(self) -> float:
        return safe_ratio(self.clicks, self.impressions) * 100

    @property
    def cost_per_conversion(self) -> float:
        return safe_ratio(self.spend, self.conversions)

    @property
    def roas(self) -> float:
        return safe_ratio(self.conversions_value, self.spend)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update({
            "cpc": self.cpc,
            "ctr": self.ctr,
            "cost_per_conversion": self.cost_per_conversion,
            "roas": self.roas,
        })
        return data


def _counter(record: Any, field: str) -> float:
    if isinstance(record, dict):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    return value or 0


def aggregate(records: Iterable[Any]) -> MetricSnapshot:
    """
    Sum ad counters across campaign-like records.

    Records may be dicts or objects; missing or None fields count as 0.
    """
    totals = dict.fromkeys(COUNTER_FIELDS, 0)
    for record in records:
        for field in COUNTER_FIELDS:
            totals[field] += _counter(record, field)
    return MetricSnapshot(**totals)


# =============================================================================
# Period comparison
# =============================================================================

@dataclass(frozen=True)
class CompareResult:
    percent_change: float
    label: str


def compare(current: float, previous: Optional[float], label: str) -> Optional[CompareResult]:
    """
    Percent change from `previous` to `current`.

    Returns None when there is no prior value or it is 0, since a change from
    nothing has no meaningful percentage.
    """
    if previous is None or previous == 0:
        return None
    percent_change = (current - previous) / abs(previous) * 100
    return CompareResult(percent_change=percent_change, label=label)


def change_type(result: Optional[CompareResult], inverted: bool = False) -> ChangeType:
    """
    Classify a change for display.

    With `inverted`, a rise is unfavourable (cost metrics such as CPC).
    """
    if result is None or result.percent_change == 0:
        return "neutral"
    rising = result.percent_change > 0
    if inverted:
        rising = not rising
    return "positive" if rising else "negative"


def format_change(result: Optional[CompareResult]) -> Optional[str]:
    """Render a comparison as e.g. '+20.0% vs MoM'."""
    if result is None:
        return None
    return f"{result.percent_change:+.1f}% vs {result.label}"


def streamlit_delta_color(inverted: bool = False) -> str:
    """Map the inverted flag onto st.metric's delta_color."""
    return "inverse" if inverted else "normal"


# =============================================================================
# Formatting
# =============================================================================

def currency_symbol(country: CountryCode = CountryCode.ALL) -> str:
    """Euro by default; sterling only when the UK market is selected."""
    return "£" if CountryCode(country) == CountryCode.UK else "€"


def format_currency(value: float, country: CountryCode = CountryCode.ALL, decimals: int = 0) -> str:
    """Format a number as currency."""
    return f"{currency_symbol(country)}{value:,.{decimals}f}"


def format_percent(value: float, decimals: int = 2) -> str:
    """Format a number as percentage."""
    return f"{value:.{decimals}f}%"


def format_number(value: float) -> str:
    return f"{value:,.0f}"


# =============================================================================
# Cross-source metrics
# =============================================================================

def market_snapshot(ads_payload, country: CountryCode = CountryCode.ALL) -> MetricSnapshot:
    """
    Ad totals for one market.

    All markets use the account overview; a single market sums the rows of
    the geographic breakdown reported for it.
    """
    country = CountryCode(country)
    if country == CountryCode.ALL:
        return ads_payload.overview.snapshot
    return aggregate(filter_rows_by_country(ads_payload.country_breakdown, country))


def consolidated_metrics(ga4, google_ads, meta_ads, subbly, email, country: CountryCode = CountryCode.ALL) -> dict:
    """
    Blend the per-source overviews into the consolidated view.

    Each source argument is the validated payload for that source; only the
    ad totals are narrowed to `country`.
    """
    total_users = ga4.overview.total_users
    leads = email.overview.email_opens
    subscriptions = subbly.overview.subscriptions

    ads = aggregate([market_snapshot(meta_ads, country), market_snapshot(google_ads, country)])

    email_traffic = email.overview.email_clicks
    email_conversions = round(email_traffic * EMAIL_CONVERSION_ESTIMATE)

    return {
        "total_users": total_users,
        "leads": leads,
        "user_to_lead_pct": safe_ratio(leads, total_users) * 100,
        "total_subscriptions": subscriptions,
        "cumulative_cvr": safe_ratio(subscriptions, total_users) * 100,
        "total_spend": ads.spend,
        "total_conversions": ads.conversions,
        "cumulative_cpa": ads.cost_per_conversion,
        "email_traffic": email_traffic,
        "email_conversions": email_conversions,
        "email_cvr": safe_ratio(email_conversions, email_traffic) * 100,
        "roas": safe_ratio(subbly.overview.revenue, ads.spend),
    }


def funnel_stages(ga4, google_ads, meta_ads, subbly, email, country: CountryCode = CountryCode.ALL) -> list[dict]:
    """Funnel from site users down to email clicks, as % of users."""
    total_users = ga4.overview.total_users
    conversions = market_snapshot(google_ads, country).conversions + market_snapshot(meta_ads, country).conversions
    stages = [
        ("Total Users", total_users),
        ("Total Conversions", conversions),
        ("Subscriptions", subbly.overview.subscriptions),
        ("Email Clicks", email.overview.email_clicks),
    ]
    return [
        {
            "stage": stage,
            "value": value,
            "percentage": round(safe_ratio(value, total_users) * 100, 2),
        }
        for stage, value in stages
    ]


def shopify_market(shopify, country: CountryCode = CountryCode.ALL) -> dict:
    """
    Store totals for one market.

    Orders are attributed by shipping (or billing) country; a market with
    several ISO codes, like the UK, merges their rows.
    """
    country = CountryCode(country)
    if country == CountryCode.ALL:
        overview = shopify.overview
        return {
            "total_orders": overview.total_orders,
            "total_revenue": overview.total_revenue,
            "average_order_value": overview.average_order_value,
            "orders_over_time": shopify.orders_over_time,
            "top_products": shopify.top_products,
        }

    codes = SHOPIFY_COUNTRY_CODES[country]
    rows = [row for row in shopify.country_breakdown if row.country_code.upper() in codes]
    orders = sum(row.total_orders for row in rows)
    revenue = sum(row.total_revenue for row in rows)

    return {
        "total_orders": orders,
        "total_revenue": revenue,
        "average_order_value": safe_ratio(revenue, orders),
        "orders_over_time": [point for row in rows for point in row.orders_over_time],
        "top_products": [product for row in rows for product in row.top_products],
    }
