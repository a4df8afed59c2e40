"""
Payload schemas shared by the backend and the dashboard.

Every source payload is validated against these models at the integration
boundary: the backend builds them from vendor responses, the dashboard
validates what it receives (and what it reads back from the cache). Field
names are snake_case in Python and camelCase on the wire.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from marketing_pulse.dashboard.markets import CountryCode
from marketing_pulse.dashboard.metrics import MetricSnapshot, safe_ratio


class PulseModel(BaseModel):
    """Base model: camelCase aliases, unknown vendor fields ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Requests
# =============================================================================

class DateRangeRequest(PulseModel):
    """Body every source endpoint accepts."""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


# =============================================================================
# Ad platforms (Google Ads, Meta Ads)
# =============================================================================

class AdCounters(PulseModel):
    """Counter fields with rates derived from them, never stored."""
    spend: float = 0
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0

    @property
    def snapshot(self) -> MetricSnapshot:
        return MetricSnapshot(
            spend=self.spend,
            clicks=self.clicks,
            impressions=self.impressions,
            conversions=self.conversions,
        )

    @computed_field
    @property
    def cpc(self) -> float:
        return self.snapshot.cpc

    @computed_field
    @property
    def ctr(self) -> float:
        return self.snapshot.ctr

    @computed_field
    @property
    def cost_per_conversion(self) -> float:
        return self.snapshot.cost_per_conversion


class CampaignRecord(AdCounters):
    id: Optional[str] = None
    name: str = ""
    status: Optional[str] = None
    conversions_value: float = 0
    roas: float = 0


class PerformancePoint(AdCounters):
    date: str


class CountryRow(AdCounters):
    country: str


class AdsOverview(AdCounters):
    # spend is reported as adSpend by the dashboard
    spend: float = Field(default=0, alias="adSpend")
    reach: int = 0
    thruplays: int = 0
    engagements: int = 0

    @computed_field
    @property
    def cpe(self) -> float:
        """Cost per engagement."""
        return safe_ratio(self.spend, self.engagements)


class AdsPayload(PulseModel):
    overview: AdsOverview = Field(default_factory=AdsOverview)
    performance_over_time: list[PerformancePoint] = []
    campaigns: list[CampaignRecord] = []
    country_breakdown: list[CountryRow] = []


# =============================================================================
# GA4
# =============================================================================

class GA4Overview(PulseModel):
    total_users: int = 0
    new_users: int = 0
    engagement_rate: float = 0
    bounce_rate: float = 0
    sessions: int = 0
    page_views: int = 0
    avg_session_duration: float = 0
    engaged_sessions: int = 0


class TrafficSource(PulseModel):
    name: str
    sessions: int = 0
    users: int = 0
    percentage: float = 0


class TrafficTrendPoint(PulseModel):
    date: str
    users: int = 0
    new_users: int = 0
    sessions: int = 0
    page_views: int = 0


class GA4CountryRow(PulseModel):
    country: str
    users: int = 0
    sessions: int = 0
    page_views: int = 0
    engagement_rate: float = 0


class GA4Payload(PulseModel):
    overview: GA4Overview = Field(default_factory=GA4Overview)
    traffic_by_source: list[TrafficSource] = []
    trends_over_time: list[TrafficTrendPoint] = []
    country_breakdown: list[GA4CountryRow] = []


# =============================================================================
# Email (MailerLite, Mailchimp)
# =============================================================================

class EmailOverview(PulseModel):
    email_opens: int = 0
    email_clicks: int = 0
    open_rate: float = 0
    click_through_rate: float = 0
    click_to_open_rate: float = 0
    total_subscribers: int = 0
    active_subscribers: int = 0
    total_sent: int = 0


class EmailPerformancePoint(PulseModel):
    date: str
    opens: int = 0
    clicks: int = 0
    open_rate: float = 0
    ctr: float = 0


class EmailTopCampaign(PulseModel):
    name: str
    opens: int = 0
    clicks: int = 0
    open_rate: float = 0


class EmailCampaign(PulseModel):
    id: str
    name: str = "Untitled"
    subject: str = "No subject"
    status: str = "sent"
    sent_at: Optional[str] = None
    sent: int = 0
    opens: int = 0
    clicks: int = 0
    bounced: int = 0
    unsubscribed: int = 0
    open_rate: float = 0
    click_rate: float = 0
    click_to_open_rate: float = 0


class EmailPayload(PulseModel):
    overview: EmailOverview = Field(default_factory=EmailOverview)
    campaign_performance: list[EmailPerformancePoint] = []
    top_campaigns: list[EmailTopCampaign] = []
    campaigns: list[EmailCampaign] = []


# =============================================================================
# Shopify
# =============================================================================

class ShopifyOverview(PulseModel):
    total_orders: int = 0
    total_revenue: float = 0
    average_order_value: float = 0
    total_products: int = 0


class OrdersPoint(PulseModel):
    date: str
    orders: int = 0
    revenue: float = 0


class ProductSales(PulseModel):
    name: str
    quantity: int = 0
    revenue: float = 0


class StatusCount(PulseModel):
    status: str
    count: int = 0
    percentage: float = 0


class ShopifyCountry(PulseModel):
    country_code: str
    total_orders: int = 0
    total_revenue: float = 0
    average_order_value: float = 0
    orders_over_time: list[OrdersPoint] = []
    top_products: list[ProductSales] = []
    orders_by_status: list[StatusCount] = []


class ShopifyPayload(PulseModel):
    overview: ShopifyOverview = Field(default_factory=ShopifyOverview)
    orders_over_time: list[OrdersPoint] = []
    top_products: list[ProductSales] = []
    orders_by_status: list[StatusCount] = []
    country_breakdown: list[ShopifyCountry] = []


# =============================================================================
# Subbly
# =============================================================================

class SubblyOverview(PulseModel):
    subscriptions: int = 0
    churn_rate: float = 0
    revenue: float = 0


class SubscriptionsPoint(PulseModel):
    date: str
    subscriptions: int = 0
    revenue: float = 0


class PlanShare(PulseModel):
    plan: str
    subscribers: int = 0
    percentage: float = 0


class SubblyPayload(PulseModel):
    overview: SubblyOverview = Field(default_factory=SubblyOverview)
    subscriptions_over_time: list[SubscriptionsPoint] = []
    plan_distribution: list[PlanShare] = []
    status_breakdown: dict[str, int] = {}


# =============================================================================
# Insights
# =============================================================================

class OverviewInsightsRequest(PulseModel):
    ga4: Optional[GA4Payload] = None
    google_ads: Optional[AdsPayload] = None
    meta_ads: Optional[AdsPayload] = None
    subbly: Optional[SubblyPayload] = None
    email: Optional[EmailPayload] = None
    country: CountryCode = CountryCode.ALL


class CampaignInsightsRequest(PulseModel):
    campaign: CampaignRecord
    country: CountryCode = CountryCode.ALL


class GoogleAdsInsightsRequest(PulseModel):
    data: AdsPayload
    country: CountryCode = CountryCode.ALL


class InsightsResponse(PulseModel):
    insights: str
    model: Optional[str] = None
