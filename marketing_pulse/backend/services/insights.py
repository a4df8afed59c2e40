"""
AI insight generation.

Turns dashboard payloads into short narrative analyses with Claude. Results
are returned as dicts; failures carry an "error" message and the HTTP status
the router should answer with.
"""

import json
import logging
import os
from datetime import datetime

import anthropic
from dotenv import load_dotenv

from marketing_pulse.dashboard.markets import COUNTRY_LABELS, CountryCode
from marketing_pulse.dashboard.metrics import currency_symbol
from marketing_pulse.schemas import (
    AdsPayload,
    CampaignRecord,
    OverviewInsightsRequest,
)

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 4096


def _currency_name(country: CountryCode) -> str:
    return "GBP (£)" if CountryCode(country) == CountryCode.UK else "EUR (€)"


def overview_system_prompt(country: CountryCode) -> str:
    symbol = currency_symbol(country)
    return f"""You are a marketing analytics expert. Analyse the provided marketing data and generate actionable insights and recommendations. Focus on:
1. Traffic performance and user engagement
2. Ad spend efficiency and ROAS
3. Conversion funnel optimisation
4. Email campaign performance
5. Cross-channel opportunities

IMPORTANT: All monetary values MUST be displayed in {_currency_name(country)}. Use the {symbol} symbol for all currency figures. The default currency is Euro (€) unless the UK market is specifically selected.

Provide specific, data-driven recommendations in British English."""


CAMPAIGN_SYSTEM_PROMPT = (
    "You are a Meta Ads performance analyst. Analyse the campaign data and provide "
    "concise, actionable insights in British English."
)

GOOGLE_ADS_SYSTEM_PROMPT = (
    "You are a Google Ads specialist and paid search expert. Analyse the provided Google Ads "
    "data and provide clear, actionable recommendations in British English. Use {symbol} for all "
    "monetary values. Structure your response with clear headings. Be specific, concise, and "
    "data-driven. Skip any section where there is no data."
)


def _dump(payload) -> str:
    if payload is None:
        return "No data available."
    return json.dumps(payload.to_wire())


def build_overview_prompt(request: OverviewInsightsRequest) -> str:
    market = COUNTRY_LABELS[CountryCode(request.country)]
    return f"""Analyse this marketing data (market: {market}):

GA4 Traffic: {_dump(request.ga4)}
Google Ads: {_dump(request.google_ads)}
Meta Ads: {_dump(request.meta_ads)}
Subbly Subscriptions: {_dump(request.subbly)}
Email Campaigns: {_dump(request.email)}

Generate 4-5 key insights with specific recommendations."""


def build_campaign_prompt(campaign: CampaignRecord, country: CountryCode) -> str:
    symbol = currency_symbol(country)
    roas = f"{campaign.roas:.2f}" if campaign.roas else "N/A"
    return f"""Analyse this Meta Ads campaign:

Campaign: {campaign.name}
Spend: {symbol}{campaign.spend:.2f}
CPC: {symbol}{campaign.cpc:.2f}
CTR: {campaign.ctr:.2f}%
Conversions: {campaign.conversions:g}
CPA: {symbol}{campaign.cost_per_conversion:.2f}
ROAS: {roas}

Provide:
1. Performance summary (2-3 sentences)
2. Key strengths (1-2 points)
3. Areas for improvement (1-2 points)
4. One specific action recommendation"""


def build_google_ads_prompt(data: AdsPayload, country: CountryCode, top: int = 10) -> str:
    symbol = currency_symbol(country)
    overview = data.overview
    campaigns = sorted(data.campaigns, key=lambda c: c.spend, reverse=True)[:top]

    if campaigns:
        campaign_lines = "\n".join(
            f"- {c.name} | Status: {c.status} | Spend: {symbol}{c.spend:.2f} | Clicks: {c.clicks} "
            f"| Conversions: {c.conversions:g} | ROAS: {c.roas:.2f}x"
            for c in campaigns
        )
    else:
        campaign_lines = "No campaign data available."

    return f"""Please analyse this Google Ads account data for the selected date range and provide strategic feedback.

## Account Overview
- Total Spend: {symbol}{overview.spend:.2f}
- Clicks: {overview.clicks:,}
- Impressions: {overview.impressions:,}
- Conversions: {overview.conversions:g}
- CPC: {symbol}{overview.cpc:.2f}
- CTR: {overview.ctr:.2f}%
- Cost Per Conversion: {symbol}{overview.cost_per_conversion:.2f}

## Top Campaigns (by spend)
{campaign_lines}

Please provide:
1. **Campaign Analysis**: which campaigns are performing well and which need attention
2. **Budget Allocation**: where spend should move
3. **Quick Wins**: 3 specific actions to take immediately to improve performance"""


def generate_insights(system_prompt: str, user_message: str) -> dict:
    """
    Ask Claude for an analysis.

    Returns:
        {"insights", "model", "generated_at"} on success, otherwise
        {"error", "status_code"}
    """
    api_key = os.getenv("ANTHROPIC_API_KEY", "")
    if not api_key:
        return {"error": "ANTHROPIC_API_KEY not configured", "status_code": 503}

    model = os.getenv("INSIGHTS_MODEL", DEFAULT_MODEL)

    try:
        client = anthropic.Anthropic(api_key=api_key)

        response = client.messages.create(
            model=model,
            max_tokens=MAX_TOKENS,
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )
    except anthropic.RateLimitError:
        logger.warning("Insight generation rate limited")
        return {"error": "Rate limits exceeded, please try again later.", "status_code": 429}
    except anthropic.APIError as e:
        logger.error("Insight generation failed: %s", e)
        return {"error": f"AI provider error: {e}", "status_code": 502}

    return {
        "insights": response.content[0].text,
        "model": model,
        "generated_at": datetime.now().isoformat(),
    }


def get_insights_status() -> dict:
    """Check if insight generation is configured."""
    api_key = os.getenv("ANTHROPIC_API_KEY", "")
    return {
        "available": bool(api_key),
        "model": os.getenv("INSIGHTS_MODEL", DEFAULT_MODEL),
    }
